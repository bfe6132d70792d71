import json
import logging

import httpx
import pytest

from scar_client.config.settings import AppSettings, ServerSettings
from scar_client.runtime.controller import ScarAssistant
from scar_client.services.api import ScarAPI, SyncUnauthorizedError
from scar_client.services.schemas import Goal, SyncPayload
from scar_client.services.sync import SyncReconciler
from scar_client.state.app_state import AppState, UserCollections
from scar_client.state.storage import CollectionStore, JsonFileStorage

BASE_URL = "http://scar.test"


def _api(handler) -> ScarAPI:
    return ScarAPI(ServerSettings(base_url=BASE_URL), transport=httpx.MockTransport(handler))


def _echo_handler(seen: list[dict]):
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        seen.append(body)
        data = {key: body.get(key, []) for key in ("memory", "goals", "reminders")}
        return httpx.Response(200, json={"status": "synced", "data": data})

    return handler


def test_payload_carries_full_collections() -> None:
    reconciler = SyncReconciler(_api(_echo_handler([])), AppSettings())
    collections = UserCollections(memory=["m"], goals=[Goal(text="g", created_at="c")])
    collections.record_history("not synced")
    body = reconciler.build_payload(collections).to_payload()
    assert body == {
        "userId": "owner",
        "memory": ["m"],
        "goals": [{"text": "g", "completed": False, "createdAt": "c"}],
        "reminders": [],
    }


def test_absent_collections_are_omitted() -> None:
    assert SyncPayload(user_id="owner", goals=[]).to_payload() == {"userId": "owner", "goals": []}


@pytest.mark.asyncio
async def test_sync_pushes_in_background() -> None:
    seen: list[dict] = []
    api = _api(_echo_handler(seen))
    echoes: list[dict] = []
    reconciler = SyncReconciler(api, AppSettings(), on_echo=echoes.append)

    task = reconciler.sync(UserCollections(memory=["first"]))
    assert task is not None
    await reconciler.drain()
    assert task.result() is True
    await api.close()

    assert seen[0]["memory"] == ["first"]
    assert echoes == [{"memory": ["first"], "goals": [], "reminders": []}]


@pytest.mark.asyncio
async def test_offline_skips_sync() -> None:
    seen: list[dict] = []
    settings = AppSettings()
    settings.sync.online = False
    reconciler = SyncReconciler(_api(_echo_handler(seen)), settings)
    assert reconciler.sync(UserCollections()) is None
    await reconciler.drain()
    assert seen == []


@pytest.mark.asyncio
async def test_unreachable_service_is_logged_not_raised(caplog) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    reconciler = SyncReconciler(_api(handler), AppSettings())
    collections = UserCollections(memory=["kept"])
    with caplog.at_level(logging.WARNING):
        task = reconciler.sync(collections)
        await reconciler.drain()
    assert "Sync failed" in caplog.text
    assert task.result() is False
    assert collections.memory == ["kept"]


@pytest.mark.asyncio
async def test_api_raises_on_forbidden_identity() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"error": "Unauthorized"})

    api = _api(handler)
    with pytest.raises(SyncUnauthorizedError):
        await api.sync(SyncPayload(user_id="intruder", memory=[]))
    await api.close()


@pytest.mark.asyncio
async def test_api_rejects_non_json_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>oops</html>")

    api = _api(handler)
    with pytest.raises(httpx.DecodingError):
        await api.sync(SyncPayload(user_id="owner"))
    await api.close()


@pytest.mark.asyncio
async def test_forbidden_sync_is_logged_by_reconciler(caplog) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"error": "Unauthorized"})

    reconciler = SyncReconciler(_api(handler), AppSettings())
    with caplog.at_level(logging.WARNING):
        task = reconciler.sync(UserCollections())
        await reconciler.drain()
    assert "Sync rejected" in caplog.text
    assert task.result() is False


class _SilentSynth:
    def speak(self, text, config, on_done, on_error) -> None:
        on_done()

    def cancel(self) -> None:
        pass


@pytest.mark.asyncio
async def test_assistant_adopts_echo_when_enabled(tmp_path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "synced", "data": {"memory": ["from server"], "goals": []}})

    state = AppState()
    state.settings.sync.adopt_remote_echo = True
    api = _api(handler)
    reconciler = SyncReconciler(api, state.settings)
    store = CollectionStore(JsonFileStorage(tmp_path))
    assistant = ScarAssistant(state, recognizer=None, synthesizer=_SilentSynth(), store=store, reconciler=reconciler)

    assistant.add_memory("local note")
    await assistant.drain()
    await api.close()

    assert state.collections.memory == ["from server"]
    assert store.load().memory == ["from server"]


def test_payload_is_a_snapshot() -> None:
    reconciler = SyncReconciler(_api(_echo_handler([])), AppSettings())
    collections = UserCollections(goals=[Goal(text="g", created_at="c")])
    payload = reconciler.build_payload(collections)
    collections.toggle_goal(0)
    collections.add_memory("later")
    assert payload.to_payload()["goals"][0]["completed"] is False
    assert payload.to_payload()["memory"] == []
