import json

import httpx
import pytest

from scar_client.config.settings import ServerSettings
from scar_client.runtime.locale import (
    BENGALI_WORDS,
    Language,
    ResponseMode,
    detect_language,
    localize,
    mix_bengali_english,
)
from scar_client.runtime.responder import RemoteResponder, RuleResponder
from scar_client.runtime.router import CommandRouter


class EchoResponder:
    def __init__(self) -> None:
        self.calls: list[tuple[str, Language]] = []

    def generate(self, command: str, language: Language) -> str:
        self.calls.append((command, language))
        return f"echo {command}"


def test_plain_command_is_voiced() -> None:
    command = CommandRouter().parse("hello")
    assert command.raw == "hello"
    assert command.mode is ResponseMode.VOICE
    assert command.language is Language.EN


def test_text_mode_phrase_is_stripped() -> None:
    command = CommandRouter().parse("write it remind me to call mom")
    assert command.raw == "remind me to call mom"
    assert command.mode is ResponseMode.TEXT


def test_route_delegates_to_responder() -> None:
    responder = EchoResponder()
    outcome = CommandRouter(responder).route("what is my goal")
    assert responder.calls == [("what is my goal", Language.EN)]
    assert outcome.response == "echo what is my goal"
    assert outcome.voiced
    assert not outcome.wants_reminder


def test_reminder_trigger_is_independent_of_mode() -> None:
    router = CommandRouter(EchoResponder())
    voiced = router.route("remind me to stretch")
    written = router.route("write it remind me to call mom")
    assert voiced.wants_reminder and voiced.voiced
    assert written.wants_reminder and not written.voiced
    assert written.command.raw == "remind me to call mom"


def test_rule_responder_table() -> None:
    rules = RuleResponder()
    assert rules.generate("hello", Language.EN) == "Hello! How can I assist you today?"
    assert rules.generate("what time is it", Language.EN).startswith("The current time is ")
    assert "Goals menu" in rules.generate("my goal", Language.EN)
    assert "Memory menu" in rules.generate("memory", Language.EN)
    assert rules.generate("thank you", Language.EN) == "You're welcome!"
    assert rules.generate("open the door", Language.EN) == "I understand you said: open the door. I'm still learning."


def test_language_detection_priority() -> None:
    assert detect_language("hello") is Language.EN
    assert detect_language("হ্যালো") is Language.BN
    assert detect_language("नमस्ते") is Language.HI
    # Bengali is checked first when both scripts are present.
    assert detect_language("नमस्ते হ্যালো") is Language.BN


def test_bengali_substitution_only_for_text_replies() -> None:
    response = "Hello! Your goal and memory are safe. Check the TIME."
    text = localize(response, Language.BN, ResponseMode.TEXT)
    assert text == (
        f"{BENGALI_WORDS['hello']}! Your {BENGALI_WORDS['goal']} and {BENGALI_WORDS['memory']} are safe. "
        f"Check the {BENGALI_WORDS['time']}."
    )
    assert localize(response, Language.BN, ResponseMode.VOICE) == response
    assert localize(response, Language.HI, ResponseMode.TEXT) == response
    assert localize(response, Language.EN, ResponseMode.TEXT) == response


def test_substitution_also_hits_inner_substrings() -> None:
    assert mix_bengali_english("sometimes") == f"some{BENGALI_WORDS['time']}s"


def test_bengali_text_route_is_localized() -> None:
    outcome = CommandRouter().route("write it হ্যালো hello")
    assert outcome.command.language is Language.BN
    assert outcome.response == f"{BENGALI_WORDS['hello']}! How can I assist you today?"

    voiced = CommandRouter().route("হ্যালো hello")
    assert voiced.response == "Hello! How can I assist you today?"


@pytest.mark.asyncio
async def test_remote_responder_uses_ai_endpoint() -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"response": "You said: open"})

    responder = RemoteResponder(ServerSettings(base_url="http://scar.test"), transport=httpx.MockTransport(handler))
    try:
        assert await responder.generate("open", Language.HI) == "You said: open"
    finally:
        await responder.close()
    assert seen == [{"text": "open", "language": "hi"}]


@pytest.mark.asyncio
async def test_remote_responder_falls_back_on_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    responder = RemoteResponder(ServerSettings(base_url="http://scar.test"), transport=httpx.MockTransport(handler))
    try:
        assert await responder.generate("thank you", Language.EN) == "You're welcome!"
    finally:
        await responder.close()


@pytest.mark.asyncio
async def test_async_responder_needs_aroute() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"response": "You said: remind me to stretch"})

    router = CommandRouter(
        RemoteResponder(ServerSettings(base_url="http://scar.test"), transport=httpx.MockTransport(handler))
    )
    assert router.asynchronous
    with pytest.raises(TypeError):
        router.route("remind me to stretch")

    outcome = await router.aroute("write it remind me to stretch")
    assert outcome.response == "You said: remind me to stretch"
    assert outcome.wants_reminder and not outcome.voiced
    await router.responder.close()


@pytest.mark.asyncio
async def test_aroute_accepts_plain_responders() -> None:
    router = CommandRouter()
    assert not router.asynchronous
    outcome = await router.aroute("thank you")
    assert outcome.response == "You're welcome!"
