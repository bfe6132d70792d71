import json

from scar_client.services.schemas import Goal, Reminder
from scar_client.state.app_state import UserCollections, new_history
from scar_client.state.storage import (
    GOALS_KEY,
    HISTORY_KEY,
    MEMORY_KEY,
    REMINDERS_KEY,
    CollectionStore,
    JsonFileStorage,
)


def test_round_trip_uses_storage_keys(tmp_path) -> None:
    store = CollectionStore(JsonFileStorage(tmp_path))
    collections = UserCollections(
        memory=["parked on level 2"],
        goals=[Goal(text="read a book", completed=True, created_at="2024-01-01T00:00:00+00:00")],
        history=new_history(["scar hello"]),
        reminders=[Reminder(text="remind me to call mom", time="2024-01-01T00:00:00+00:00", id=42)],
    )
    store.save(collections)

    for key in (MEMORY_KEY, GOALS_KEY, HISTORY_KEY, REMINDERS_KEY):
        assert (tmp_path / f"{key}.json").exists()
    goals = json.loads((tmp_path / f"{GOALS_KEY}.json").read_text(encoding="utf-8"))
    assert goals == [{"text": "read a book", "completed": True, "createdAt": "2024-01-01T00:00:00+00:00"}]

    loaded = store.load()
    assert loaded.memory == ["parked on level 2"]
    assert loaded.goals == collections.goals
    assert list(loaded.history) == ["scar hello"]
    assert loaded.reminders == collections.reminders


def test_missing_storage_loads_empty(tmp_path) -> None:
    loaded = CollectionStore(JsonFileStorage(tmp_path / "nothing")).load()
    assert loaded.memory == [] and loaded.goals == [] and loaded.reminders == []
    assert len(loaded.history) == 0


def test_malformed_key_falls_back_to_empty(tmp_path) -> None:
    storage = JsonFileStorage(tmp_path)
    storage.set(MEMORY_KEY, ["kept"])
    (tmp_path / f"{GOALS_KEY}.json").write_text("{not json", encoding="utf-8")
    storage.set(REMINDERS_KEY, {"not": "a list"})

    loaded = CollectionStore(storage).load()
    assert loaded.memory == ["kept"]
    assert loaded.goals == []
    assert loaded.reminders == []


def test_history_is_trimmed_on_load(tmp_path) -> None:
    storage = JsonFileStorage(tmp_path)
    storage.set(HISTORY_KEY, [f"line {i}" for i in range(8)])
    loaded = CollectionStore(storage, history_limit=5).load()
    assert list(loaded.history) == [f"line {i}" for i in range(3, 8)]
    loaded.record_history("line 8")
    assert loaded.history[0] == "line 4"


def test_reminder_ids_continue_after_loaded_ones() -> None:
    future = 10**15
    collections = UserCollections(reminders=[Reminder(text="old", time="t", id=future)])
    first = collections.add_reminder("a")
    second = collections.add_reminder("b")
    assert first.id == future + 1
    assert second.id == future + 2


def test_replace_keeps_untouched_collections() -> None:
    collections = UserCollections(memory=["a"], goals=[Goal(text="g")])
    collections.replace(memory=[], reminders=None)
    assert collections.memory == []
    assert [goal.text for goal in collections.goals] == ["g"]


def test_unreadable_items_are_skipped(tmp_path) -> None:
    storage = JsonFileStorage(tmp_path)
    storage.set(
        REMINDERS_KEY,
        [
            {"text": "x", "time": "t", "id": None},
            {"text": "y", "time": "t", "id": "soon"},
            "not an object",
            {"text": "kept", "time": "t", "id": 5},
        ],
    )
    storage.set(GOALS_KEY, [{"text": "read", "completed": False}, 3])

    loaded = CollectionStore(storage).load()
    assert [r.text for r in loaded.reminders] == ["kept"]
    assert [goal.text for goal in loaded.goals] == ["read"]
    assert loaded.add_reminder("next").id > 5
