import json

from conftest import ts

from canvas_relay.db import StateStore
from canvas_relay.models import WatermarkState


def test_memory_only_store_uses_seed():
    store = StateStore(seed_timestamp=ts(0))

    assert not store.is_durable
    assert store.state == WatermarkState(last_timestamp=ts(0))
    assert store.commit(WatermarkState(last_timestamp=ts(1))) is True
    assert store.state.last_timestamp == ts(1)


def test_empty_store_without_seed():
    assert StateStore().state == WatermarkState()


def test_commit_persists_and_reload_restores(tmp_path):
    path = tmp_path / "data" / "state.json"
    store = StateStore(path)
    store.commit(WatermarkState(last_timestamp=ts(3), recent_ids=[1, 2, 3]))

    data = json.loads(path.read_text())
    assert data["recentIds"] == [1, 2, 3]
    assert data["lastTimestamp"].startswith("2024-09-01T12:03:00")

    reloaded = StateStore(path, seed_timestamp=ts(-100))
    assert reloaded.state == store.state


def test_missing_file_falls_back_to_seed(tmp_path):
    store = StateStore(tmp_path / "state.json", seed_timestamp=ts(0))
    assert store.state.last_timestamp == ts(0)


def test_malformed_file_falls_back_to_seed(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json")

    store = StateStore(path, seed_timestamp=ts(0))
    assert store.state == WatermarkState(last_timestamp=ts(0))


def test_invalid_document_falls_back_to_seed(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"lastTimestamp": "yesterday", "recentIds": "nope"}))

    assert StateStore(path).state == WatermarkState()


def test_legacy_state_file_is_read(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"lastISO": "2024-09-01T12:00:00.000Z", "seenIds": [11, 12]}))

    state = StateStore(path).state
    assert state.last_timestamp == ts(0)
    assert state.recent_ids == [11, 12]


def test_write_failure_keeps_state_in_memory(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    store = StateStore(blocker / "state.json")

    new_state = WatermarkState(last_timestamp=ts(1), recent_ids=[1])
    assert store.commit(new_state) is False
    assert store.state == new_state
