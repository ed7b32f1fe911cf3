from datetime import datetime, timezone

from conftest import ts

from canvas_relay.models import MAX_RECENT_IDS, Announcement, WatermarkState


def test_advance_sets_watermark_and_appends_ids():
    state = WatermarkState()
    new_state = state.advance(ts(3), [3, 2, 1])

    assert new_state.last_timestamp == ts(3)
    assert new_state.recent_ids == [3, 2, 1]
    assert state.recent_ids == []


def test_advance_never_moves_watermark_backwards():
    state = WatermarkState(last_timestamp=ts(10))

    assert state.advance(ts(5), [1]).last_timestamp == ts(10)
    assert state.advance(None, [1]).last_timestamp == ts(10)
    assert state.advance(ts(11), [1]).last_timestamp == ts(11)


def test_advance_keeps_existing_positions_and_drops_duplicates():
    state = WatermarkState(recent_ids=[1, 2, 3])
    assert state.advance(None, [2, 4, 4]).recent_ids == [1, 2, 3, 4]


def test_recent_ids_are_capped_oldest_first():
    state = WatermarkState()
    for start in range(0, 1200, 100):
        state = state.advance(None, list(range(start, start + 100)))
        assert len(state.recent_ids) <= MAX_RECENT_IDS

    assert len(state.recent_ids) == MAX_RECENT_IDS
    assert state.recent_ids[0] == 700
    assert state.recent_ids[-1] == 1199


def test_state_json_uses_camel_case_keys():
    state = WatermarkState(last_timestamp=ts(0), recent_ids=[7])
    restored = WatermarkState.model_validate_json(state.to_json())

    assert '"lastTimestamp"' in state.to_json()
    assert '"recentIds"' in state.to_json()
    assert restored == state


def test_legacy_keys_are_accepted():
    state = WatermarkState.model_validate(
        {"lastISO": "2024-09-01T12:00:00Z", "seenIds": [1, 2]}
    )
    assert state.last_timestamp == ts(0)
    assert state.recent_ids == [1, 2]


def test_naive_timestamps_are_taken_as_utc():
    naive = datetime(2024, 9, 1, 12, 0)
    item = Announcement(id=1, timestamp=naive, title="t", author="a", url="u")

    assert item.timestamp == ts(0)
    assert WatermarkState(last_timestamp=naive).last_timestamp.tzinfo == timezone.utc
