import json
from datetime import date

import pytest

from streaks import storage
from streaks.colors import DEFAULT_COLOR_HEX, normalize_color_hex
from streaks.snapshot import SnapshotDecodeError, WidgetSnapshot, decode_snapshot, encode_snapshot
from streaks.storage import FileTimelineReloader, SharedSnapshotStore, SnapshotWriteError


def _row(**overrides):
    values = dict(
        id="8f1c",
        name="Read",
        icon="book.fill",
        color_hex="#FF5A5F",
        current_streak=2,
        completed_dates=(date(2025, 12, 9), date(2025, 12, 10)),
    )
    values.update(overrides)
    return WidgetSnapshot(**values)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("#ff5a5f", "#FF5A5F"),
        ("00a699", "#00A699"),
        ("  #007aff ", "#007AFF"),
        ("#12345", DEFAULT_COLOR_HEX),
        ("#GGGGGG", DEFAULT_COLOR_HEX),
        ("", DEFAULT_COLOR_HEX),
        (None, DEFAULT_COLOR_HEX),
    ],
)
def test_normalize_color_hex(raw, expected):
    assert normalize_color_hex(raw) == expected


def test_encode_snapshot__days_are_calendar_dates():
    payload = json.loads(encode_snapshot([_row()]))

    assert payload == [
        {
            "id": "8f1c",
            "name": "Read",
            "icon": "book.fill",
            "colorHex": "#FF5A5F",
            "currentStreak": 2,
            "completedDates": ["2025-12-09", "2025-12-10"],
        }
    ]


def test_decode_snapshot__round_trips_days_exactly():
    rows = decode_snapshot(encode_snapshot([_row(), _row(id="other", completed_dates=())]))

    assert [r.id for r in rows] == ["8f1c", "other"]
    assert rows[0].completed_dates == (date(2025, 12, 9), date(2025, 12, 10))
    assert rows[0].is_completed(date(2025, 12, 10))
    assert rows[1].completed_dates == ()


@pytest.mark.parametrize(
    "data",
    [b"", b"not json", b'{"id": "x"}', b"\xff\xfe", b"[" * 100000 + b"]" * 100000],
)
def test_decode_snapshot__rejects_corrupt_payloads(data):
    with pytest.raises(SnapshotDecodeError):
        decode_snapshot(data)


def test_decode_snapshot__skips_malformed_rows():
    data = json.dumps([
        {"id": "ok", "name": "Walk", "colorHex": "bad", "completedDates": ["2025-12-01"]},
        {"name": "missing id"},
        {"id": "bad-date", "name": "X", "completedDates": ["12/01/2025"]},
        {"id": "huge-streak", "name": "X", "currentStreak": float("inf"), "completedDates": []},
        "not a row",
    ]).encode()

    rows = decode_snapshot(data)

    assert [r.id for r in rows] == ["ok"]
    assert rows[0].color_hex == DEFAULT_COLOR_HEX
    assert rows[0].current_streak == 0


@pytest.mark.parametrize("streak", [b"Infinity", b"-Infinity", b"1e400"])
def test_decode_snapshot__skips_rows_with_unrepresentable_streak(streak):
    data = b'[{"id": "a", "name": "Read", "currentStreak": ' + streak + b', "completedDates": []}]'

    assert decode_snapshot(data) == []


def test_store__get_missing_key_returns_none(tmp_path):
    assert SharedSnapshotStore(tmp_path).get() is None


def test_store__set_replaces_whole_value(tmp_path):
    store = SharedSnapshotStore.for_group(tmp_path, "42")

    store.set(b"first")
    store.set(b"second")

    stored = store.get()
    assert stored.data == b"second"
    assert stored.updated_at.tzinfo is not None
    assert store.directory == tmp_path / "group-42"
    assert sorted(p.name for p in store.directory.iterdir()) == ["widgetHabits.json"]


def test_store__failed_write_keeps_previous_value(tmp_path, monkeypatch):
    store = SharedSnapshotStore(tmp_path)
    store.set(b"previous")

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(storage.os, "replace", broken_replace)

    with pytest.raises(SnapshotWriteError):
        store.set(b"new")

    assert store.get().data == b"previous"
    assert [p.name for p in tmp_path.iterdir()] == ["widgetHabits.json"]


def test_store__unwritable_directory_raises_write_error(tmp_path):
    blocker = tmp_path / "group-1"
    blocker.write_text("not a directory")

    with pytest.raises(SnapshotWriteError):
        SharedSnapshotStore(blocker).set(b"data")


def test_reloader__marks_reload_time(tmp_path):
    reloader = FileTimelineReloader(SharedSnapshotStore(tmp_path))
    assert reloader.last_reload() is None

    reloader.reload_all_timelines()

    assert reloader.last_reload() is not None
    assert (tmp_path / "widgetHabits.reload").exists()
