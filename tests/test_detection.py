import pytest

from conftest import snapshot

from playtime_watcher.detection import TitleChange, build_event, detect_changes
from playtime_watcher.errors import DeltaUnderflowError
from playtime_watcher.models import Snapshot, Title


def test_identical_snapshots_produce_no_changes():
    current = snapshot((10, "Game A", 120), (20, "Game B", 5))
    assert detect_changes(current, current) == []
    assert detect_changes(Snapshot(), Snapshot()) == []


def test_first_poll_is_not_compared():
    assert detect_changes(None, snapshot((10, "Game A", 120))) == []


def test_increased_playtime_reports_previous_total():
    previous = snapshot((10, "Game A", 120), (20, "Game B", 30))
    current = snapshot((10, "Game A", 145), (20, "Game B", 30))

    changes = detect_changes(previous, current)

    assert len(changes) == 1
    assert changes[0].title.id == 10
    assert changes[0].previous_minutes == 120
    assert changes[0].session_minutes == 25


def test_new_title_has_no_previous_total():
    previous = snapshot((10, "A", 120))
    current = snapshot((10, "A", 120), (20, "B", 5))

    changes = detect_changes(previous, current)

    assert changes == [TitleChange(Title(id=20, name="B", total_playtime_minutes=5), None)]
    assert changes[0].session_minutes is None


def test_changes_follow_current_snapshot_order():
    previous = snapshot((1, "One", 10), (2, "Two", 10))
    current = snapshot((3, "Three", 1), (2, "Two", 11), (1, "One", 12))

    assert [change.title.id for change in detect_changes(previous, current)] == [3, 2, 1]


def test_renamed_title_with_same_playtime_is_unchanged():
    previous = snapshot((10, "Old Name", 120))
    current = snapshot((10, "New Name", 120))
    assert detect_changes(previous, current) == []


def test_titles_dropping_out_of_window_are_ignored():
    previous = snapshot((10, "A", 120), (20, "B", 5))
    current = snapshot((20, "B", 5))
    assert detect_changes(previous, current) == []


def test_decreasing_playtime_raises_underflow():
    changes = detect_changes(snapshot((10, "A", 120)), snapshot((10, "A", 90)))

    assert len(changes) == 1
    with pytest.raises(DeltaUnderflowError) as excinfo:
        changes[0].session_minutes
    assert excinfo.value.previous_minutes == 120
    assert excinfo.value.current_minutes == 90


def test_build_event_uses_current_totals():
    change = TitleChange(Title(id=10, name="Game A", total_playtime_minutes=145), 120)

    event = build_event("alice", change)

    assert event.account_label == "alice"
    assert event.title_name == "Game A"
    assert event.session_minutes == 25
    assert event.total_playtime_minutes == 145
    assert not event.is_first_session
