"""Tests for tracker/timer.py: single running entry and actual minutes."""

import pytest

from tests.helpers import utc
from tracker.errors import AlreadyStopped, ConflictingActiveEntry, NotFound, ValidationFailed


@pytest.fixture
def task(tracker, project):
    return tracker.tasks.create("user-1", project.id, "Focus work")


def test_start_and_stop(tracker, task, clock):
    entry = tracker.timer.start("user-1", task.id)
    assert entry.started_at == utc(2026, 2, 12, 9, 0)
    assert entry.is_running
    assert tracker.timer.find_active("user-1").id == entry.id

    clock.advance(minutes=25, seconds=40)
    stopped = tracker.timer.stop(entry.id)
    assert stopped.ended_at == utc(2026, 2, 12, 9, 25, 40)
    assert tracker.timer.find_active("user-1") is None
    assert tracker.tasks.find_by_id(task.id).actual_minutes == 25


def test_second_start_conflicts(tracker, repos, task, project):
    first = tracker.timer.start("user-1", task.id)
    other = tracker.tasks.create("user-1", project.id, "Other")
    with pytest.raises(ConflictingActiveEntry) as exc:
        tracker.timer.start("user-1", other.id)
    assert exc.value.active_id == first.id
    assert exc.value.code == "CONFLICT"
    assert len(repos.time_entries.find_all()) == 1


def test_other_users_can_run_in_parallel(tracker, task):
    tracker.timer.start("user-1", task.id)
    assert tracker.timer.start("user-2", task.id).user_id == "user-2"


def test_start_unknown_task(tracker):
    with pytest.raises(NotFound):
        tracker.timer.start("user-1", "ghost")


def test_start_requires_ids(tracker, task):
    with pytest.raises(ValidationFailed) as exc:
        tracker.timer.start("", task.id)
    assert exc.value.field == "userId"
    with pytest.raises(ValidationFailed) as exc:
        tracker.timer.start("user-1", " ")
    assert exc.value.field == "taskId"


def test_stop_unknown_entry(tracker):
    with pytest.raises(NotFound):
        tracker.timer.stop("ghost")


def test_stop_twice(tracker, task, clock):
    entry = tracker.timer.start("user-1", task.id)
    clock.advance(minutes=5)
    tracker.timer.stop(entry.id)
    with pytest.raises(AlreadyStopped):
        tracker.timer.stop(entry.id)


def test_stop_before_start(tracker, task):
    entry = tracker.timer.start("user-1", task.id, started_at="2026-02-12T09:00:00Z")
    with pytest.raises(ValidationFailed):
        tracker.timer.stop(entry.id, ended_at="2026-02-12T08:00:00Z")
    assert tracker.timer.find_active("user-1").id == entry.id


def test_actual_minutes_sum_truncated_entries(tracker, task):
    for start, end in [("09:00:00", "09:10:50"), ("10:00:00", "10:20:30"), ("11:00:00", "11:00:59")]:
        entry = tracker.timer.start("user-1", task.id, started_at=f"2026-02-12T{start}Z")
        tracker.timer.stop(entry.id, ended_at=f"2026-02-12T{end}Z")
    assert tracker.tasks.find_by_id(task.id).actual_minutes == 10 + 20 + 0
    assert tracker.timer.total_minutes(task.id) == 30


def test_stop_active(tracker, task, clock):
    assert tracker.timer.stop_active("user-1") is None
    entry = tracker.timer.start("user-1", task.id)
    clock.advance(minutes=3)
    stopped = tracker.timer.stop_active("user-1")
    assert stopped.id == entry.id
    assert stopped.ended_at is not None


def test_delete_entry_resyncs_task(tracker, task):
    keep = tracker.timer.start("user-1", task.id, started_at="2026-02-12T09:00:00Z")
    tracker.timer.stop(keep.id, ended_at="2026-02-12T09:15:00Z")
    drop = tracker.timer.start("user-1", task.id, started_at="2026-02-12T10:00:00Z")
    tracker.timer.stop(drop.id, ended_at="2026-02-12T10:45:00Z")
    assert tracker.tasks.find_by_id(task.id).actual_minutes == 60

    tracker.timer.delete(drop.id)
    assert tracker.tasks.find_by_id(task.id).actual_minutes == 15
    assert tracker.timer.find_by_task(task.id) == [tracker.timer.find_by_id(keep.id)]
    with pytest.raises(NotFound):
        tracker.timer.delete(drop.id)


def test_find_by_date_range_newest_first(tracker, task):
    ids = []
    for hour in (8, 12, 23):
        entry = tracker.timer.start("user-1", task.id, started_at=utc(2026, 2, 12, hour))
        tracker.timer.stop(entry.id, ended_at=utc(2026, 2, 12, hour, 30))
        ids.append(entry.id)
    outside = tracker.timer.start("user-1", task.id, started_at=utc(2026, 2, 13, 0, 0))

    found = tracker.timer.find_by_date_range("user-1", "2026-02-12T00:00:00.000Z", utc(2026, 2, 12, 23, 59, 59))
    assert [e.id for e in found] == list(reversed(ids))
    assert outside.id not in {e.id for e in found}
    assert len(tracker.timer.find_by_user("user-1")) == 4
