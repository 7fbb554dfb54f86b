"""Tests for tracker/app.py wiring and tracker/locks.py."""

import sys
import threading

from tests.helpers import FakeClock, utc
from tracker.app import build_tracker, open_repositories
from tracker.config import Settings
from tracker.errors import ConflictingActiveEntry
from tracker.locks import UserLocks, maybe_hold
from tracker.models import DailySummary, Project
from tracker.store import DailySummaryRepository


def test_build_tracker_from_workspace(workspace):
    clock = FakeClock(utc(2026, 2, 12, 9, 0))
    tracker = build_tracker(clock=clock)
    tracker.repos.projects.create(Project(id="p1", user_id="u1", name="Home"))
    task = tracker.tasks.create("u1", "p1", "Persisted")
    entry = tracker.timer.start("u1", task.id)
    clock.advance(minutes=20)
    tracker.timer.stop(entry.id)

    assert (workspace / "tasks.json").exists()
    assert (workspace / "time_entries.json").exists()

    reopened = build_tracker(clock=clock)
    assert reopened.tasks.find_by_id(task.id).actual_minutes == 20
    assert reopened.timer.find_active("u1") is None


def test_memory_store_writes_nothing(tmp_path):
    repos = open_repositories(Settings(data_root=tmp_path, store="memory"))
    repos.projects.create(Project(name="x"))
    assert list(tmp_path.iterdir()) == []


def test_facades_share_one_lock_registry(tracker):
    assert tracker.timer.locks is tracker.locks
    assert tracker.breaks.locks is tracker.locks
    assert tracker.work_sessions.locks is tracker.locks


def test_user_locks_are_per_user_and_reentrant():
    locks = UserLocks()
    assert locks.lock_for("a") is locks.lock_for("a")
    assert locks.lock_for("a") is not locks.lock_for("b")
    with locks.hold("a"):
        with locks.hold("a"):
            pass
    with maybe_hold(None, "a"):
        pass


def test_concurrent_starts_leave_one_running(tracker, project, repos):
    task = tracker.tasks.create("user-1", project.id, "Race")
    barrier = threading.Barrier(8)
    results = []

    def start():
        barrier.wait()
        try:
            results.append(tracker.timer.start("user-1", task.id).id)
        except ConflictingActiveEntry:
            results.append(None)

    threads = [threading.Thread(target=start) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len([r for r in results if r]) == 1
    assert len(repos.time_entries.find_all()) == 1


def test_parallel_timers_for_different_users(tracker, project, repos):
    task = tracker.tasks.create("user-1", project.id, "Shared")
    users = [f"user-{n}" for n in range(8)]
    barrier = threading.Barrier(len(users))
    errors = []
    previous = sys.getswitchinterval()
    sys.setswitchinterval(1e-6)

    def work(user_id):
        barrier.wait()
        try:
            for _ in range(50):
                entry = tracker.timer.start(user_id, task.id)
                tracker.timer.stop(entry.id)
        except Exception as exc:  # collected and asserted below
            errors.append(repr(exc))

    threads = [threading.Thread(target=work, args=(u,)) for u in users]
    try:
        for t in threads:
            t.start()
        for t in threads:
            t.join()
    finally:
        sys.setswitchinterval(previous)

    assert errors == []
    assert len(repos.time_entries.find_all()) == 400
    assert all(tracker.timer.find_active(u) is None for u in users)


def test_summary_upserts_race_to_one_row(clock):
    summaries = DailySummaryRepository(clock=clock)
    barrier = threading.Barrier(6)

    def save(points):
        barrier.wait()
        summaries.upsert(DailySummary(user_id="u", date="2026-02-12", total_points=points))

    threads = [threading.Thread(target=save, args=(p,)) for p in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(summaries.find_by_user("u")) == 1
