"""Time-entry (timer) management.

A user may have at most one running entry. Stopping or deleting an entry
recomputes the owning task's ``actual_minutes`` from all of its entries.
"""

from __future__ import annotations

import logging
from datetime import datetime

from tracker.clock import Clock, to_iso, utc_now
from tracker.errors import ConflictingActiveEntry, NotFound
from tracker.locks import UserLocks, maybe_hold
from tracker.models import TimeEntry
from tracker.sessions import stop_time_entry, total_tracked_minutes
from tracker.validation import parse_timestamp, require_string

logger = logging.getLogger(__name__)


class TimeEntryService:
    def __init__(self, time_entries, tasks, clock: Clock = utc_now, locks: UserLocks | None = None):
        self.time_entries = time_entries
        self.tasks = tasks
        self.clock = clock
        self.locks = locks

    def _when(self, field: str, value: datetime | str | None) -> datetime:
        return parse_timestamp(field, value) if value is not None else self.clock()

    def _sync_task_minutes(self, task_id: str) -> None:
        total = total_tracked_minutes(self.time_entries.find_by_task(task_id))
        if self.tasks.find_by_id(task_id) is None:
            logger.debug("Task %s is gone; skipping actual minutes update", task_id)
            return
        self.tasks.update(task_id, {"actual_minutes": total})
        logger.debug("Task %s now has %d tracked minutes", task_id, total)

    def start(self, user_id: str, task_id: str, started_at: datetime | str | None = None) -> TimeEntry:
        """Start a timer on *task_id*. Fails if the user already has one running."""
        user_id = require_string("userId", user_id, "User ID")
        task_id = require_string("taskId", task_id, "Task ID")
        when = self._when("startedAt", started_at)

        with maybe_hold(self.locks, user_id):
            active = self.time_entries.find_active(user_id)
            if active is not None:
                logger.debug("Rejected timer start for %s: %s is running", user_id, active.id)
                raise ConflictingActiveEntry(user_id, active.id)
            if self.tasks.find_by_id(task_id) is None:
                raise NotFound("Task", task_id)

            entry = self.time_entries.create(TimeEntry(
                task_id=task_id,
                user_id=user_id,
                started_at=when,
                ended_at=None,
            ))
        logger.info("Started time entry %s on task %s", entry.id, task_id)
        return entry

    def stop(self, entry_id: str, ended_at: datetime | str | None = None) -> TimeEntry:
        entry_id = require_string("entryId", entry_id, "Entry ID")
        when = self._when("endedAt", ended_at)

        entry = self.time_entries.find_by_id(entry_id)
        if entry is None:
            raise NotFound("TimeEntry", entry_id)

        with maybe_hold(self.locks, entry.user_id):
            entry = self.time_entries.find_by_id(entry_id)
            if entry is None:
                raise NotFound("TimeEntry", entry_id)
            stopped = self.time_entries.update(entry_id, stop_time_entry(entry, when))
            self._sync_task_minutes(entry.task_id)
        logger.info("Stopped time entry %s", entry_id)
        return stopped

    def stop_active(self, user_id: str, ended_at: datetime | str | None = None) -> TimeEntry | None:
        """Stop the user's running entry, if there is one."""
        active = self.time_entries.find_active(user_id)
        if active is None:
            return None
        return self.stop(active.id, ended_at)

    def delete(self, entry_id: str) -> None:
        entry = self.time_entries.find_by_id(entry_id)
        if entry is None:
            raise NotFound("TimeEntry", entry_id)
        self.time_entries.delete(entry_id)
        self._sync_task_minutes(entry.task_id)
        logger.info("Deleted time entry %s", entry_id)

    # Queries

    def find_active(self, user_id: str) -> TimeEntry | None:
        return self.time_entries.find_active(user_id)

    def find_by_id(self, entry_id: str) -> TimeEntry | None:
        return self.time_entries.find_by_id(entry_id)

    def find_by_task(self, task_id: str) -> list[TimeEntry]:
        return self.time_entries.find_by_task(task_id)

    def find_by_user(self, user_id: str) -> list[TimeEntry]:
        return self.time_entries.find_by_user(user_id)

    def find_by_date_range(self, user_id: str, start: datetime | str, end: datetime | str) -> list[TimeEntry]:
        return self.time_entries.find_by_date_range(
            user_id,
            to_iso(parse_timestamp("startDate", start)),
            to_iso(parse_timestamp("endDate", end)),
        )

    def total_minutes(self, task_id: str) -> int:
        return total_tracked_minutes(self.time_entries.find_by_task(task_id))
