"""Reference storage collaborators.

The engines and facades never touch storage directly; they talk to objects
with this shape. ``Repository`` keeps records in memory and, when given a
``path``, mirrors them to a JSON file after every write. Deletion is soft:
a deleted record is kept aside and excluded from every later find.
One repository is shared by every user, so each call holds the
repository lock while it touches the record maps.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Generic, TypeVar

from tracker.clock import Clock, parse_iso, utc_now
from tracker.errors import NotFound
from tracker.fileio import read_json, write_json_atomic
from tracker.models import (
    Break,
    DailySummary,
    Goal,
    PointsLedgerEntry,
    Project,
    Task,
    TaskStatus,
    TimeEntry,
    WorkSession,
)

M = TypeVar("M")


class Repository(Generic[M]):
    """Generic CRUD collaborator over one entity type."""

    entity = "Record"
    model: Any = None

    def __init__(self, path: Path | None = None, clock: Clock = utc_now):
        self._lock = threading.RLock()
        self._records: dict[str, M] = {}
        self._deleted: dict[str, M] = {}
        self._path = path
        self._clock = clock
        if path is not None:
            self._load()

    # ── CRUD ──────────────────────────────────────────────────

    def create(self, record: M) -> M:
        """Store *record*, assigning an id and creation timestamp when absent."""
        changes: dict[str, Any] = {}
        if not getattr(record, "id", ""):
            changes["id"] = str(uuid.uuid4())
        if getattr(record, "created_at", None) is None:
            changes["created_at"] = self._clock()
        stored = replace(record, **changes) if changes else replace(record)
        with self._lock:
            self._records[stored.id] = stored
            self._save()
        return replace(stored)

    def find_by_id(self, record_id: str) -> M | None:
        with self._lock:
            record = self._records.get(record_id)
        return replace(record) if record is not None else None

    def update(self, record_id: str, fields: dict[str, Any]) -> M:
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                raise NotFound(self.entity, record_id)
            updated = replace(record, **fields)
            self._records[record_id] = updated
            self._save()
        return replace(updated)

    def delete(self, record_id: str) -> None:
        with self._lock:
            record = self._records.pop(record_id, None)
            if record is None:
                raise NotFound(self.entity, record_id)
            self._deleted[record_id] = record
            self._save()

    def find_all(self) -> list[M]:
        with self._lock:
            return [replace(r) for r in self._records.values()]

    def _where(self, predicate: Callable[[M], bool]) -> list[M]:
        with self._lock:
            return [replace(r) for r in self._records.values() if predicate(r)]

    # ── JSON mirror ───────────────────────────────────────────

    def _load(self) -> None:
        data = read_json(self._path)
        for d in data.get("records") or []:
            record = self.model.from_dict(d)
            self._records[record.id] = record
        for d in data.get("deleted") or []:
            record = self.model.from_dict(d)
            self._deleted[record.id] = record

    def _save(self) -> None:
        if self._path is None:
            return
        with self._lock:
            write_json_atomic(self._path, {
                "records": [r.to_dict() for r in self._records.values()],
                "deleted": [r.to_dict() for r in self._deleted.values()],
            })


# ── Entity repositories ───────────────────────────────────────


class ProjectRepository(Repository[Project]):
    entity = "Project"
    model = Project


class TaskRepository(Repository[Task]):
    entity = "Task"
    model = Task

    def find_by_user(self, user_id: str) -> list[Task]:
        return self._where(lambda t: t.user_id == user_id)

    def find_by_parent_id(self, parent_task_id: str) -> list[Task]:
        return self._where(lambda t: t.parent_task_id == parent_task_id)

    def find_by_project(self, project_id: str) -> list[Task]:
        return self._where(lambda t: t.project_id == project_id)

    def find_by_status(self, user_id: str, status: TaskStatus) -> list[Task]:
        return self._where(lambda t: t.user_id == user_id and t.status == status)

    def find_completed(self, user_id: str) -> list[Task]:
        return self.find_by_status(user_id, TaskStatus.COMPLETED)

    def find_by_planned_date(self, user_id: str, day: str) -> list[Task]:
        return self._where(lambda t: t.user_id == user_id and t.planned_for_date == day)


def _in_range(value: datetime | None, start: datetime, end: datetime) -> bool:
    return value is not None and start <= value <= end


class TimeEntryRepository(Repository[TimeEntry]):
    entity = "TimeEntry"
    model = TimeEntry

    def find_by_user(self, user_id: str) -> list[TimeEntry]:
        return self._where(lambda e: e.user_id == user_id)

    def find_by_task(self, task_id: str) -> list[TimeEntry]:
        return self._where(lambda e: e.task_id == task_id)

    def find_by_date_range(self, user_id: str, start_iso: str, end_iso: str) -> list[TimeEntry]:
        """Entries whose start falls inside [start, end], newest first."""
        start, end = parse_iso(start_iso), parse_iso(end_iso)
        rows = self._where(lambda e: e.user_id == user_id and _in_range(e.started_at, start, end))
        return sorted(rows, key=lambda e: e.started_at, reverse=True)

    def find_active(self, user_id: str) -> TimeEntry | None:
        running = self._where(lambda e: e.user_id == user_id and e.ended_at is None)
        return max(running, key=lambda e: e.started_at) if running else None


class BreakRepository(Repository[Break]):
    entity = "Break"
    model = Break

    def find_by_user(self, user_id: str) -> list[Break]:
        return self._where(lambda b: b.user_id == user_id)

    def find_active(self, user_id: str) -> Break | None:
        running = self._where(lambda b: b.user_id == user_id and b.ended_at is None)
        return running[0] if running else None


class WorkSessionRepository(Repository[WorkSession]):
    entity = "WorkSession"
    model = WorkSession

    def find_by_user(self, user_id: str) -> list[WorkSession]:
        return self._where(lambda s: s.user_id == user_id)

    def find_by_workspace(self, workspace_id: str) -> list[WorkSession]:
        return self._where(lambda s: s.workspace_id == workspace_id)

    def find_active(self, user_id: str) -> WorkSession | None:
        open_sessions = self._where(lambda s: s.user_id == user_id and s.is_open)
        return open_sessions[0] if open_sessions else None


class GoalRepository(Repository[Goal]):
    entity = "Goal"
    model = Goal

    def find_by_user(self, user_id: str) -> list[Goal]:
        return self._where(lambda g: g.user_id == user_id)


class PointsLedgerRepository(Repository[PointsLedgerEntry]):
    entity = "PointsLedgerEntry"
    model = PointsLedgerEntry

    def find_by_user(self, user_id: str) -> list[PointsLedgerEntry]:
        return self._where(lambda p: p.user_id == user_id)

    def add(self, user_id: str, points: int, reason: str = "", created_at: datetime | None = None) -> PointsLedgerEntry:
        return self.create(PointsLedgerEntry(user_id=user_id, points=points, reason=reason, created_at=created_at))


class DailySummaryRepository(Repository[DailySummary]):
    entity = "DailySummary"
    model = DailySummary

    def find_by_user(self, user_id: str) -> list[DailySummary]:
        return self._where(lambda s: s.user_id == user_id)

    def find_by_date(self, user_id: str, day: str) -> DailySummary | None:
        rows = self._where(lambda s: s.user_id == user_id and s.date == day)
        return rows[0] if rows else None

    def find_recent(self, user_id: str, limit: int) -> list[DailySummary]:
        """The *limit* most recent summaries, newest first."""
        rows = sorted(self.find_by_user(user_id), key=lambda s: s.date, reverse=True)
        return rows[:limit]

    def upsert(self, summary: DailySummary) -> DailySummary:
        with self._lock:
            existing = self.find_by_date(summary.user_id, summary.date)
            if existing is None:
                return self.create(summary)
            fields = {k: v for k, v in vars(summary).items() if k not in ("id", "created_at")}
            return self.update(existing.id, fields)

