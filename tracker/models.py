"""Typed dataclasses for the tracker data model.

All models use from_dict/to_dict for JSON/YAML serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
Timestamps are aware UTC datetimes, serialized as '2026-02-12T09:00:00.000Z'.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from tracker.clock import iso_or_none, parse_optional


def _get(d: dict[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    """Read a key in either camelCase or snake_case."""
    if camel in d:
        return d[camel]
    return d.get(snake, default)


def _opt_int(value: Any) -> int | None:
    return int(value) if value is not None else None


# ── Enumerations ──────────────────────────────────────────────


class TaskDifficulty(str, Enum):
    TRIVIAL = "TRIVIAL"
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"
    EXTREME = "EXTREME"


class TaskStatus(str, Enum):
    BACKLOG = "BACKLOG"
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    ARCHIVED = "ARCHIVED"


class BreakType(str, Enum):
    COFFEE = "COFFEE"
    WALK = "WALK"
    LUNCH = "LUNCH"
    STRETCH = "STRETCH"
    CUSTOM = "CUSTOM"


class WorkSessionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"


class GoalType(str, Enum):
    TASKS_COMPLETED = "TASKS_COMPLETED"
    FOCUS_MINUTES = "FOCUS_MINUTES"
    POINTS_EARNED = "POINTS_EARNED"
    CUSTOM = "CUSTOM"


class GoalPeriod(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"


# ── Projects & Tasks ──────────────────────────────────────────


@dataclass
class Project:
    id: str = ""
    user_id: str = ""
    workspace_id: str = ""
    name: str = ""
    created_at: datetime | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Project:
        return cls(
            id=str(d.get("id", "")),
            user_id=str(_get(d, "userId", "user_id", "")),
            workspace_id=str(_get(d, "workspaceId", "workspace_id", "")),
            name=str(d.get("name", "")),
            created_at=parse_optional(_get(d, "createdAt", "created_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "workspaceId": self.workspace_id,
            "name": self.name,
            "createdAt": iso_or_none(self.created_at),
        }


@dataclass
class Task:
    id: str = ""
    user_id: str = ""
    project_id: str = ""
    parent_task_id: str | None = None
    title: str = ""
    description: str | None = None
    difficulty: TaskDifficulty = TaskDifficulty.MEDIUM
    progress: int = 0
    status: TaskStatus = TaskStatus.BACKLOG
    # time tracking
    estimated_minutes: int | None = None
    max_minutes: int | None = None
    actual_minutes: int = 0
    # planning
    planned_for_date: str | None = None  # ISO date
    due_date: str | None = None
    task_type_id: str | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def is_subtask(self) -> bool:
        return self.parent_task_id is not None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Task:
        return cls(
            id=str(d.get("id", "")),
            user_id=str(_get(d, "userId", "user_id", "")),
            project_id=str(_get(d, "projectId", "project_id", "")),
            parent_task_id=_get(d, "parentTaskId", "parent_task_id") or None,
            title=str(d.get("title", "")),
            description=d.get("description"),
            difficulty=TaskDifficulty(d.get("difficulty", "MEDIUM")),
            progress=int(d.get("progress", 0)),
            status=TaskStatus(d.get("status", "BACKLOG")),
            estimated_minutes=_opt_int(_get(d, "estimatedMinutes", "estimated_minutes")),
            max_minutes=_opt_int(_get(d, "maxMinutes", "max_minutes")),
            actual_minutes=int(_get(d, "actualMinutes", "actual_minutes", 0) or 0),
            planned_for_date=_get(d, "plannedForDate", "planned_for_date"),
            due_date=_get(d, "dueDate", "due_date"),
            task_type_id=_get(d, "taskTypeId", "task_type_id"),
            completed_at=parse_optional(_get(d, "completedAt", "completed_at")),
            created_at=parse_optional(_get(d, "createdAt", "created_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "projectId": self.project_id,
            "parentTaskId": self.parent_task_id,
            "title": self.title,
            "description": self.description,
            "difficulty": self.difficulty.value,
            "progress": self.progress,
            "status": self.status.value,
            "estimatedMinutes": self.estimated_minutes,
            "maxMinutes": self.max_minutes,
            "actualMinutes": self.actual_minutes,
            "plannedForDate": self.planned_for_date,
            "dueDate": self.due_date,
            "taskTypeId": self.task_type_id,
            "completedAt": iso_or_none(self.completed_at),
            "createdAt": iso_or_none(self.created_at),
        }


# ── Time tracking ─────────────────────────────────────────────


@dataclass
class TimeEntry:
    id: str = ""
    task_id: str = ""
    user_id: str = ""
    started_at: datetime | None = None
    ended_at: datetime | None = None  # None while the timer runs
    created_at: datetime | None = None

    @property
    def is_running(self) -> bool:
        return self.ended_at is None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TimeEntry:
        return cls(
            id=str(d.get("id", "")),
            task_id=str(_get(d, "taskId", "task_id", "")),
            user_id=str(_get(d, "userId", "user_id", "")),
            started_at=parse_optional(_get(d, "startedAt", "started_at")),
            ended_at=parse_optional(_get(d, "endedAt", "ended_at")),
            created_at=parse_optional(_get(d, "createdAt", "created_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "taskId": self.task_id,
            "userId": self.user_id,
            "startedAt": iso_or_none(self.started_at),
            "endedAt": iso_or_none(self.ended_at),
            "createdAt": iso_or_none(self.created_at),
        }


@dataclass
class Break:
    id: str = ""
    user_id: str = ""
    type: BreakType = BreakType.CUSTOM
    started_at: datetime | None = None
    ended_at: datetime | None = None
    duration_minutes: int | None = None
    created_at: datetime | None = None

    @property
    def is_running(self) -> bool:
        return self.ended_at is None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Break:
        return cls(
            id=str(d.get("id", "")),
            user_id=str(_get(d, "userId", "user_id", "")),
            type=BreakType(d.get("type", "CUSTOM")),
            started_at=parse_optional(_get(d, "startedAt", "started_at")),
            ended_at=parse_optional(_get(d, "endedAt", "ended_at")),
            duration_minutes=_opt_int(_get(d, "durationMinutes", "duration_minutes")),
            created_at=parse_optional(_get(d, "createdAt", "created_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "type": self.type.value,
            "startedAt": iso_or_none(self.started_at),
            "endedAt": iso_or_none(self.ended_at),
            "durationMinutes": self.duration_minutes,
            "createdAt": iso_or_none(self.created_at),
        }


@dataclass
class WorkSession:
    id: str = ""
    user_id: str = ""
    workspace_id: str = ""
    status: WorkSessionStatus = WorkSessionStatus.ACTIVE
    clocked_in_at: datetime | None = None
    clocked_out_at: datetime | None = None
    date: str = ""  # YYYY-MM-DD the session belongs to
    created_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.status in (WorkSessionStatus.ACTIVE, WorkSessionStatus.PAUSED)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> WorkSession:
        return cls(
            id=str(d.get("id", "")),
            user_id=str(_get(d, "userId", "user_id", "")),
            workspace_id=str(_get(d, "workspaceId", "workspace_id", "")),
            status=WorkSessionStatus(d.get("status", "ACTIVE")),
            clocked_in_at=parse_optional(_get(d, "clockedInAt", "clocked_in_at")),
            clocked_out_at=parse_optional(_get(d, "clockedOutAt", "clocked_out_at")),
            date=str(d.get("date", "")),
            created_at=parse_optional(_get(d, "createdAt", "created_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "workspaceId": self.workspace_id,
            "status": self.status.value,
            "clockedInAt": iso_or_none(self.clocked_in_at),
            "clockedOutAt": iso_or_none(self.clocked_out_at),
            "date": self.date,
            "createdAt": iso_or_none(self.created_at),
        }


# ── Goals & Points ────────────────────────────────────────────


@dataclass
class Goal:
    id: str = ""
    user_id: str = ""
    workspace_id: str = ""
    type: GoalType = GoalType.CUSTOM
    target_value: float = 0
    period: GoalPeriod = GoalPeriod.DAILY
    is_active: bool = True
    created_at: datetime | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Goal:
        return cls(
            id=str(d.get("id", "")),
            user_id=str(_get(d, "userId", "user_id", "")),
            workspace_id=str(_get(d, "workspaceId", "workspace_id", "")),
            type=GoalType(d.get("type", "CUSTOM")),
            target_value=_get(d, "targetValue", "target_value", 0),
            period=GoalPeriod(d.get("period", "DAILY")),
            is_active=bool(_get(d, "isActive", "is_active", True)),
            created_at=parse_optional(_get(d, "createdAt", "created_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "workspaceId": self.workspace_id,
            "type": self.type.value,
            "targetValue": self.target_value,
            "period": self.period.value,
            "isActive": self.is_active,
            "createdAt": iso_or_none(self.created_at),
        }


@dataclass
class PointsLedgerEntry:
    id: str = ""
    user_id: str = ""
    points: int = 0
    reason: str = ""
    created_at: datetime | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> PointsLedgerEntry:
        return cls(
            id=str(d.get("id", "")),
            user_id=str(_get(d, "userId", "user_id", "")),
            points=int(d.get("points", 0)),
            reason=str(d.get("reason", "")),
            created_at=parse_optional(_get(d, "createdAt", "created_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "points": self.points,
            "reason": self.reason,
            "createdAt": iso_or_none(self.created_at),
        }


# ── Summaries ─────────────────────────────────────────────────


@dataclass
class DailySummary:
    id: str = ""
    user_id: str = ""
    date: str = ""
    tasks_completed: int = 0
    tasks_worked_on: int = 0
    total_points: int = 0
    focus_minutes: int = 0
    efficiency_rating: float = 1.0
    standout_moment: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> DailySummary:
        return cls(
            id=str(d.get("id", "")),
            user_id=str(_get(d, "userId", "user_id", "")),
            date=str(d.get("date", "")),
            tasks_completed=int(_get(d, "tasksCompleted", "tasks_completed", 0)),
            tasks_worked_on=int(_get(d, "tasksWorkedOn", "tasks_worked_on", 0)),
            total_points=int(_get(d, "totalPoints", "total_points", 0)),
            focus_minutes=int(_get(d, "focusMinutes", "focus_minutes", 0)),
            efficiency_rating=float(_get(d, "efficiencyRating", "efficiency_rating", 1.0)),
            standout_moment=_get(d, "standoutMoment", "standout_moment"),
            created_at=parse_optional(_get(d, "createdAt", "created_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "date": self.date,
            "tasksCompleted": self.tasks_completed,
            "tasksWorkedOn": self.tasks_worked_on,
            "totalPoints": self.total_points,
            "focusMinutes": self.focus_minutes,
            "efficiencyRating": self.efficiency_rating,
            "standoutMoment": self.standout_moment,
            "createdAt": iso_or_none(self.created_at),
        }


@dataclass
class BreakStats:
    total_break_minutes: int = 0
    break_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalBreakMinutes": self.total_break_minutes,
            "breakCount": self.break_count,
        }
