"""Goal CRUD and progress computation.

Progress is never stored. It is recomputed on demand from tasks, time
entries or the points ledger inside the goal's current period window.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterable

from tracker.clock import Clock, end_of_day, start_of_day, to_iso, utc_now
from tracker.errors import Forbidden, NotFound, ValidationFailed
from tracker.models import (
    Goal,
    GoalPeriod,
    GoalType,
    PointsLedgerEntry,
    Task,
    TaskStatus,
    TimeEntry,
)
from tracker.rounding import round_half_up
from tracker.sessions import total_tracked_minutes
from tracker.validation import (
    check_positive,
    parse_reference,
    require_enum,
    require_string,
)

logger = logging.getLogger(__name__)


# ── Period windows ────────────────────────────────────────────


@dataclass(frozen=True)
class PeriodWindow:
    start: datetime
    end: datetime

    def contains(self, moment: datetime | None) -> bool:
        return moment is not None and self.start <= moment <= self.end

    @property
    def start_iso(self) -> str:
        return to_iso(self.start)

    @property
    def end_iso(self) -> str:
        return to_iso(self.end)


def date_range(period: GoalPeriod, reference: datetime | date | str) -> PeriodWindow:
    """UTC window for *period* containing *reference*.

    DAILY is the calendar day, WEEKLY runs Monday 00:00:00.000 through
    Sunday 23:59:59.999.
    """
    day = parse_reference("date", reference).date()
    if period == GoalPeriod.DAILY:
        return PeriodWindow(start_of_day(day), end_of_day(day))
    if period == GoalPeriod.WEEKLY:
        monday = day - timedelta(days=day.weekday())
        return PeriodWindow(start_of_day(monday), end_of_day(monday + timedelta(days=6)))
    raise ValidationFailed("period", f"Invalid goal period: {period!r}")


# ── Progress ──────────────────────────────────────────────────


@dataclass
class GoalProgress:
    goal: Goal
    current: float
    target: float
    percentage: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "goal": self.goal.to_dict(),
            "current": self.current,
            "target": self.target,
            "percentage": self.percentage,
        }


def completion_percentage(current: float, target: float) -> int:
    if target <= 0:
        return 0
    return round_half_up(current / target * 100)


def calculate_progress(
    goal: Goal,
    window: PeriodWindow,
    tasks: Iterable[Task] = (),
    time_entries: Iterable[TimeEntry] = (),
    ledger: Iterable[PointsLedgerEntry] = (),
) -> float:
    """Current value of *goal* over already-fetched records."""
    if goal.type == GoalType.TASKS_COMPLETED:
        return sum(
            1 for t in tasks
            if t.status == TaskStatus.COMPLETED and window.contains(t.completed_at)
        )
    if goal.type == GoalType.FOCUS_MINUTES:
        return total_tracked_minutes(e for e in time_entries if window.contains(e.started_at))
    if goal.type == GoalType.POINTS_EARNED:
        return sum(p.points for p in ledger if window.contains(p.created_at))
    # CUSTOM goals have no automatic tracking.
    return 0


# ── Facade ────────────────────────────────────────────────────


class GoalService:
    def __init__(self, goals, tasks, time_entries, points_ledger, clock: Clock = utc_now):
        self.goals = goals
        self.tasks = tasks
        self.time_entries = time_entries
        self.points_ledger = points_ledger
        self.clock = clock

    # CRUD

    def create(
        self,
        user_id: str,
        workspace_id: str,
        type: GoalType | str,
        target_value: float,
        period: GoalPeriod | str,
    ) -> Goal:
        user_id = require_string("userId", user_id, "User ID")
        workspace_id = require_string("workspaceId", workspace_id, "Workspace ID")
        goal_type = require_enum("type", type, GoalType, "goal type")
        goal_period = require_enum("period", period, GoalPeriod, "goal period")
        check_positive("targetValue", target_value, "Target value")

        goal = self.goals.create(Goal(
            user_id=user_id,
            workspace_id=workspace_id,
            type=goal_type,
            target_value=target_value,
            period=goal_period,
            is_active=True,
        ))
        logger.info("Created %s goal %s for %s", goal.type.value, goal.id, user_id)
        return goal

    def update(self, goal_id: str, **params: Any) -> Goal:
        unknown = set(params) - {"type", "target_value", "period", "is_active"}
        if unknown:
            raise ValidationFailed(sorted(unknown)[0], f"Unknown goal field: {sorted(unknown)[0]}")
        updates: dict[str, Any] = {}
        if params.get("type") is not None:
            updates["type"] = require_enum("type", params["type"], GoalType, "goal type")
        if params.get("target_value") is not None:
            check_positive("targetValue", params["target_value"], "Target value")
            updates["target_value"] = params["target_value"]
        if params.get("period") is not None:
            updates["period"] = require_enum("period", params["period"], GoalPeriod, "goal period")
        if params.get("is_active") is not None:
            updates["is_active"] = bool(params["is_active"])

        if self.goals.find_by_id(goal_id) is None:
            raise NotFound("Goal", goal_id)
        return self.goals.update(goal_id, updates)

    def delete(self, goal_id: str) -> None:
        if self.goals.find_by_id(goal_id) is None:
            raise NotFound("Goal", goal_id)
        self.goals.delete(goal_id)
        logger.info("Deleted goal %s", goal_id)

    def find_by_user(self, user_id: str) -> list[Goal]:
        return self.goals.find_by_user(user_id)

    # Progress

    def _current(self, user_id: str, goal: Goal, reference: datetime) -> float:
        window = date_range(goal.period, reference)
        if goal.type == GoalType.TASKS_COMPLETED:
            return calculate_progress(goal, window, tasks=self.tasks.find_by_user(user_id))
        if goal.type == GoalType.FOCUS_MINUTES:
            entries = self.time_entries.find_by_date_range(user_id, window.start_iso, window.end_iso)
            return calculate_progress(goal, window, time_entries=entries)
        if goal.type == GoalType.POINTS_EARNED:
            return calculate_progress(goal, window, ledger=self.points_ledger.find_by_user(user_id))
        return calculate_progress(goal, window)

    def _reference(self, reference: datetime | date | str | None) -> datetime:
        return parse_reference("date", reference) if reference is not None else self.clock()

    def _progress(self, user_id: str, goal: Goal, reference: datetime) -> GoalProgress:
        current = self._current(user_id, goal, reference)
        return GoalProgress(
            goal=goal,
            current=current,
            target=goal.target_value,
            percentage=completion_percentage(current, goal.target_value),
        )

    def get_progress(self, user_id: str, goal_id: str, reference: datetime | date | str | None = None) -> GoalProgress:
        ref = self._reference(reference)
        goal = self.goals.find_by_id(goal_id)
        if goal is None:
            raise NotFound("Goal", goal_id)
        if goal.user_id != user_id:
            raise Forbidden(f"Goal {goal_id} does not belong to user {user_id}")
        return self._progress(user_id, goal, ref)

    def get_all_goal_statuses(self, user_id: str, reference: datetime | date | str | None = None) -> list[GoalProgress]:
        """Progress for every active goal, in the order the collaborator returned them."""
        ref = self._reference(reference)
        return [
            self._progress(user_id, goal, ref)
            for goal in self.goals.find_by_user(user_id)
            if goal.is_active
        ]
