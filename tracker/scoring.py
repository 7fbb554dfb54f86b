"""Productivity scoring: per-task points, efficiency, daily score and trend.

Formula::

    base_points      = difficulty_multiplier * (progress / 100)
    efficiency_bonus = 20% of base if finished under the estimate
    focus_bonus      = 10% of base if 3+ task types were worked today
    total_points     = round(base + efficiency + focus)

The component values are rounded to one decimal for display only; the total
is computed from the unrounded components.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable

from tracker.clock import Clock, end_of_day, start_of_day, to_iso, utc_now
from tracker.errors import ValidationFailed
from tracker.models import DailySummary, Task, TaskDifficulty, TaskStatus
from tracker.rounding import round_half_up, round_to_hundredth, round_to_tenth
from tracker.sessions import total_tracked_minutes
from tracker.validation import parse_date, require_string

logger = logging.getLogger(__name__)


DIFFICULTY_MULTIPLIERS: dict[TaskDifficulty, int] = {
    TaskDifficulty.TRIVIAL: 1,
    TaskDifficulty.EASY: 2,
    TaskDifficulty.MEDIUM: 3,
    TaskDifficulty.HARD: 5,
    TaskDifficulty.EXTREME: 8,
}

EFFICIENCY_BONUS_RATE = 0.2
FOCUS_BONUS_RATE = 0.1
FOCUS_BONUS_MIN_TASK_TYPES = 3

# Highest matching threshold wins.
EFFICIENCY_LABELS: list[tuple[float, str]] = [
    (1.5, "Exceptional"),
    (1.2, "Excellent"),
    (1.0, "Good"),
    (0.8, "Fair"),
]
EFFICIENCY_FLOOR_LABEL = "Needs Improvement"


@dataclass
class ScoringContext:
    task_types_worked_today: int = 0


@dataclass
class TaskScore:
    base_points: float = 0.0
    efficiency_bonus: float = 0.0
    focus_bonus: float = 0.0
    total_points: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "basePoints": self.base_points,
            "efficiencyBonus": self.efficiency_bonus,
            "focusBonus": self.focus_bonus,
            "totalPoints": self.total_points,
        }


def difficulty_multiplier(difficulty: TaskDifficulty) -> int:
    try:
        return DIFFICULTY_MULTIPLIERS[difficulty]
    except KeyError:
        raise ValidationFailed("difficulty", f"Invalid difficulty: {difficulty!r}") from None


# ── Engine ────────────────────────────────────────────────────


def calculate_task_score(task: Task, context: ScoringContext) -> TaskScore:
    base = difficulty_multiplier(task.difficulty) * (task.progress / 100)

    efficiency = 0.0
    if (
        task.progress == 100
        and task.estimated_minutes
        and task.actual_minutes < task.estimated_minutes
    ):
        efficiency = base * EFFICIENCY_BONUS_RATE

    focus = 0.0
    if context.task_types_worked_today >= FOCUS_BONUS_MIN_TASK_TYPES:
        focus = base * FOCUS_BONUS_RATE

    return TaskScore(
        base_points=round_to_tenth(base),
        efficiency_bonus=round_to_tenth(efficiency),
        focus_bonus=round_to_tenth(focus),
        total_points=round_half_up(base + efficiency + focus),
    )


def calculate_efficiency(task: Task) -> float:
    """estimated / actual; 1.0 without an estimate or without tracked time.

    Above 1.0 means the task finished under its estimate.
    """
    if not task.estimated_minutes or task.actual_minutes == 0:
        return 1.0
    return task.estimated_minutes / task.actual_minutes


def efficiency_label(ratio: float) -> str:
    for threshold, label in EFFICIENCY_LABELS:
        if ratio >= threshold:
            return label
    return EFFICIENCY_FLOOR_LABEL


def calculate_daily_score(completed_tasks: Iterable[Task], context: ScoringContext) -> int:
    return sum(calculate_task_score(t, context).total_points for t in completed_tasks)


def calculate_trend(today_score: float, average_score: float) -> float:
    """Today's score as a multiple of the average; 1.0 with no average."""
    if average_score == 0:
        return 1.0
    return today_score / average_score


def trend_percentage(trend: float) -> int:
    return round_half_up((trend - 1) * 100)


def trend_label(trend: float) -> str:
    pct = trend_percentage(trend)
    if pct > 20:
        return f"{pct}% above your average, great focus today!"
    if pct > 0:
        return f"{pct}% above your average"
    if pct == 0:
        return "Right on your average"
    if pct > -20:
        return f"{abs(pct)}% below your average"
    return f"{abs(pct)}% below your average, take it easy"


def average_efficiency(tasks: Iterable[Task]) -> float:
    """Mean efficiency over tasks with an estimate and tracked time, 2 decimals."""
    rated = [t for t in tasks if t.estimated_minutes and t.actual_minutes > 0]
    if not rated:
        return 1.0
    return round_to_hundredth(sum(calculate_efficiency(t) for t in rated) / len(rated))


# ── Facade ────────────────────────────────────────────────────


class ScoringService:
    """Daily summaries and trends built from tasks and time entries."""

    def __init__(self, tasks, time_entries, summaries=None, clock: Clock = utc_now):
        self.tasks = tasks
        self.time_entries = time_entries
        self.summaries = summaries
        self.clock = clock

    def _day_entries(self, user_id: str, day: date):
        return self.time_entries.find_by_date_range(
            user_id, to_iso(start_of_day(day)), to_iso(end_of_day(day))
        )

    def _tasks_for(self, task_ids: Iterable[str]) -> list[Task]:
        found = (self.tasks.find_by_id(tid) for tid in task_ids)
        return [t for t in found if t is not None]

    def task_types_worked_today(self, user_id: str, day: str | date) -> int:
        """Distinct task types among tasks with time tracked on *day*."""
        require_string("userId", user_id, "User ID")
        d = parse_date("date", day)
        task_ids = dict.fromkeys(e.task_id for e in self._day_entries(user_id, d))
        types = {t.task_type_id for t in self._tasks_for(task_ids) if t.task_type_id}
        return len(types)

    def daily_summary(self, user_id: str, day: str | date) -> DailySummary:
        require_string("userId", user_id, "User ID")
        d = parse_date("date", day)
        entries = self._day_entries(user_id, d)
        worked = self._tasks_for(dict.fromkeys(e.task_id for e in entries))
        completed = [t for t in worked if t.status == TaskStatus.COMPLETED]
        context = ScoringContext(
            task_types_worked_today=len({t.task_type_id for t in worked if t.task_type_id})
        )
        return DailySummary(
            user_id=user_id,
            date=d.isoformat(),
            tasks_completed=len(completed),
            tasks_worked_on=len(worked),
            total_points=calculate_daily_score(completed, context),
            focus_minutes=total_tracked_minutes(entries),
            efficiency_rating=average_efficiency(worked),
        )

    def save_daily_summary(self, user_id: str, day: str | date, standout_moment: str | None = None) -> DailySummary:
        summary = self.daily_summary(user_id, day)
        summary.standout_moment = standout_moment or None
        saved = self.summaries.upsert(summary)
        logger.info("Saved daily summary for %s on %s (%d points)", user_id, saved.date, saved.total_points)
        return saved

    def average_score(self, user_id: str, days: int = 30) -> float:
        """Mean total points over the user's *days* most recent summaries."""
        recent = self.summaries.find_recent(user_id, days)
        if not recent:
            return 0.0
        return sum(s.total_points for s in recent) / len(recent)

    def daily_trend(self, user_id: str, day: str | date | None = None, days: int = 30) -> dict[str, Any]:
        """Compare the day's score with the average of the preceding *days* summaries."""
        d = parse_date("date", day) if day is not None else self.clock().date()
        today = self.daily_summary(user_id, d).total_points
        earlier = [
            s for s in self.summaries.find_recent(user_id, days + 1) if s.date < d.isoformat()
        ][:days]
        average = sum(s.total_points for s in earlier) / len(earlier) if earlier else 0.0
        trend = calculate_trend(today, average)
        return {
            "todayScore": today,
            "averageScore": average,
            "trend": trend,
            "percentage": trend_percentage(trend),
            "label": trend_label(trend),
        }
