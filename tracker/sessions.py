"""Work-session, timer and break state machines.

These are pure: each function takes the current record and returns the
fields to persist, or raises. Enforcing "one active instance per user" needs
a read of the user's other records first; that lives in the facades.

Work session::

    ACTIVE --pause--> PAUSED --resume--> ACTIVE
    ACTIVE|PAUSED --clock_out--> COMPLETED   (terminal)

Timer and break::

    RUNNING --stop--> STOPPED                (terminal)
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Iterable

from tracker.clock import elapsed_ms
from tracker.errors import AlreadyStopped, InvalidTransition, ValidationFailed
from tracker.models import Break, TimeEntry, WorkSession, WorkSessionStatus
from tracker.rounding import round_half_up

MS_PER_MINUTE = 60_000


class SessionAction(str, Enum):
    PAUSE = "pause"
    RESUME = "resume"
    CLOCK_OUT = "clock_out"


WORK_SESSION_TRANSITIONS: dict[tuple[WorkSessionStatus, SessionAction], WorkSessionStatus] = {
    (WorkSessionStatus.ACTIVE, SessionAction.PAUSE): WorkSessionStatus.PAUSED,
    (WorkSessionStatus.PAUSED, SessionAction.RESUME): WorkSessionStatus.ACTIVE,
    (WorkSessionStatus.ACTIVE, SessionAction.CLOCK_OUT): WorkSessionStatus.COMPLETED,
    (WorkSessionStatus.PAUSED, SessionAction.CLOCK_OUT): WorkSessionStatus.COMPLETED,
}


# ── Work session ──────────────────────────────────────────────


def next_session_status(status: WorkSessionStatus, action: SessionAction) -> WorkSessionStatus:
    """Look up the target state; any pair not in the table is rejected."""
    target = WORK_SESSION_TRANSITIONS.get((status, action))
    if target is None:
        raise InvalidTransition("work session", status.value, action.value)
    return target


def transition_work_session(session: WorkSession, action: SessionAction, now: datetime) -> dict[str, Any]:
    """Fields to persist for *action* applied to *session*."""
    fields: dict[str, Any] = {"status": next_session_status(session.status, action)}
    if action == SessionAction.CLOCK_OUT:
        fields["clocked_out_at"] = now
    return fields


# ── Timer / break duration math ───────────────────────────────


def _check_stop_time(started_at: datetime | None, ended_at: datetime) -> None:
    if started_at is not None and ended_at < started_at:
        raise ValidationFailed("endedAt", "End time cannot be before start time")


def entry_minutes(entry: TimeEntry) -> int:
    """Whole minutes tracked by a stopped entry (truncated); 0 while running."""
    if entry.ended_at is None or entry.started_at is None:
        return 0
    return elapsed_ms(entry.started_at, entry.ended_at) // MS_PER_MINUTE


def total_tracked_minutes(entries: Iterable[TimeEntry]) -> int:
    """Per-entry whole minutes, summed. Running entries count as 0."""
    return sum(entry_minutes(e) for e in entries)


def stop_time_entry(entry: TimeEntry, ended_at: datetime) -> dict[str, Any]:
    if entry.ended_at is not None:
        raise AlreadyStopped("time entry", entry.id)
    _check_stop_time(entry.started_at, ended_at)
    return {"ended_at": ended_at}


def break_duration_minutes(started_at: datetime, ended_at: datetime) -> int:
    """Break length rounded half up to the nearest minute."""
    return round_half_up(elapsed_ms(started_at, ended_at) / MS_PER_MINUTE)


def stop_break(brk: Break, ended_at: datetime) -> dict[str, Any]:
    if brk.ended_at is not None:
        raise AlreadyStopped("break", brk.id)
    _check_stop_time(brk.started_at, ended_at)
    return {
        "ended_at": ended_at,
        "duration_minutes": break_duration_minutes(brk.started_at, ended_at),
    }
