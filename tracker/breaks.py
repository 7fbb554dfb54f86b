"""Break tracking: start/end breaks and per-day break statistics."""

from __future__ import annotations

import logging
from datetime import date, datetime

from tracker.clock import Clock, end_of_day, start_of_day, utc_now
from tracker.errors import ConflictingActiveBreak, InvalidBreakType, NotFound
from tracker.locks import UserLocks, maybe_hold
from tracker.models import Break, BreakStats, BreakType
from tracker.sessions import stop_break
from tracker.validation import parse_date, parse_timestamp, require_string

logger = logging.getLogger(__name__)


def validate_break_type(value: BreakType | str | None) -> BreakType:
    """Coerce *value* to a BreakType; anything else, missing included, is invalid."""
    if isinstance(value, BreakType):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidBreakType(value)
    try:
        return BreakType(value)
    except ValueError:
        raise InvalidBreakType(value) from None


def summarize_breaks(breaks: list[Break], day: date) -> BreakStats:
    """Totals over completed breaks that started on the UTC *day*."""
    start, end = start_of_day(day), end_of_day(day)
    finished = [
        b for b in breaks
        if b.started_at is not None and start <= b.started_at <= end and b.duration_minutes is not None
    ]
    return BreakStats(
        total_break_minutes=sum(b.duration_minutes for b in finished),
        break_count=len(finished),
    )


class BreakService:
    def __init__(self, breaks, clock: Clock = utc_now, locks: UserLocks | None = None):
        self.breaks = breaks
        self.clock = clock
        self.locks = locks

    def start_break(self, user_id: str, type: BreakType | str, started_at: datetime | str | None = None) -> Break:
        user_id = require_string("userId", user_id, "User ID")
        break_type = validate_break_type(type)
        when = parse_timestamp("startedAt", started_at) if started_at is not None else self.clock()

        with maybe_hold(self.locks, user_id):
            active = self.find_active(user_id)
            if active is not None:
                logger.debug("Rejected break start for %s: %s is running", user_id, active.id)
                raise ConflictingActiveBreak(user_id, active.id)
            brk = self.breaks.create(Break(
                user_id=user_id,
                type=break_type,
                started_at=when,
                ended_at=None,
                duration_minutes=None,
            ))
        logger.info("Started %s break %s for %s", break_type.value, brk.id, user_id)
        return brk

    def end_break(self, break_id: str, ended_at: datetime | str | None = None) -> Break:
        break_id = require_string("breakId", break_id, "Break ID")
        when = parse_timestamp("endedAt", ended_at) if ended_at is not None else self.clock()

        brk = self.breaks.find_by_id(break_id)
        if brk is None:
            raise NotFound("Break", break_id)
        with maybe_hold(self.locks, brk.user_id):
            brk = self.breaks.find_by_id(break_id)
            if brk is None:
                raise NotFound("Break", break_id)
            ended = self.breaks.update(break_id, stop_break(brk, when))
        logger.info("Ended break %s after %d min", break_id, ended.duration_minutes)
        return ended

    def find_active(self, user_id: str) -> Break | None:
        user_id = require_string("userId", user_id, "User ID")
        return self.breaks.find_active(user_id)

    def break_stats(self, user_id: str, day: str | date) -> BreakStats:
        user_id = require_string("userId", user_id, "User ID")
        d = parse_date("date", day)
        return summarize_breaks(self.breaks.find_by_user(user_id), d)
