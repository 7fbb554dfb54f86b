"""Work sessions: clock in, pause, resume, clock out.

A user has at most one open (ACTIVE or PAUSED) session across all
workspaces. COMPLETED is terminal.
"""

from __future__ import annotations

import logging

from tracker.clock import Clock, utc_now
from tracker.errors import ConflictingActiveSession, NotFound
from tracker.locks import UserLocks, maybe_hold
from tracker.models import WorkSession, WorkSessionStatus
from tracker.sessions import SessionAction, transition_work_session
from tracker.validation import parse_date, require_string, sanitize_fields

logger = logging.getLogger(__name__)


class WorkSessionService:
    def __init__(self, work_sessions, clock: Clock = utc_now, locks: UserLocks | None = None):
        self.work_sessions = work_sessions
        self.clock = clock
        self.locks = locks

    def clock_in(self, user_id: str, workspace_id: str) -> WorkSession:
        params = sanitize_fields({"user_id": user_id, "workspace_id": workspace_id})
        user_id = require_string("userId", params["user_id"], "User ID")
        workspace_id = require_string("workspaceId", params["workspace_id"], "Workspace ID")

        with maybe_hold(self.locks, user_id):
            active = self.find_active(user_id)
            if active is not None:
                logger.debug("Rejected clock-in for %s: session %s is open", user_id, active.id)
                raise ConflictingActiveSession(user_id, active.id)
            now = self.clock()
            session = self.work_sessions.create(WorkSession(
                user_id=user_id,
                workspace_id=workspace_id,
                status=WorkSessionStatus.ACTIVE,
                clocked_in_at=now,
                clocked_out_at=None,
                date=now.date().isoformat(),
            ))
        logger.info("Clocked in %s (session %s, workspace %s)", user_id, session.id, workspace_id)
        return session

    def _apply(self, session_id: str, action: SessionAction) -> WorkSession:
        session_id = require_string("sessionId", session_id, "Session ID")
        session = self.work_sessions.find_by_id(session_id)
        if session is None:
            raise NotFound("WorkSession", session_id)

        with maybe_hold(self.locks, session.user_id):
            session = self.work_sessions.find_by_id(session_id)
            if session is None:
                raise NotFound("WorkSession", session_id)
            fields = transition_work_session(session, action, self.clock())
            updated = self.work_sessions.update(session_id, fields)
        logger.info("Work session %s: %s -> %s", session_id, session.status.value, updated.status.value)
        return updated

    def pause(self, session_id: str) -> WorkSession:
        return self._apply(session_id, SessionAction.PAUSE)

    def resume(self, session_id: str) -> WorkSession:
        return self._apply(session_id, SessionAction.RESUME)

    def clock_out(self, session_id: str) -> WorkSession:
        return self._apply(session_id, SessionAction.CLOCK_OUT)

    def find_active(self, user_id: str) -> WorkSession | None:
        """The user's ACTIVE or PAUSED session, in any workspace."""
        return self.work_sessions.find_active(user_id)

    def day_session(self, user_id: str, day: str) -> WorkSession | None:
        wanted = parse_date("date", day).isoformat()
        for session in self.work_sessions.find_by_user(user_id):
            if session.date == wanted:
                return session
        return None
