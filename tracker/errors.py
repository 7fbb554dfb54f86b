"""Typed error conditions raised by the tracker engines and facades.

Every error carries a stable ``code`` so callers can branch on the kind
instead of parsing messages.
"""

from __future__ import annotations


class TrackerError(Exception):
    code = "TRACKER_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ── Input ─────────────────────────────────────────────────────


class ValidationFailed(TrackerError):
    """Malformed or missing input, raised before any collaborator call."""

    code = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class InvalidBreakType(ValidationFailed):
    def __init__(self, value: object):
        super().__init__("type", f"Invalid break type: {value!r}")
        self.value = value


# ── Lookup & ownership ────────────────────────────────────────


class NotFound(TrackerError):
    code = "NOT_FOUND"

    def __init__(self, entity: str, id: str):
        super().__init__(f"{entity} not found: {id}")
        self.entity = entity
        self.id = id


class Forbidden(TrackerError):
    code = "FORBIDDEN"


# ── Single active instance per user ───────────────────────────


class ConflictingActive(TrackerError):
    code = "CONFLICT"
    entity = "record"

    def __init__(self, user_id: str, active_id: str = ""):
        super().__init__(f"User {user_id} already has an active {self.entity}")
        self.user_id = user_id
        self.active_id = active_id


class ConflictingActiveSession(ConflictingActive):
    entity = "work session"


class ConflictingActiveEntry(ConflictingActive):
    entity = "time entry"


class ConflictingActiveBreak(ConflictingActive):
    entity = "break"


# ── State machines ────────────────────────────────────────────


class InvalidTransition(TrackerError):
    code = "INVALID_TRANSITION"

    def __init__(self, entity: str, state: str, action: str):
        super().__init__(f"Cannot {action} {entity} in state {state}")
        self.entity = entity
        self.state = state
        self.action = action


class AlreadyStopped(InvalidTransition):
    def __init__(self, entity: str, id: str):
        super().__init__(entity, "STOPPED", "stop")
        self.id = id
        self.message = f"{entity} {id} is already stopped"
        self.args = (self.message,)


# ── Task hierarchy ────────────────────────────────────────────


class HierarchyError(TrackerError):
    code = "HIERARCHY_ERROR"


class HierarchyDepthExceeded(HierarchyError):
    def __init__(self, parent_id: str, max_depth: int = 2):
        super().__init__(
            f"Cannot create sub-task under {parent_id}: "
            f"maximum nesting depth ({max_depth} levels) reached"
        )
        self.parent_id = parent_id


class InvalidParentState(HierarchyError):
    def __init__(self, parent_id: str, status: str):
        super().__init__(f"Cannot create sub-task under {parent_id} with status {status}")
        self.parent_id = parent_id
        self.status = status
