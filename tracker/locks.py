"""Per-user serialization for check-then-act sequences.

"At most one running timer/break/session per user" is enforced by reading
the user's records and then writing. Two concurrent starts for the same user
could both see nothing running, so callers must serialize per user. Facades
constructed with a ``UserLocks`` do this themselves.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class UserLocks:
    """One re-entrant lock per user id, created on first use."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def lock_for(self, user_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = self._locks[user_id] = threading.RLock()
            return lock

    @contextmanager
    def hold(self, user_id: str) -> Iterator[None]:
        lock = self.lock_for(user_id)
        with lock:
            yield


@contextmanager
def maybe_hold(locks: UserLocks | None, user_id: str) -> Iterator[None]:
    """Hold the user's lock when *locks* is set; otherwise do nothing."""
    if locks is None:
        yield
        return
    with locks.hold(user_id):
        yield
