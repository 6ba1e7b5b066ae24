"""Per-user locks that serialize resolution passes."""

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator


@dataclass
class _UserLock:
    lock: threading.RLock = field(default_factory=threading.RLock)
    holders: int = 0  # passes holding or waiting for the lock


class UserLockRegistry:
    """
    Hands out one re-entrant lock per user id.

    Two passes for the same user run one after the other, so the
    read-merge-write of the consent record cannot lose updates. Passes for
    different users do not block each other.

    A user's lock only lives while some pass holds or waits for it, so the
    registry is bounded by the number of concurrent passes, not by the
    number of users seen.
    """

    def __init__(self):
        self._locks: dict[str, _UserLock] = {}
        self._lock = threading.Lock()

    @contextmanager
    def hold(self, user_id: str) -> Iterator[threading.RLock]:
        """Hold the lock for a user for the duration of the block."""
        with self._lock:
            entry = self._locks.get(user_id)
            if entry is None:
                entry = self._locks[user_id] = _UserLock()
            entry.holders += 1

        try:
            with entry.lock:
                yield entry.lock
        finally:
            with self._lock:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._locks[user_id]

    def __len__(self) -> int:
        with self._lock:
            return len(self._locks)
