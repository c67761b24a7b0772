from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from courtbot_core.errors import LockTimeout


class _SenderLock:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.holders = 0


class SenderLocks:
    """Per-phone-number mutual exclusion for a single process.

    Entries are dropped once nobody holds or waits on them, so the registry
    only grows with the number of senders currently mid-request.
    """

    def __init__(self, timeout_seconds: float = 5.0) -> None:
        self.timeout_seconds = timeout_seconds
        self._guard = threading.Lock()
        self._locks: dict[str, _SenderLock] = {}

    @contextmanager
    def hold(self, phone: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(phone, _SenderLock())
            entry.holders += 1
        try:
            if not entry.lock.acquire(timeout=self.timeout_seconds):
                raise LockTimeout(
                    f"Timed out after {self.timeout_seconds}s waiting for sender lock"
                )
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    self._locks.pop(phone, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
