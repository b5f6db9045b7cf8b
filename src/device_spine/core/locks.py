"""Per-key advisory locks.

The store gives per-document atomicity only. Operations that read one
document and then write another (assignment creation reads the device,
inserts the assignment, then points the device at it) are serialized per
hardware id with :class:`KeyedLock`.

The lock is process-local. Several registry processes sharing one store
still race on the same device; see DESIGN.md.

Tags:
    device-spine, concurrency, locks
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager

from device_spine.core.errors import ErrorCode, StoreUnavailableError


class KeyedLock:
    """A family of re-entrant locks, one per key, created on demand.

    Entries are reference counted and dropped once no thread holds or waits
    on them, so the table does not grow with the number of devices ever seen.
    """

    def __init__(self, *, timeout_seconds: float = 10.0):
        self._timeout = timeout_seconds
        self._guard = threading.Lock()
        self._locks: dict[str, tuple[threading.RLock, int]] = {}

    def _checkout(self, key: str) -> threading.RLock:
        with self._guard:
            lock, users = self._locks.get(key, (None, 0))
            if lock is None:
                lock = threading.RLock()
            self._locks[key] = (lock, users + 1)
            return lock

    def _checkin(self, key: str) -> None:
        with self._guard:
            lock, users = self._locks[key]
            if users <= 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Hold the lock for *key*; raise StoreUnavailableError on timeout."""
        lock = self._checkout(key)
        try:
            if not lock.acquire(timeout=self._timeout):
                raise StoreUnavailableError(
                    f"Timed out after {self._timeout}s waiting for lock on {key!r}",
                    code=ErrorCode.LOCK_TIMEOUT,
                ).with_context(key=key)
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(key)

    @contextmanager
    def hold_many(self, *keys: str) -> Iterator[None]:
        """Hold the locks for several keys, always acquired in sorted order."""
        with ExitStack() as stack:
            for key in sorted(set(keys)):
                stack.enter_context(self.hold(key))
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


__all__ = ["KeyedLock"]
