# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Per-church generation lock.

Only one generation may run per church at a time; different churches
never block each other.

The registry lives in process memory, so it serializes generations inside
one worker only. Several uvicorn workers sharing a database can still run
the same church concurrently; deploy with a single worker per database
when that matters.
"""

import threading
from contextlib import contextmanager
from typing import Iterator

from rodizio.core.exceptions import GenerationInProgressError


class ChurchLockRegistry:
    """Non-blocking, per-church mutual exclusion."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}

    def _lock_for(self, church_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(church_id)
            if lock is None:
                lock = self._locks[church_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, church_id: int) -> Iterator[None]:
        """Raises GenerationInProgressError if the church is already locked."""
        lock = self._lock_for(church_id)
        if not lock.acquire(blocking=False):
            raise GenerationInProgressError(church_id)
        try:
            yield
        finally:
            lock.release()

    def is_locked(self, church_id: int) -> bool:
        return self._lock_for(church_id).locked()
