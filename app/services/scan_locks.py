# app/services/scan_locks.py
"""
Per-key in-process locks for the scan ledger.
Keys are per building and per (building, tag), never global, so scans for
different buildings do not wait on each other. Every acquisition is bounded;
a timeout releases whatever was taken and raises ScanContentionError.
"""

import threading
import time
from contextlib import contextmanager
from typing import Iterable, Optional

from app.services.ledger_errors import ScanContentionError
from app.utils.logger import get_logger

logger = get_logger(__name__)


def building_lock_key(building_id: str) -> str:
    return f"building:{building_id}"


def tag_lock_key(building_id: str, tag_key: str) -> str:
    return f"tag:{building_id}:{tag_key}"


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class KeyedLockRegistry:
    """Reference-counted locks, created on first use and dropped when idle."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        self._guard = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    def _checkout(self, key: str) -> _Entry:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1
            return entry

    def _checkin(self, key: str):
        with self._guard:
            entry = self._entries[key]
            entry.users -= 1
            if entry.users == 0:
                del self._entries[key]

    def active_keys(self) -> list[str]:
        with self._guard:
            return sorted(self._entries)

    @contextmanager
    def hold(self, keys: Iterable[str], timeout: Optional[float] = None):
        """Acquire all keys in sorted order, release in reverse on exit."""
        ordered = sorted(set(keys))
        budget = self.timeout if timeout is None else timeout
        deadline = time.monotonic() + budget
        held: list[tuple[str, _Entry]] = []
        try:
            for key in ordered:
                entry = self._checkout(key)
                if not entry.lock.acquire(timeout=max(0.0, deadline - time.monotonic())):
                    self._checkin(key)
                    logger.error(f"[LOCK] Timed out after {budget}s waiting for {key}")
                    raise ScanContentionError(f"Lock contention on {key}")
                held.append((key, entry))
            yield ordered
        finally:
            for key, entry in reversed(held):
                entry.lock.release()
                self._checkin(key)
