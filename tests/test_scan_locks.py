"""Unit tests for the keyed lock registry."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import threading
import pytest
from app.services.ledger_errors import ScanContentionError
from app.services.scan_locks import KeyedLockRegistry, building_lock_key, tag_lock_key


class TestKeyedLockRegistry:
    def test_keys_are_sorted_and_deduplicated(self):
        locks = KeyedLockRegistry(timeout=1.0)
        with locks.hold(["tag:B1:T1", "building:B1", "building:B1"]) as held:
            assert held == ["building:B1", "tag:B1:T1"]
            assert locks.active_keys() == ["building:B1", "tag:B1:T1"]

    def test_idle_keys_are_dropped(self):
        locks = KeyedLockRegistry(timeout=1.0)
        with locks.hold([building_lock_key("B1")]):
            pass
        assert locks.active_keys() == []

    def test_timeout_releases_partial_acquisition(self):
        locks = KeyedLockRegistry(timeout=0.05)
        blocker_ready = threading.Event()
        release = threading.Event()

        def blocker():
            with locks.hold([tag_lock_key("B1", "T1")]):
                blocker_ready.set()
                release.wait(timeout=5)

        thread = threading.Thread(target=blocker)
        thread.start()
        blocker_ready.wait(timeout=5)
        try:
            with pytest.raises(ScanContentionError):
                with locks.hold([building_lock_key("B1"), tag_lock_key("B1", "T1")]):
                    pass
            # building:B1 was taken first and must have been given back
            with locks.hold([building_lock_key("B1")], timeout=0.05):
                pass
        finally:
            release.set()
            thread.join(timeout=5)

        assert locks.active_keys() == []

    def test_body_exception_releases_locks(self):
        locks = KeyedLockRegistry(timeout=0.05)
        with pytest.raises(RuntimeError):
            with locks.hold([building_lock_key("B2")]):
                raise RuntimeError("boom")
        with locks.hold([building_lock_key("B2")]):
            pass

    def test_same_key_serializes_threads(self):
        locks = KeyedLockRegistry(timeout=5.0)
        inside = []
        overlap = []

        def worker():
            with locks.hold([building_lock_key("B3")]):
                if inside:
                    overlap.append(True)
                inside.append(True)
                threading.Event().wait(0.01)
                inside.pop()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert overlap == []
