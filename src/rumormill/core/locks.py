"""Per-key lock registry.

Reputation records and cached trust scores are read-modify-write state
shared between identities. Writers of the same key are serialized; writers
of unrelated keys never contend.

Usage:
    locks = KeyedLocks()
    with locks.hold(public_key):
        record = read(public_key)
        write(public_key, adjust(record))
"""

from __future__ import annotations

import threading
from collections.abc import Generator
from contextlib import contextmanager


class KeyedLocks:
    """Lazily created ``threading.Lock`` per key.

    Locks are never evicted. The key space is bounded by the number of
    identities and claims a single process touches.
    """

    def __init__(self) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: str) -> Generator[None, None, None]:
        """Hold the lock for ``key`` for the duration of the block."""
        lock = self._lock_for(key)
        with lock:
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
