"""Per-key locks so updates to different users never contend."""

import threading
from typing import Dict, Hashable


class KeyedLocks:
    """
    Hands out one threading.Lock per key.

    The registry lock is held only to look up or create a key's lock. Locks are
    never removed, so a lock obtained for a key stays that key's lock.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[Hashable, threading.Lock] = {}

    def get(self, key: Hashable) -> threading.Lock:
        lock = self._locks.get(key)
        if lock is not None:
            return lock
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())

    def __len__(self) -> int:
        return len(self._locks)
