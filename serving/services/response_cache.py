"""
Response Cache: TTL + capacity-bounded memoization of served results.

A read is a hit only while now - created_at < ttl; hits bump hit_count and
last_accessed but never extend the ttl. Inserting at capacity evicts the one
entry with the oldest last_accessed.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def make_cache_key(
    user_id: str,
    model_id: str,
    algorithm: str,
    limit: int,
    exclude_ids: Optional[Iterable[str]] = None,
) -> str:
    """Composite key; exclusion ids are sorted so their order never matters."""
    excludes = ",".join(sorted(set(exclude_ids or ())))
    return f"rec_{user_id}_{model_id}_{algorithm}_{limit}_{excludes}"


@dataclass
class CacheEntry:
    key: str
    payload: Any
    created_at: float
    ttl: float
    hit_count: int = 0
    last_accessed: float = 0.0

    def is_expired(self, now: float) -> bool:
        return now - self.created_at >= self.ttl


class ResponseCache:
    """
    Thread-safe response cache.

    One lock guards the whole map: eviction picks a global victim, so a
    per-key lock would not make insert-with-eviction atomic.
    """

    def __init__(self, ttl_seconds: float = 3600, max_size: int = 10_000, clock: Clock = time.monotonic):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive: {ttl_seconds}")
        if max_size < 1:
            raise ValueError(f"max_size must be at least 1: {max_size}")
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        """Payload for a live entry, else None. Expired entries are purged."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(now):
                del self._entries[key]
                return None
            entry.hit_count += 1
            entry.last_accessed = now
            return entry.payload

    def put(self, key: str, payload: Any, ttl_seconds: Optional[float] = None) -> None:
        now = self._clock()
        entry = CacheEntry(
            key=key,
            payload=payload,
            created_at=now,
            ttl=ttl_seconds if ttl_seconds is not None else self.ttl_seconds,
            last_accessed=now,
        )
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_size:
                victim = min(self._entries.values(), key=lambda e: e.last_accessed)
                del self._entries[victim.key]
                logger.debug("[cache] Evicted %s", victim.key)
            self._entries[key] = entry

    def flush(self) -> int:
        """Remove every entry. Returns how many were removed."""
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
        return removed

    def sweep(self) -> int:
        """
        Remove ttl-expired entries.

        Expired keys are collected from a snapshot without the lock; the lock is
        held only while removing them. An entry re-inserted in between is
        re-checked before removal.
        """
        now = self._clock()
        expired = [key for key, entry in list(self._entries.items()) if entry.is_expired(now)]
        if not expired:
            return 0
        removed = 0
        with self._lock:
            for key in expired:
                entry = self._entries.get(key)
                if entry is not None and entry.is_expired(now):
                    del self._entries[key]
                    removed += 1
        if removed:
            logger.info("[cache] Swept %d expired entries", removed)
        return removed

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            size = len(self._entries)
            hits = sum(e.hit_count for e in self._entries.values())
        return {
            "size": size,
            "max_size": self.max_size,
            "ttl_seconds": self.ttl_seconds,
            "total_hits": hits,
            "hit_rate": hits / size if size else 0.0,
        }
