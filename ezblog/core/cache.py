"""
In-process content cache with lazy TTL expiry.

One immutable CacheEntry is held per source key. Expiry is checked on read;
an expired or invalidated entry is reported as absent but kept in place
until it is overwritten, so it remains available to the stale-on-error
fallback.
"""

from __future__ import annotations

import hashlib
import threading
import time
from typing import Callable

from .types import CacheEntry


DEFAULT_TTL_SECONDS = 300.0


def source_key(workspace_url: str) -> str:
    """Derive the cache key for a configured workspace URL.

    Example:
        >>> len(source_key("https://www.notion.so/blog-0123"))
        64
    """
    normalized = workspace_url.strip().rstrip("/")
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


class ContentCache:
    """Holds the latest successful ingestion per source key.

    Reads take no lock: they fetch a reference to an immutable entry. Writes
    are serialized so a reader sees either the old entry or the new one.

    Attributes:
        ttl_seconds: Lifetime of an entry; 0 means entries are never fresh
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._invalidated: set[str] = set()
        self._write_lock = threading.Lock()

    def now(self) -> float:
        return self._clock()

    def get(self, key: str) -> CacheEntry | None:
        """Return the fresh entry for ``key``, or None if absent, expired or invalidated."""
        entry = self._entries.get(key)
        if entry is None or key in self._invalidated:
            return None
        if self.ttl_seconds <= 0:
            return None
        if self._clock() - entry.fetched_at > self.ttl_seconds:
            return None
        return entry

    def get_stale(self, key: str, max_age: float | None = None) -> CacheEntry | None:
        """Return whatever entry is stored for ``key``, ignoring TTL and invalidation.

        Args:
            key: Source key
            max_age: Optional ceiling in seconds; older entries are not returned
        """
        entry = self._entries.get(key)
        if entry is None:
            return None
        if max_age is not None and self._clock() - entry.fetched_at > max_age:
            return None
        return entry

    def put(self, key: str, entry: CacheEntry) -> bool:
        """Publish ``entry`` for ``key``.

        An entry older than the one already stored is discarded so a slow
        refetch can never overwrite a newer result.

        Returns:
            True if the entry was stored
        """
        with self._write_lock:
            current = self._entries.get(key)
            if current is not None and current.fetched_at > entry.fetched_at:
                return False
            self._entries[key] = entry
            self._invalidated.discard(key)
            return True

    def invalidate(self, key: str) -> None:
        """Force the next ``get`` for ``key`` to miss regardless of TTL."""
        with self._write_lock:
            if key in self._entries:
                self._invalidated.add(key)

    def clear(self) -> None:
        with self._write_lock:
            self._entries = {}
            self._invalidated = set()

    def age(self, key: str) -> float | None:
        """Seconds since the stored entry was fetched, or None when nothing is stored."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        return max(0.0, self._clock() - entry.fetched_at)
