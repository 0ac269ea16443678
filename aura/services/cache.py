"""Thread-safe in-memory cache with a per-entry freshness window.

Design decisions
────────────────
• Every value is stored as a ``CacheEntry(value, fetched_at)`` so staleness
  is an explicit check rather than an implicit side effect.
• The clock is injectable (``clock=lambda: ...``) which makes expiry
  deterministic in tests.
• **threading.Lock** for thread safety (document ingestion and chat requests
  can run on different threads in the same process).
• Stale entries are dropped on read; nothing runs in the background.
• Purely ephemeral, data is lost on process restart.

Usage in FasterBookClient
─────────────────────────
>>> cache = TTLCache(ttl_seconds=300)
>>> cache.put("catalog", catalog)
>>> cache.get("catalog")          # within 5 minutes
catalog
>>> cache.get("catalog")          # after 5 minutes
None
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

# Catalog freshness window: 5 minutes
DEFAULT_TTL_SECONDS = 300.0


@dataclass(frozen=True)
class CacheEntry:
    """A cached value and the clock reading taken when it was fetched."""

    value: Any
    fetched_at: float

    def is_fresh(self, now: float, ttl_seconds: float) -> bool:
        return (now - self.fetched_at) < ttl_seconds


class TTLCache:
    """Key/value cache whose entries expire ``ttl_seconds`` after insertion."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    # ── Core operations ──────────────────────────────────────────────

    def get(self, key: str) -> Any | None:
        """Return the cached value, or ``None`` if missing or stale."""
        entry = self.entry(key)
        return entry.value if entry is not None else None

    def entry(self, key: str) -> CacheEntry | None:
        """Return the fresh ``CacheEntry`` for *key*, dropping it if stale."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if not entry.is_fresh(self._clock(), self._ttl_seconds):
                del self._store[key]
                logger.debug("Cache: %s expired (age > %.0fs)", key, self._ttl_seconds)
                return None
            return entry

    def put(self, key: str, value: Any) -> CacheEntry:
        """Insert or overwrite *key*, stamping it with the current clock."""
        entry = CacheEntry(value=value, fetched_at=self._clock())
        with self._lock:
            self._store[key] = entry
        return entry

    def invalidate(self, key: str) -> bool:
        """Remove a single key.  Returns ``True`` if the key existed."""
        with self._lock:
            return self._store.pop(key, None) is not None
