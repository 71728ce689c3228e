"""
Time-based cache of retrieval results.

Entries expire after a fixed TTL. Once the cache holds more than
CLEANUP_THRESHOLD entries, every set() sweeps out the expired ones. Live
entries are never evicted early, so with a long TTL the cache can keep
growing between sweeps.

The lock guards the dict because the optional sweeper runs on its own thread.
"""

import json
import logging
import threading
import time
from collections.abc import Callable, Mapping
from typing import Any

from .models import ContextCacheEntry, EnhancedContext

log = logging.getLogger(__name__)

CLEANUP_THRESHOLD = 100


def cache_key(query: str, options: Mapping[str, Any] | None = None) -> str:
    """Normalized query plus a stable serialization of the per-query options."""
    normalized = " ".join(query.lower().split())
    return f"{normalized}_{json.dumps(dict(options or {}), sort_keys=True, default=str)}"


class ContextCache:
    def __init__(
        self,
        ttl_ms: int = 5 * 60 * 1000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_ms = ttl_ms
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, ContextCacheEntry] = {}
        self.hits = 0
        self.misses = 0
        self._sweeper: threading.Thread | None = None
        self._stop = threading.Event()

    def get(self, key: str) -> EnhancedContext | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.expires_at > now:
                self.hits += 1
                return entry.context
            if entry is not None:
                del self._entries[key]
            self.misses += 1
        return None

    def set(self, key: str, context: EnhancedContext, ttl_ms: int | None = None) -> None:
        now = self._clock()
        ttl = self.ttl_ms if ttl_ms is None else ttl_ms
        entry = ContextCacheEntry(key=key, context=context, timestamp=now, expires_at=now + ttl / 1000.0)
        with self._lock:
            self._entries[key] = entry
            over = len(self._entries) > CLEANUP_THRESHOLD
        if over:
            self.cleanup()

    def cleanup(self) -> int:
        """Remove every expired entry; returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if e.expires_at <= now]
            for k in expired:
                del self._entries[k]
        if expired:
            log.debug("Swept %d expired context cache entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    # ── background sweep ────────────────────────────────────────────────────

    def start_sweeper(self, interval_ms: int) -> None:
        if self._sweeper is not None:
            return
        self._stop.clear()
        interval = interval_ms / 1000.0

        def _run() -> None:
            while not self._stop.wait(interval):
                self.cleanup()

        self._sweeper = threading.Thread(target=_run, name="context-cache-sweeper", daemon=True)
        self._sweeper.start()
        log.debug("Context cache sweeper started (every %.1fs)", interval)

    def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._stop.set()
        self._sweeper.join(timeout=5)
        self._sweeper = None
