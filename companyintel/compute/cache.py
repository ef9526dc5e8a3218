"""
CompanyIntel — Result Cache

In-process TTL cache so repeated lookups don't hit six registries again.

Cache Strategy:
    - Company reports:        TTL = 30 min
    - Search candidate lists: TTL = 1 hour
    - SEC ticker directory:   TTL = 24 hours (a ~1 MB file that changes daily)

Expired entries are dropped when read, and a background sweep removes the ones
nobody reads again. The sweep takes the lock once per entry, so a get/set
never waits longer than a single entry check.

Key Schema:
    {namespace}:{normalized_key}

The cache is owned by the service: create it at startup, call start() inside
the running event loop, and close() at shutdown.
"""
import asyncio
import hashlib
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import structlog

logger = structlog.get_logger()

NS_REPORT = "report"
NS_SEARCH = "search"
NS_DIRECTORY = "directory"

DEFAULT_TTL = 1800
DEFAULT_SWEEP_INTERVAL = 300


def _normalize_part(part: Optional[str]) -> str:
    return (part or "").strip().lower()


def make_key(namespace: str, *parts: Optional[str]) -> str:
    """Build a stable namespaced key from case-insensitive parts."""
    clean = "\x1f".join(_normalize_part(p) for p in parts)
    return f"{namespace}:{hashlib.sha256(clean.encode('utf-8')).hexdigest()[:24]}"


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    expires_at: float


class ResultCache:
    """
    Thread-safe TTL cache.

    Usage:
        cache = ResultCache()
        await cache.start()         # begin periodic sweep

        key = make_key(NS_REPORT, "Acme Corp", cik)
        cached = cache.get(key)
        if cached is None:
            cached = ...            # compute
            cache.set(key, cached, ttl=1800)

        await cache.close()
    """

    def __init__(
        self,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._sweep_task: Optional[asyncio.Task] = None
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on miss or expiry."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                return None
            if self._clock() >= entry.expires_at:
                del self._store[key]
                self._evictions += 1
                self._misses += 1
                logger.debug("cache_expired", key=key)
                return None
            self._hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl: float = DEFAULT_TTL) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        with self._lock:
            self._store[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)
        logger.debug("cache_set", key=key, ttl=ttl)

    def invalidate(self, key: str) -> bool:
        with self._lock:
            return self._store.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    # ── Sweep ─────────────────────────────────────

    def sweep(self) -> int:
        """Drop every expired entry. Returns how many were removed."""
        removed = 0
        with self._lock:
            keys = list(self._store.keys())
        for key in keys:
            with self._lock:
                entry = self._store.get(key)
                if entry is not None and self._clock() >= entry.expires_at:
                    del self._store[key]
                    removed += 1
        if removed:
            with self._lock:
                self._evictions += removed
            logger.debug("cache_swept", removed=removed, remaining=len(self._store))
        return removed

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            try:
                self.sweep()
            except Exception as e:
                logger.warning("cache_sweep_failed", error=str(e))

    async def start(self) -> None:
        """Start the periodic sweep on the running loop. Idempotent."""
        if self._sweep_task is not None and not self._sweep_task.done():
            return
        self._sweep_task = asyncio.get_running_loop().create_task(self._sweep_loop())
        logger.info("cache_sweep_started", interval=self._sweep_interval)

    async def close(self) -> None:
        """Stop the sweep and drop all entries."""
        task, self._sweep_task = self._sweep_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.clear()
        logger.info("cache_closed")

    @property
    def sweeping(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "entries": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "sweep_interval": self._sweep_interval,
                "sweeping": self.sweeping,
            }
