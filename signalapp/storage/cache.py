"""In-memory TTL cache with single-flight computation.

One cache instance per data category (prices, candles, analyses), created by
the service that owns it. Concurrent requests for the same missing key share
one computation:

- the first caller starts a build task and registers it as in flight;
- later callers await the same task through ``asyncio.shield`` so a caller
  that is cancelled never cancels the shared build;
- the in-flight handle is dropped only once the build has finished,
  whether it succeeded or failed;
- failures are not cached, the next request retries.

Entries expire ``ttl`` seconds after they were computed and are evicted in
LRU order once ``max_entries`` is exceeded.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")

Clock = Callable[[], float]


@dataclass
class CacheEntry(Generic[V]):
    value: V
    computed_at: float
    ttl: float
    hits: int = 0

    def is_fresh(self, now: float) -> bool:
        return now - self.computed_at < self.ttl


@dataclass(frozen=True)
class CacheStats:
    name: str
    size: int
    max_entries: int
    hits: int
    misses: int
    joins: int  # Callers that awaited an already running build
    builds: int
    failures: int
    evictions: int
    inflight: int

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses + self.joins
        return self.hits / total if total else 0.0


class SingleFlightCache(Generic[V]):
    """TTL + LRU cache whose misses are computed exactly once per key."""

    def __init__(
        self,
        name: str,
        ttl: float,
        max_entries: int,
        clock: Clock = time.monotonic,
    ):
        if ttl <= 0:
            raise ValueError(f"{name}: ttl must be positive, got {ttl}")
        if max_entries < 1:
            raise ValueError(f"{name}: max_entries must be >= 1, got {max_entries}")
        self.name = name
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry[V]] = OrderedDict()
        self._inflight: dict[str, asyncio.Task] = {}
        self._lock = asyncio.Lock()

        self._hits = 0
        self._misses = 0
        self._joins = 0
        self._builds = 0
        self._failures = 0
        self._evictions = 0

    async def get_or_compute(self, key: str, factory: Callable[[], Awaitable[V]]) -> V:
        """Return the cached value for key, computing it with factory on a miss.

        Raises:
            Exception: Whatever the factory raised; the failure is not cached.
        """
        async with self._lock:
            entry = self._lookup(key)
            if entry is not None:
                return entry.value

            task = self._inflight.get(key)
            if task is None:
                self._misses += 1
                task = asyncio.create_task(self._build(key, factory), name=f"{self.name}:{key}")
                task.add_done_callback(self._on_build_done)
                self._inflight[key] = task
            else:
                self._joins += 1
                logger.debug("[%s] joining in-flight build for %s", self.name, key)

        return await asyncio.shield(task)

    async def _build(self, key: str, factory: Callable[[], Awaitable[V]]) -> V:
        self._builds += 1
        try:
            value = await factory()
            async with self._lock:
                self._store(key, value)
            return value
        except Exception:
            self._failures += 1
            raise
        finally:
            if self._inflight.get(key) is asyncio.current_task():
                del self._inflight[key]

    def _on_build_done(self, task: asyncio.Task) -> None:
        # Retrieve the exception so an unobserved failure is logged here
        # rather than reported as "never retrieved" at shutdown.
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.debug("[%s] build %s failed: %s", self.name, task.get_name(), exc)

    def _lookup(self, key: str) -> CacheEntry[V] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_fresh(self._clock()):
            del self._entries[key]
            return None
        entry.hits += 1
        self._hits += 1
        self._entries.move_to_end(key)
        return entry

    def _store(self, key: str, value: V) -> None:
        self._entries[key] = CacheEntry(value=value, computed_at=self._clock(), ttl=self.ttl)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug("[%s] evicted %s", self.name, evicted)

    def get(self, key: str) -> V | None:
        """Return a fresh cached value without computing, or None."""
        entry = self._lookup(key)
        return entry.value if entry is not None else None

    def invalidate(self, key: str) -> bool:
        """Drop one entry. In-flight builds for the key are not affected."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Drop all entries. In-flight builds still complete and store their result."""
        self._entries.clear()

    def purge_expired(self) -> int:
        """Remove every expired entry and return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if not entry.is_fresh(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("[%s] purged %d expired entries", self.name, len(expired))
        return len(expired)

    def stats(self) -> CacheStats:
        return CacheStats(
            name=self.name,
            size=len(self._entries),
            max_entries=self.max_entries,
            hits=self._hits,
            misses=self._misses,
            joins=self._joins,
            builds=self._builds,
            failures=self._failures,
            evictions=self._evictions,
            inflight=len(self._inflight),
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.is_fresh(self._clock())
