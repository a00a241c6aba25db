"""
Read-through template cache with TTL, stale-while-revalidate and LRU size bound.
"""
import asyncio
import logging
import math
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from .freshness import FreshnessDirectives, FreshnessPolicy

logger = logging.getLogger(__name__)

Loader = Callable[[str], Awaitable[Tuple[Any, Optional[FreshnessDirectives]]]]


@dataclass
class CacheEntry:
    """A cached value with its freshness window."""
    value: Any
    created_at: float
    expires_at: float
    stale_until: float

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at

    def is_stale(self, now: float) -> bool:
        return self.expires_at <= now < self.stale_until

    def is_usable(self, now: float) -> bool:
        return now < self.stale_until


@dataclass
class CacheStats:
    """Counters for cache activity."""
    hits: int = 0
    stale_hits: int = 0
    misses: int = 0
    evictions: int = 0
    refresh_failures: int = 0


class TemplateCache:
    """
    Keyed store of compiled templates.

    Entries are fresh until ``expires_at`` and usable but stale until
    ``stale_until``. A stale entry is served immediately while a background
    refresh replaces it. Concurrent misses on the same key share one load
    unless ``single_flight`` is disabled.
    """

    def __init__(
        self,
        max_size: Optional[int] = None,
        max_age: float = 60,
        stale_while_revalidate: float = 0,
        clock: Optional[Callable[[], float]] = None,
        single_flight: bool = True,
        name: str = "templates"
    ):
        """
        Initialize template cache.

        Args:
            max_size: Maximum number of entries, unbounded when None
            max_age: Default freshness lifetime in seconds
            stale_while_revalidate: Default grace window in seconds after expiry
            clock: Monotonic time source, ``time.monotonic`` by default
            single_flight: Whether concurrent misses on a key share one load
            name: Name used in log messages
        """
        if max_size is not None and max_size < 1:
            raise ValueError("max_size must be a positive integer or None")
        self.max_size = max_size
        self.policy = FreshnessPolicy(max_age, stale_while_revalidate)
        self.clock = clock or time.monotonic
        self.single_flight = single_flight
        self.name = name
        self.stats = CacheStats()
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._in_flight: Dict[str, asyncio.Task] = {}
        self._refreshing: Dict[str, asyncio.Task] = {}

    @classmethod
    def forever(cls, clock: Optional[Callable[[], float]] = None, single_flight: bool = True,
                name: str = "forever") -> 'TemplateCache':
        """Create an unbounded cache whose entries never expire."""
        return cls(
            max_size=None,
            max_age=math.inf,
            stale_while_revalidate=0,
            clock=clock,
            single_flight=single_flight,
            name=name
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key, touch=False) is not None

    def keys(self) -> List[str]:
        return list(self._entries.keys())

    def get(self, key: str, touch: bool = True) -> Optional[CacheEntry]:
        """
        Look up an entry without loading anything.

        Args:
            key: Cache key
            touch: Whether to mark the entry as recently used

        Returns:
            The entry if it is fresh or stale but usable, otherwise None
        """
        entry = self._entries.get(key)
        if entry is None:
            return None

        if not entry.is_usable(self.clock()):
            logger.debug(f"[{self.name}] Dropping expired entry {key}")
            del self._entries[key]
            return None

        if touch:
            self._entries.move_to_end(key)
        return entry

    def is_stale(self, key: str) -> bool:
        """True if the entry exists and is past expiry but inside its stale window."""
        entry = self.get(key, touch=False)
        return entry is not None and entry.is_stale(self.clock())

    def set(self, key: str, value: Any, directives: Optional[FreshnessDirectives] = None) -> Optional[CacheEntry]:
        """
        Store a value with freshness derived from the policy.

        Args:
            key: Cache key
            value: Value to store
            directives: Cache-control directives from the response, if any

        Returns:
            The stored entry, or None when the directives forbid caching
        """
        freshness = self.policy.resolve(directives)
        if freshness is None:
            logger.debug(f"[{self.name}] Not caching {key}: response forbids caching")
            self._entries.pop(key, None)
            return None

        now = self.clock()
        expires_at, stale_until = freshness.expiry(now)

        if key not in self._entries and self.max_size is not None:
            while len(self._entries) >= self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                self.stats.evictions += 1
                logger.debug(f"[{self.name}] Evicted least recently used entry {evicted}")

        entry = CacheEntry(value=value, created_at=now, expires_at=expires_at, stale_until=stale_until)
        self._entries[key] = entry
        self._entries.move_to_end(key)
        return entry

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()
        logger.debug(f"[{self.name}] Cleared cache")

    async def read_through(self, key: str, loader: Loader) -> Any:
        """
        Return the cached value for a key, loading it on a miss.

        Args:
            key: Cache key
            loader: Coroutine function called with the key, returning
                ``(value, directives)``

        Returns:
            Cached or freshly loaded value
        """
        entry = self.get(key)
        if entry is not None:
            if entry.is_stale(self.clock()):
                self.stats.stale_hits += 1
                logger.debug(f"[{self.name}] Serving stale entry {key}")
                self._schedule_refresh(key, loader)
            else:
                self.stats.hits += 1
            return entry.value

        self.stats.misses += 1
        logger.debug(f"[{self.name}] Cache miss for {key}")

        if not self.single_flight:
            return await self._load(key, loader)

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load(key, loader))
            self._in_flight[key] = task
            task.add_done_callback(lambda done: self._finish_in_flight(key, done))
        else:
            logger.debug(f"[{self.name}] Joining in-flight load for {key}")
        # Cancelling one caller must not abort the load other callers share
        return await asyncio.shield(task)

    async def join_refreshes(self) -> None:
        """Wait for background refreshes that are currently running."""
        pending = list(self._refreshing.values())
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def _load(self, key: str, loader: Loader) -> Any:
        value, directives = await loader(key)
        self.set(key, value, directives)
        return value

    def _finish_in_flight(self, key: str, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        if not task.cancelled():
            # Mark the exception as retrieved; callers re-raise it themselves
            task.exception()

    def _schedule_refresh(self, key: str, loader: Loader) -> None:
        if key in self._refreshing:
            return
        task = asyncio.ensure_future(self._refresh(key, loader))
        self._refreshing[key] = task
        task.add_done_callback(lambda done: self._refreshing.pop(key, None))

    async def _refresh(self, key: str, loader: Loader) -> None:
        try:
            await self._load(key, loader)
            logger.debug(f"[{self.name}] Refreshed stale entry {key}")
        except Exception as e:
            self.stats.refresh_failures += 1
            logger.warning(f"[{self.name}] Background refresh of {key} failed: {e}")
