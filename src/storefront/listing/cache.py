"""Order read cache: a single time-boxed snapshot of every order.

The cache holds the unfiltered full set only; filtering and pagination are
pure functions applied on top (see ``storefront.listing.filters``), so there
is exactly one cache entry.
"""

import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass

DEFAULT_TTL_SECONDS = 30.0


@dataclass(frozen=True)
class CacheSnapshot:
    data: tuple[dict, ...]
    timestamp: float


class OrderCache(ABC):
    """Interface for order-listing caches.

    Implementations must make ``invalidate`` take effect before it returns:
    the next ``get`` after an invalidation is a miss or returns newer data.
    """

    ttl_seconds: float

    @abstractmethod
    def get(self) -> tuple[dict, ...] | None:
        """Return the cached orders, or ``None`` on a miss or expiry."""

    @abstractmethod
    def set(self, orders: Iterable[dict], generation: int | None = None) -> bool:
        """Store a snapshot; returns False when it was discarded as stale."""

    @abstractmethod
    def invalidate(self) -> None: ...

    @abstractmethod
    def is_valid(self) -> bool: ...

    @property
    @abstractmethod
    def generation(self) -> int:
        """Counter bumped on every invalidation.

        Read it before fetching from the store and pass it back to ``set`` so a
        fetch that raced a write cannot repopulate the cache with stale data.
        """


class InMemoryOrderCache(OrderCache):
    """Process-local cache; snapshots are swapped by reference, never mutated."""

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._snapshot: CacheSnapshot | None = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def snapshot(self) -> CacheSnapshot | None:
        return self._snapshot

    def _is_fresh(self, snapshot: CacheSnapshot | None) -> bool:
        return snapshot is not None and (self._clock() - snapshot.timestamp) < self.ttl_seconds

    def get(self) -> tuple[dict, ...] | None:
        snapshot = self._snapshot
        if not self._is_fresh(snapshot):
            return None
        return snapshot.data

    def set(self, orders: Iterable[dict], generation: int | None = None) -> bool:
        if generation is not None and generation != self._generation:
            return False
        self._snapshot = CacheSnapshot(data=tuple(orders), timestamp=self._clock())
        return True

    def invalidate(self) -> None:
        self._generation += 1
        self._snapshot = None

    def is_valid(self) -> bool:
        return self._is_fresh(self._snapshot)
