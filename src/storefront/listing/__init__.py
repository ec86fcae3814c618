"""Order read cache registry: one cache per process."""

import os

from storefront.listing.cache import DEFAULT_TTL_SECONDS, OrderCache

_cache_instance: OrderCache | None = None


def get_order_cache() -> OrderCache:
    """Return the configured order cache (singleton).

    Backend and TTL come from ``ORDER_CACHE_BACKEND`` (default ``memory``) and
    ``ORDER_CACHE_TTL_SECONDS`` (default 30).
    """
    global _cache_instance
    if _cache_instance is None:
        backend = os.environ.get("ORDER_CACHE_BACKEND", "memory")
        ttl = float(os.environ.get("ORDER_CACHE_TTL_SECONDS", DEFAULT_TTL_SECONDS))
        if backend == "memory":
            from storefront.listing.cache import InMemoryOrderCache

            _cache_instance = InMemoryOrderCache(ttl_seconds=ttl)
        else:
            raise ValueError(f"Unknown order cache backend: {backend}")
    return _cache_instance


def set_order_cache(cache: OrderCache) -> None:
    global _cache_instance
    _cache_instance = cache


def reset_order_cache() -> None:
    """Drop the cache singleton (useful for testing)."""
    global _cache_instance
    _cache_instance = None
