"""Read-through order listing."""

from dataclasses import dataclass

import structlog
from protean.utils.globals import current_domain

from storefront.auth import Principal
from storefront.errors import AuthorizationError, StoreUnavailable
from storefront.listing import get_order_cache
from storefront.listing.cache import OrderCache
from storefront.listing.filters import filter_orders, paginate, parse_statuses
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OrderListing:
    orders: list[dict]
    total: int
    cache_hit: bool


def _read_cache(cache: OrderCache) -> tuple[dict, ...] | None:
    try:
        return cache.get()
    except Exception as exc:
        logger.warning("order_cache_read_failed", error=str(exc))
        return None


def _fetch_snapshot(cache: OrderCache) -> tuple[dict, ...]:
    generation = cache.generation
    try:
        orders = current_domain.repository_for(Order).all_orders()
    except Exception as exc:
        logger.error("order_store_unavailable", error=str(exc))
        raise StoreUnavailable("Order store is unavailable, please retry shortly") from exc

    snapshot = tuple(order.to_dict() for order in orders)
    try:
        if not cache.set(snapshot, generation=generation):
            logger.debug("order_cache_refresh_discarded", generation=generation)
    except Exception as exc:
        # Serve the fresh snapshot even if the cache cannot hold it
        logger.warning("order_cache_refresh_failed", error=str(exc))
    return snapshot


def list_orders(
    principal: Principal,
    status: str | None = None,
    assigned_to: str | None = None,
    limit: int | None = None,
    offset: int = 0,
    cache: OrderCache | None = None,
) -> OrderListing:
    """List orders through the read cache, applying filters in memory.

    Workers only ever see orders assigned to them.
    """
    if not principal.is_superuser:
        if assigned_to is not None and assigned_to != principal.id:
            raise AuthorizationError("Workers can only list orders assigned to them")
        assigned_to = principal.id

    cache = cache or get_order_cache()
    snapshot = _read_cache(cache)
    cache_hit = snapshot is not None
    if snapshot is None:
        snapshot = _fetch_snapshot(cache)

    selected = filter_orders(snapshot, statuses=parse_statuses(status), assigned_to=assigned_to)
    return OrderListing(
        orders=paginate(selected, limit=limit, offset=offset),
        total=len(selected),
        cache_hit=cache_hit,
    )
