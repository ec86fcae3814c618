"""Pure filters over an order snapshot."""

from collections.abc import Iterable, Sequence


def parse_statuses(raw: str | Iterable[str] | None) -> frozenset[str]:
    """Accept ``"packed,shipped"`` or an iterable; blank entries are dropped."""
    if raw is None:
        return frozenset()
    parts = raw.split(",") if isinstance(raw, str) else raw
    return frozenset(p.strip() for p in parts if p and p.strip())


def filter_orders(
    orders: Sequence[dict],
    statuses: frozenset[str] = frozenset(),
    assigned_to: str | None = None,
) -> list[dict]:
    selected = []
    for order in orders:
        if statuses and order.get("status") not in statuses:
            continue
        if assigned_to is not None and order.get("assigned_to") != assigned_to:
            continue
        selected.append(order)
    return selected


def paginate(orders: Sequence[dict], limit: int | None = None, offset: int = 0) -> list[dict]:
    offset = max(offset or 0, 0)
    if limit is None:
        return list(orders[offset:])
    return list(orders[offset : offset + max(limit, 0)])
