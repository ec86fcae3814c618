"""Order store: lookups by id or human-readable order number.

Every write goes through ``add`` and invalidates the order read cache before
returning, so listings never outlive a mutation.
"""

from protean.core.repository import BaseRepository
from protean.exceptions import ObjectNotFoundError

from storefront.domain import storefront
from storefront.listing import get_order_cache
from storefront.order.order import Order

_MAX_ORDERS = 10_000


@storefront.repository(part_of=Order)
class OrderRepository(BaseRepository):
    def add(self, order: Order) -> Order:
        saved = super().add(order)
        get_order_cache().invalidate()
        return saved

    def find_by_number(self, order_number: str) -> Order | None:
        results = self._dao.query.filter(order_number=order_number).all().items
        return results[0] if results else None

    def get_by_reference(self, reference: str) -> Order:
        """Resolve ``reference`` as an order id first, then as an order number."""
        try:
            return self.get(reference)
        except ObjectNotFoundError:
            order = self.find_by_number(reference)
            if order is None:
                raise ObjectNotFoundError(f"Order `{reference}` does not exist") from None
            return order

    def all_orders(self) -> list[Order]:
        """Every order, newest first."""
        orders = self._dao.query.limit(_MAX_ORDERS).all().items
        return sorted(orders, key=lambda o: o.created_at, reverse=True)
