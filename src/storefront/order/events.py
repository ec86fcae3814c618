"""Order domain events."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A customer completed checkout."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_email = String(required=True)
    item_count = Integer(required=True)
    total = Float(required=True)
    payment_method = String(required=True)
    offer_id = Identifier()
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderStatusChanged:
    """The order moved to a new status, either explicitly or through the workflow."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    automated = Boolean(default=False)
    changed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderAssigned:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    assigned_to = String()
    previous_assignee = String()
    assigned_at = DateTime(required=True)


@storefront.event(part_of="Order")
class RefundStatusChanged:
    """Refund processing for a cancelled order changed state."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    refund_status = String(required=True)
    refund_id = String()
    changed_at = DateTime(required=True)
