"""PlaceOrder: checkout creates a pending order with a unique order number."""

import json
import secrets
from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import ConflictError
from storefront.order.order import Order, PaymentMethod, PaymentStatus

logger = structlog.get_logger(__name__)

_ORDER_NUMBER_ATTEMPTS = 5


def generate_order_number(now: datetime | None = None) -> str:
    """``ORD-{year}-{6 digits}``."""
    now = now or datetime.now(UTC)
    return f"ORD-{now.year}-{secrets.randbelow(1_000_000):06d}"


@storefront.command(part_of="Order")
class PlaceOrder:
    customer_name = String(required=True, max_length=200)
    customer_email = String(required=True, max_length=254)
    customer_phone = String(required=True, max_length=20)
    shipping_address = Text(required=True)  # JSON object
    items = Text(required=True)  # JSON list of item dicts
    shipping = Float(default=0.0)
    discount = Float(default=0.0)
    payment_method = String(max_length=20, default=PaymentMethod.COD.value)
    payment_status = String(max_length=20, default=PaymentStatus.PENDING.value)
    payment_reference = String(max_length=255)
    offer_id = Identifier()
    user_id = Identifier()
    notes = Text()


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        repo = current_domain.repository_for(Order)

        for _ in range(_ORDER_NUMBER_ATTEMPTS):
            order_number = generate_order_number()
            if repo.find_by_number(order_number) is None:
                break
        else:
            raise ConflictError("Could not allocate a unique order number, please retry")

        order = Order.place(
            order_number=order_number,
            customer={
                "name": command.customer_name,
                "email": command.customer_email,
                "phone": command.customer_phone,
            },
            shipping_address=json.loads(command.shipping_address),
            items=json.loads(command.items),
            shipping=command.shipping,
            discount=command.discount,
            payment_method=command.payment_method,
            payment_status=command.payment_status,
            payment_reference=command.payment_reference,
            offer_id=command.offer_id,
            user_id=command.user_id,
            notes=command.notes,
        )
        repo.add(order)
        logger.info("order_placed", order_id=str(order.id), order_number=order_number, total=order.total)
        return {"order_id": str(order.id), "order_number": order_number}
