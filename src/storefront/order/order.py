"""Order aggregate.

State Machine:
    PENDING → CONFIRMED → PROCESSING → PACKING → PACKED → SHIPPED → DELIVERED
    {any non-terminal} → CANCELLED

Explicit updates may move forward any number of steps or cancel. The
fulfillment workflow only ever calls ``advance_status``, which refuses to
move backwards or out of a terminal state.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from storefront.domain import storefront
from storefront.order.events import (
    OrderAssigned,
    OrderPlaced,
    OrderStatusChanged,
    RefundStatusChanged,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    PACKING = "packing"
    PACKED = "packed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(Enum):
    COD = "cod"
    RAZORPAY = "razorpay"
    UPI = "upi"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class RefundStatus(Enum):
    STARTED = "started"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


STATUS_SEQUENCE = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.PACKING,
    OrderStatus.PACKED,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
)

_TERMINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

_REFUNDABLE_PAYMENT_STATUSES = {PaymentStatus.PAID.value, PaymentStatus.REFUNDED.value}


def status_rank(status: OrderStatus | str) -> int | None:
    """Position of a status in the forward sequence; ``None`` for CANCELLED."""
    status = OrderStatus(status)
    if status is OrderStatus.CANCELLED:
        return None
    return STATUS_SEQUENCE.index(status)


def _money(value: float) -> float:
    return round(float(value), 2)


def items_subtotal(items: list[dict]) -> float:
    """Sum of per-line totals, each rounded to cents."""
    return _money(sum(_money(item["price"] * item["quantity"]) for item in items))


def coerce_enum(enum_cls: type[Enum], value, field: str):
    """Parse ``value`` into ``enum_cls`` or raise a field-level ValidationError."""
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError({field: [f"Invalid {field.replace('_', ' ')}: {value}"]}) from None


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class CustomerInfo:
    name = String(required=True, max_length=200)
    email = String(required=True, max_length=254)
    phone = String(required=True, max_length=20)


@storefront.value_object(part_of="Order")
class ShippingAddress:
    address_line1 = String(required=True, max_length=255)
    address_line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    pincode = String(required=True, max_length=10)
    country = String(max_length=100, default="India")


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    sku = String(max_length=100)
    title = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)
    image = String(max_length=500)

    @property
    def line_total(self) -> float:
        return _money(self.price * self.quantity)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    user_id = Identifier()
    customer = ValueObject(CustomerInfo)
    shipping_address = ValueObject(ShippingAddress)
    items = HasMany(OrderItem)
    subtotal = Float(default=0.0, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0)
    shipping = Float(default=0.0, min_value=0.0)
    total = Float(default=0.0)
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.COD.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_reference = String(max_length=255)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    assigned_to = String(max_length=100)
    offer_id = Identifier()
    refund_status = String(choices=RefundStatus)
    refund_id = String(max_length=255)
    refund_notes = Text()
    tracking_number = String(max_length=255)
    courier_company = String(max_length=100)
    notes = Text()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def discount_cannot_exceed_subtotal(self):
        if self.discount is not None and self.subtotal is not None and self.discount > self.subtotal:
            raise ValidationError({"discount": ["Discount cannot exceed the order subtotal"]})

    @invariant.post
    def refund_status_only_for_cancelled_orders(self):
        if self.refund_status and self.status != OrderStatus.CANCELLED.value:
            raise ValidationError({"refund_status": ["Refund status applies only to cancelled orders"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number: str,
        customer: dict,
        shipping_address: dict,
        items: list[dict],
        shipping: float = 0.0,
        discount: float = 0.0,
        payment_method: str = PaymentMethod.COD.value,
        payment_status: str = PaymentStatus.PENDING.value,
        payment_reference: str | None = None,
        offer_id: str | None = None,
        user_id: str | None = None,
        notes: str | None = None,
    ):
        if not items:
            raise ValidationError({"items": ["An order must contain at least one item"]})

        order_items = [OrderItem(**item) for item in items]
        subtotal = items_subtotal(items)
        discount = _money(discount or 0.0)
        shipping = _money(shipping or 0.0)

        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            user_id=user_id,
            customer=CustomerInfo(**customer),
            shipping_address=ShippingAddress(**shipping_address),
            items=order_items,
            subtotal=subtotal,
            discount=discount,
            shipping=shipping,
            total=_money(subtotal + shipping - discount),
            payment_method=payment_method,
            payment_status=payment_status,
            payment_reference=payment_reference,
            status=OrderStatus.PENDING.value,
            offer_id=offer_id,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                customer_email=order.customer.email,
                item_count=len(order_items),
                total=order.total,
                payment_method=order.payment_method,
                offer_id=offer_id,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.status) in _TERMINAL_STATUSES

    def _assert_can_transition(self, target: OrderStatus) -> None:
        current = OrderStatus(self.status)
        if current in _TERMINAL_STATUSES:
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target.value}"]})
        if target is OrderStatus.CANCELLED:
            return
        if status_rank(target) < status_rank(current):
            raise ValidationError({"status": [f"Cannot move order back from {current.value} to {target.value}"]})

    def _set_status(self, target: OrderStatus, automated: bool) -> None:
        previous = self.status
        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                previous_status=previous,
                new_status=target.value,
                automated=automated,
                changed_at=now,
            )
        )

    def change_status(self, status: str) -> bool:
        """Apply an explicit status update; returns False when nothing changed.

        Cancelling a paid, prepaid order flags it for the external refund
        processor by setting ``refund_status`` to ``started``.
        """
        target = coerce_enum(OrderStatus, status, "status")
        if target.value == self.status:
            return False
        self._assert_can_transition(target)
        self._set_status(target, automated=False)

        if (
            target is OrderStatus.CANCELLED
            and self.payment_status == PaymentStatus.PAID.value
            and self.payment_method != PaymentMethod.COD.value
        ):
            self._set_refund_status(RefundStatus.STARTED.value)
        return True

    def advance_status(self, status: str) -> bool:
        """Move strictly forward along the sequence; anything else is ignored."""
        target = coerce_enum(OrderStatus, status, "status")
        if self.is_terminal or target is OrderStatus.CANCELLED:
            return False
        if status_rank(target) <= status_rank(self.status):
            return False
        self._set_status(target, automated=True)
        return True

    # -------------------------------------------------------------------
    # Assignment and details
    # -------------------------------------------------------------------
    def assign(self, worker_id: str | None) -> bool:
        """Assign the order to a worker; blank or ``None`` clears the assignment."""
        worker_id = (worker_id or "").strip() or None
        if worker_id == self.assigned_to:
            return False
        previous = self.assigned_to
        now = datetime.now(UTC)
        self.assigned_to = worker_id
        self.updated_at = now
        self.raise_(
            OrderAssigned(
                order_id=str(self.id),
                order_number=self.order_number,
                assigned_to=worker_id,
                previous_assignee=previous,
                assigned_at=now,
            )
        )
        return True

    def update_shipping_details(
        self,
        tracking_number: str | None = None,
        courier_company: str | None = None,
        notes: str | None = None,
    ) -> None:
        if tracking_number is not None:
            self.tracking_number = tracking_number
        if courier_company is not None:
            self.courier_company = courier_company
        if notes is not None:
            self.notes = notes
        self.updated_at = datetime.now(UTC)

    def set_payment_status(self, payment_status: str) -> None:
        self.payment_status = coerce_enum(PaymentStatus, payment_status, "payment_status").value
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Refunds
    # -------------------------------------------------------------------
    @property
    def can_refund(self) -> bool:
        return (
            self.status == OrderStatus.CANCELLED.value
            and self.payment_method != PaymentMethod.COD.value
            and self.payment_status == PaymentStatus.PAID.value
        )

    def _set_refund_status(self, refund_status: str, refund_id: str | None = None) -> None:
        now = datetime.now(UTC)
        self.refund_status = refund_status
        self.updated_at = now
        self.raise_(
            RefundStatusChanged(
                order_id=str(self.id),
                order_number=self.order_number,
                refund_status=refund_status,
                refund_id=refund_id,
                changed_at=now,
            )
        )

    def update_refund(self, refund_status: str, refund_id: str | None = None, notes: str | None = None) -> None:
        coerce_enum(RefundStatus, refund_status, "refund_status")
        if self.status != OrderStatus.CANCELLED.value:
            raise ValidationError({"refund_status": ["Refund can only be processed for cancelled orders"]})
        if self.payment_method == PaymentMethod.COD.value:
            raise ValidationError({"refund_status": ["Refund is not applicable for cash on delivery orders"]})
        if self.payment_status not in _REFUNDABLE_PAYMENT_STATUSES:
            raise ValidationError({"refund_status": ["Refund can only be processed for paid orders"]})

        if refund_id:
            self.refund_id = refund_id
        if notes:
            self.refund_notes = notes
        if refund_status == RefundStatus.COMPLETED.value:
            self.payment_status = PaymentStatus.REFUNDED.value
        self._set_refund_status(refund_status, refund_id=refund_id)
