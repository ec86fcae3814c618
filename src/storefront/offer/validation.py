"""Offer validation: a pure check of an offer against a checkout.

Checks run in a fixed order and the first failure wins, because the message
is shown to the customer:

1. the offer is active
2. now falls inside ``[valid_from, valid_until]``
3. the usage quota is not exhausted
4. a one-time offer has not been redeemed by this customer
5. the customer is eligible when the offer is restricted
6. the subtotal reaches the minimum order amount

Nothing here mutates state; consuming an offer is ``RedeemOffer``'s job.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal

from protean.exceptions import ValidationError

from storefront.errors import OfferRejected
from storefront.offer.offer import DiscountType, as_utc, normalize_email

NOT_ACTIVE = "not_active"
OUTSIDE_WINDOW = "outside_window"
USAGE_LIMIT_REACHED = "usage_limit_reached"
ALREADY_REDEEMED = "already_redeemed"
NOT_ELIGIBLE = "not_eligible"
BELOW_MINIMUM = "below_minimum"

_CENT = Decimal("0.01")


@dataclass(frozen=True)
class Customer:
    email: str | None = None
    id: str | None = None

    @classmethod
    def of(cls, email: str | None = None, customer_id: str | None = None) -> "Customer":
        customer_id = (customer_id or "").strip() or None
        return cls(email=normalize_email(email), id=customer_id)

    @property
    def is_anonymous(self) -> bool:
        return self.email is None and self.id is None


@dataclass(frozen=True)
class OfferQuote:
    offer_id: str
    code: str
    discount: float


# (offer_id, customer) -> has this customer already redeemed the offer?
RedemptionLookup = Callable[[str, Customer], bool]


def _round_half_up(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def _display_amount(amount: float) -> str:
    amount = Decimal(str(amount))
    return str(amount.to_integral_value()) if amount == amount.to_integral_value() else str(_round_half_up(amount))


def compute_discount(
    discount_type: str,
    discount_value: float,
    subtotal: float,
    max_discount: float | None = None,
) -> float:
    """Discount for ``subtotal``, always within ``[0, subtotal]``, rounded half-up to cents."""
    subtotal_d = max(Decimal(str(subtotal)), Decimal("0"))
    value = max(Decimal(str(discount_value or 0)), Decimal("0"))

    if DiscountType(discount_type) is DiscountType.PERCENTAGE:
        discount = subtotal_d * value / Decimal("100")
        if max_discount:
            discount = min(discount, Decimal(str(max_discount)))
    else:
        discount = value

    discount = min(max(discount, Decimal("0")), subtotal_d)
    return float(_round_half_up(discount))


def check_eligibility(offer, customer: Customer) -> bool:
    if not offer.is_restricted:
        return True
    if customer.email and customer.email in offer.eligible_emails:
        return True
    return bool(customer.id and customer.id in offer.eligible_customer_ids)


def check_availability(offer, customer: Customer, has_redeemed: RedemptionLookup, now: datetime | None = None) -> None:
    """Run checks 1 to 5; raises ``OfferRejected`` on the first failure."""
    now = as_utc(now or datetime.now(UTC))

    if not offer.is_active:
        raise OfferRejected("This offer is not active", code=NOT_ACTIVE)

    if now < as_utc(offer.valid_from) or now > as_utc(offer.valid_until):
        raise OfferRejected("This offer has expired or is not yet valid", code=OUTSIDE_WINDOW)

    if offer.quota_exhausted:
        raise OfferRejected("This offer has reached its usage limit", code=USAGE_LIMIT_REACHED)

    if offer.one_time_per_user and not customer.is_anonymous and has_redeemed(str(offer.id), customer):
        raise OfferRejected("You have already used this offer", code=ALREADY_REDEEMED)

    if not check_eligibility(offer, customer):
        raise OfferRejected("This offer is not available for your account", code=NOT_ELIGIBLE)


def validate_offer(
    offer,
    subtotal: float,
    customer: Customer,
    has_redeemed: RedemptionLookup,
    now: datetime | None = None,
) -> OfferQuote:
    """Quote ``offer`` for a checkout of ``subtotal``."""
    if subtotal is None:
        raise ValidationError({"subtotal": ["Subtotal is required"]})
    if subtotal < 0:
        raise ValidationError({"subtotal": ["Subtotal cannot be negative"]})

    check_availability(offer, customer, has_redeemed, now=now)

    if offer.min_order_amount and subtotal < offer.min_order_amount:
        raise OfferRejected(
            f"Minimum order amount of ₹{_display_amount(offer.min_order_amount)} required",
            code=BELOW_MINIMUM,
        )

    discount = compute_discount(offer.discount_type, offer.discount_value, subtotal, offer.max_discount)
    return OfferQuote(offer_id=str(offer.id), code=offer.code, discount=discount)


def is_offer_available(offer, customer: Customer, has_redeemed: RedemptionLookup, now: datetime | None = None) -> bool:
    try:
        check_availability(offer, customer, has_redeemed, now=now)
    except OfferRejected:
        return False
    return True
