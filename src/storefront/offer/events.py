"""Offer domain events."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Offer")
class OfferCreated:
    __version__ = 1

    offer_id = Identifier(required=True)
    code = String(required=True)
    discount_type = String(required=True)
    discount_value = Float(required=True)
    created_by = String()
    created_at = DateTime(required=True)


@storefront.event(part_of="Offer")
class OfferRedeemed:
    """An order consumed one use of the offer."""

    __version__ = 1

    offer_id = Identifier(required=True)
    order_id = Identifier(required=True)
    used_count = Integer(required=True)
    customer_email = String()
    customer_id = String()
    redeemed_at = DateTime(required=True)
