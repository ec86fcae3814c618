"""OfferRedemption: one consumed use of an offer by one order."""

from datetime import UTC, datetime

from protean.fields import DateTime, Identifier, String

from storefront.domain import storefront
from storefront.offer.validation import Customer


def redemption_key_for(offer_id: str, order_id: str) -> str:
    return f"{offer_id}:{order_id}"


@storefront.aggregate
class OfferRedemption:
    offer_id = Identifier(required=True)
    order_id = Identifier(required=True)
    redemption_key = String(required=True, max_length=150, unique=True)
    customer_email = String(max_length=254)
    customer_id = String(max_length=100)
    redeemed_at = DateTime()

    @classmethod
    def record(cls, offer_id: str, order_id: str, customer: Customer):
        return cls(
            offer_id=offer_id,
            order_id=order_id,
            redemption_key=redemption_key_for(offer_id, order_id),
            customer_email=customer.email,
            customer_id=customer.id,
            redeemed_at=datetime.now(UTC),
        )


@storefront.repository(part_of=OfferRedemption)
class OfferRedemptionRepository:
    def find_for_order(self, offer_id: str, order_id: str) -> OfferRedemption | None:
        results = self._dao.query.filter(redemption_key=redemption_key_for(offer_id, order_id)).all().items
        return results[0] if results else None

    def has_redeemed(self, offer_id: str, customer: Customer) -> bool:
        """Look the customer up by id first, then by email."""
        if customer.id:
            by_id = self._dao.query.filter(offer_id=offer_id, customer_id=customer.id).all().items
            if by_id:
                return True
        if customer.email:
            by_email = self._dao.query.filter(offer_id=offer_id, customer_email=customer.email).all().items
            if by_email:
                return True
        return False
