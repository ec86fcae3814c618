"""Store-backed entry points around the pure offer validator."""

from datetime import datetime

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.offer.offer import Offer
from storefront.offer.redemption import OfferRedemption
from storefront.offer.validation import Customer, OfferQuote, is_offer_available, validate_offer


def _redemption_lookup():
    return current_domain.repository_for(OfferRedemption).has_redeemed


def quote_offer(
    subtotal: float | None,
    offer_id: str | None = None,
    offer_code: str | None = None,
    customer: Customer | None = None,
    now: datetime | None = None,
) -> tuple[Offer, OfferQuote]:
    if not offer_id and not offer_code:
        raise ValidationError({"offer": ["Offer ID or code is required"]})
    if subtotal is None:
        raise ValidationError({"subtotal": ["Subtotal is required"]})

    offer = current_domain.repository_for(Offer).resolve(offer_id=offer_id, code=offer_code)
    quote = validate_offer(offer, subtotal, customer or Customer(), _redemption_lookup(), now=now)
    return offer, quote


def available_offers(customer: Customer, now: datetime | None = None) -> list[Offer]:
    """Active offers this customer could use right now (minimum amount aside)."""
    lookup = _redemption_lookup()
    return [
        offer
        for offer in current_domain.repository_for(Offer).active()
        if is_offer_available(offer, customer, lookup, now=now)
    ]
