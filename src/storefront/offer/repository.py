"""Offer store."""

from protean.exceptions import ObjectNotFoundError

from storefront.domain import storefront
from storefront.errors import OfferNotFound
from storefront.offer.offer import Offer, normalize_code

_MAX_OFFERS = 1_000


@storefront.repository(part_of=Offer)
class OfferRepository:
    def find_by_code(self, code: str) -> Offer | None:
        results = self._dao.query.filter(code=normalize_code(code)).all().items
        return results[0] if results else None

    def resolve(self, offer_id: str | None = None, code: str | None = None) -> Offer:
        """Fetch by id when given, otherwise by code; raises ``OfferNotFound``."""
        if offer_id:
            try:
                return self.get(offer_id)
            except ObjectNotFoundError:
                raise OfferNotFound() from None
        offer = self.find_by_code(code) if code else None
        if offer is None:
            raise OfferNotFound()
        return offer

    def active(self) -> list[Offer]:
        offers = self._dao.query.filter(is_active=True).limit(_MAX_OFFERS).all().items
        return sorted(offers, key=lambda o: o.valid_until)
