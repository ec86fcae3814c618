"""RedeemOffer: consume one use of an offer for a placed order.

Replaying the command for the same order is a no-op, so callers may retry.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.errors import ConflictError
from storefront.offer.offer import Offer
from storefront.offer.redemption import OfferRedemption
from storefront.offer.validation import ALREADY_REDEEMED, Customer


@storefront.command(part_of="Offer")
class RedeemOffer:
    offer_id = Identifier(required=True)
    order_id = Identifier(required=True)
    customer_email = String(max_length=254)
    customer_id = String(max_length=100)


@storefront.command_handler(part_of=Offer)
class RedeemOfferHandler:
    @handle(RedeemOffer)
    def redeem_offer(self, command):
        offers = current_domain.repository_for(Offer)
        redemptions = current_domain.repository_for(OfferRedemption)
        offer_id, order_id = str(command.offer_id), str(command.order_id)

        offer = offers.resolve(offer_id=offer_id)
        if redemptions.find_for_order(offer_id, order_id) is not None:
            return {"offer_id": offer_id, "redeemed": False, "used_count": offer.used_count}

        customer = Customer.of(command.customer_email, command.customer_id)
        if offer.one_time_per_user and not customer.is_anonymous and redemptions.has_redeemed(offer_id, customer):
            raise ConflictError("You have already used this offer", code=ALREADY_REDEEMED)

        offer.redeem(order_id, customer_email=customer.email, customer_id=customer.id)
        offers.add(offer)
        redemptions.add(OfferRedemption.record(offer_id, order_id, customer))
        return {"offer_id": offer_id, "redeemed": True, "used_count": offer.used_count}
