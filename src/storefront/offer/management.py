"""CreateOffer: superusers publish new discount codes."""

import json

from protean import handle
from protean.fields import Boolean, DateTime, Float, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.auth import Principal, require_superuser
from storefront.domain import storefront
from storefront.errors import ConflictError
from storefront.offer.offer import Offer


@storefront.command(part_of="Offer")
class CreateOffer:
    actor_id = String(required=True, max_length=100)
    actor_role = String(required=True, max_length=20)
    code = String(required=True, max_length=50)
    title = String(required=True, max_length=200)
    description = Text()
    discount_type = String(required=True, max_length=20)
    discount_value = Float(required=True)
    min_order_amount = Float()
    max_discount = Float()
    valid_from = DateTime(required=True)
    valid_until = DateTime(required=True)
    usage_limit = Integer()
    one_time_per_user = Boolean(default=False)
    is_active = Boolean(default=True)
    customer_emails = Text()  # JSON list
    customer_ids = Text()  # JSON list


@storefront.command_handler(part_of=Offer)
class OfferManagementHandler:
    @handle(CreateOffer)
    def create_offer(self, command):
        principal = Principal.of(command.actor_id, command.actor_role)
        require_superuser(principal, "Only superusers can create offers")

        repo = current_domain.repository_for(Offer)
        if repo.find_by_code(command.code) is not None:
            raise ConflictError(f"Offer code {command.code.strip().upper()} already exists")

        offer = Offer.create(
            code=command.code,
            title=command.title,
            description=command.description,
            discount_type=command.discount_type,
            discount_value=command.discount_value,
            min_order_amount=command.min_order_amount,
            max_discount=command.max_discount,
            valid_from=command.valid_from,
            valid_until=command.valid_until,
            usage_limit=command.usage_limit,
            one_time_per_user=command.one_time_per_user,
            is_active=command.is_active,
            customer_emails=json.loads(command.customer_emails) if command.customer_emails else None,
            customer_ids=json.loads(command.customer_ids) if command.customer_ids else None,
            created_by=principal.id,
        )
        repo.add(offer)
        return str(offer.id)
