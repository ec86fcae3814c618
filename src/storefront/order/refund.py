"""UpdateRefund: superusers record the progress of a refund on a cancelled order."""

from protean import handle
from protean.fields import String, Text
from protean.utils.globals import current_domain

from storefront.auth import Principal, require_superuser
from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class UpdateRefund:
    order_ref = String(required=True, max_length=100)
    actor_id = String(required=True, max_length=100)
    actor_role = String(required=True, max_length=20)
    refund_status = String(required=True, max_length=20)
    refund_id = String(max_length=255)
    notes = Text()


@storefront.command_handler(part_of=Order)
class RefundHandler:
    @handle(UpdateRefund)
    def update_refund(self, command):
        principal = Principal.of(command.actor_id, command.actor_role)
        require_superuser(principal, "Only superusers can update refunds")

        repo = current_domain.repository_for(Order)
        order = repo.get_by_reference(command.order_ref)
        order.update_refund(command.refund_status, refund_id=command.refund_id, notes=command.notes)
        repo.add(order)
        return order.to_dict()
