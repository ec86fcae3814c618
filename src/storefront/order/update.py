"""UpdateOrder: partial back-office update of an order.

Workers may only touch orders assigned to them and never the assignment;
cancelling a paid prepaid order flags it for refund.
"""

from protean import handle
from protean.fields import Boolean, String, Text
from protean.utils.globals import current_domain

from storefront.auth import Principal, ensure_can_update_order
from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class UpdateOrder:
    order_ref = String(required=True, max_length=100)  # id or order number
    actor_id = String(required=True, max_length=100)
    actor_role = String(required=True, max_length=20)
    status = String(max_length=20)
    assigned_to = String(max_length=100)
    unassign = Boolean(default=False)
    payment_status = String(max_length=20)
    tracking_number = String(max_length=255)
    courier_company = String(max_length=100)
    notes = Text()


@storefront.command_handler(part_of=Order)
class UpdateOrderHandler:
    @handle(UpdateOrder)
    def update_order(self, command):
        principal = Principal.of(command.actor_id, command.actor_role)
        repo = current_domain.repository_for(Order)
        order = repo.get_by_reference(command.order_ref)

        changes_assignment = command.unassign or command.assigned_to is not None
        ensure_can_update_order(principal, order, changes_assignment=changes_assignment)

        if changes_assignment:
            order.assign(None if command.unassign else command.assigned_to)
        if command.payment_status:
            order.set_payment_status(command.payment_status)
        if command.status:
            order.change_status(command.status)
        if any(v is not None for v in (command.tracking_number, command.courier_company, command.notes)):
            order.update_shipping_details(
                tracking_number=command.tracking_number,
                courier_company=command.courier_company,
                notes=command.notes,
            )

        repo.add(order)
        return order.to_dict()
