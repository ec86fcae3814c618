"""StartWorkflow / RepairWorkflow: explicit superuser entry points into the engine."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import String
from protean.utils.globals import current_domain

from storefront.auth import Principal, require_superuser
from storefront.domain import storefront
from storefront.order.order import Order
from storefront.task.task import Task, TaskPriority
from storefront.workflow import build_engine


@storefront.command(part_of="Task")
class StartWorkflow:
    """Create the first workflow task for an order (no-op if it already exists)."""

    order_ref = String(required=True, max_length=100)
    actor_id = String(required=True, max_length=100)
    actor_role = String(required=True, max_length=20)
    assigned_to = String(max_length=100)  # defaults to the order's assignee
    priority = String(max_length=20, default=TaskPriority.MEDIUM.value)


@storefront.command(part_of="Task")
class RepairWorkflow:
    """Re-run workflow advancement for every completed step of an order."""

    order_ref = String(required=True, max_length=100)
    actor_id = String(required=True, max_length=100)
    actor_role = String(required=True, max_length=20)


@storefront.command_handler(part_of=Task)
class WorkflowKickoffHandler:
    @handle(StartWorkflow)
    def start_workflow(self, command):
        principal = Principal.of(command.actor_id, command.actor_role)
        require_superuser(principal, "Only superusers can start workflows")

        order = current_domain.repository_for(Order).get_by_reference(command.order_ref)
        assignee = (command.assigned_to or order.assigned_to or "").strip()
        if not assignee:
            raise ValidationError({"assigned_to": ["Assign the order or name a worker to start its workflow"]})

        task, created = build_engine().start(order, principal, assigned_to=assignee, priority=command.priority)
        return {"task_id": str(task.id), "type": task.task_type, "created": created}

    @handle(RepairWorkflow)
    def repair_workflow(self, command):
        principal = Principal.of(command.actor_id, command.actor_role)
        require_superuser(principal, "Only superusers can repair workflows")

        order = current_domain.repository_for(Order).get_by_reference(command.order_ref)
        return build_engine().repair(str(order.id), principal).to_dict()
