"""CreateTask / DeleteTask: superuser management of individual tasks."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.auth import Principal, require_superuser
from storefront.domain import storefront
from storefront.errors import ConflictError
from storefront.order.order import Order
from storefront.task.task import AD_HOC_TASK_TYPE, Task, TaskPriority
from storefront.workflow import get_workflow

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Task")
class CreateTask:
    order_ref = String(required=True, max_length=100)
    task_type = String(required=True, max_length=50)
    assigned_to = String(required=True, max_length=100)
    actor_id = String(required=True, max_length=100)
    actor_role = String(required=True, max_length=20)
    priority = String(max_length=20, default=TaskPriority.MEDIUM.value)
    notes = Text()


@storefront.command(part_of="Task")
class DeleteTask:
    task_id = Identifier(required=True)
    actor_id = String(required=True, max_length=100)
    actor_role = String(required=True, max_length=20)


@storefront.command_handler(part_of=Task)
class TaskAssignmentHandler:
    @handle(CreateTask)
    def create_task(self, command):
        principal = Principal.of(command.actor_id, command.actor_role)
        require_superuser(principal, "Only superusers can create tasks")

        allowed = set(get_workflow().step_types) | {AD_HOC_TASK_TYPE}
        if command.task_type not in allowed:
            raise ValidationError({"type": [f"Unknown task type: {command.task_type}"]})

        order = current_domain.repository_for(Order).get_by_reference(command.order_ref)
        task = Task.create(
            order_id=str(order.id),
            order_number=order.order_number,
            task_type=command.task_type,
            assigned_to=command.assigned_to.strip(),
            assigned_by=principal.id,
            priority=command.priority,
            notes=command.notes,
        )
        stored, created = current_domain.repository_for(Task).add_if_absent(task)
        if not created:
            raise ConflictError(
                f"A {command.task_type} task already exists for order {order.order_number}",
                task_id=str(stored.id),
            )
        return str(stored.id)

    @handle(DeleteTask)
    def delete_task(self, command):
        principal = Principal.of(command.actor_id, command.actor_role)
        require_superuser(principal, "Only superusers can delete tasks")

        repo = current_domain.repository_for(Task)
        task = repo.get(command.task_id)
        task.mark_deleted(principal.id)
        repo.delete_task(task)
        logger.info("task_deleted", task_id=str(task.id), order_id=str(task.order_id), deleted_by=principal.id)
