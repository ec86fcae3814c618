"""Task domain events."""

from protean.fields import DateTime, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="Task")
class TaskCreated:
    __version__ = 1

    task_id = Identifier(required=True)
    order_id = Identifier(required=True)
    order_number = String()
    task_type = String(required=True)
    assigned_to = String(required=True)
    assigned_by = String()
    priority = String(required=True)
    created_at = DateTime(required=True)


@storefront.event(part_of="Task")
class TaskStatusChanged:
    __version__ = 1

    task_id = Identifier(required=True)
    order_id = Identifier(required=True)
    task_type = String(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@storefront.event(part_of="Task")
class TaskCompleted:
    """A task crossed into ``completed``; drives workflow advancement."""

    __version__ = 1

    task_id = Identifier(required=True)
    order_id = Identifier(required=True)
    task_type = String(required=True)
    completed_by = String()
    completed_at = DateTime(required=True)


@storefront.event(part_of="Task")
class TaskReassigned:
    __version__ = 1

    task_id = Identifier(required=True)
    order_id = Identifier(required=True)
    previous_assignee = String(required=True)
    assigned_to = String(required=True)
    reassigned_by = String(required=True)
    reassigned_at = DateTime(required=True)


@storefront.event(part_of="Task")
class TaskDeleted:
    __version__ = 1

    task_id = Identifier(required=True)
    order_id = Identifier(required=True)
    task_type = String(required=True)
    status = String(required=True)
    deleted_by = String(required=True)
    deleted_at = DateTime(required=True)
