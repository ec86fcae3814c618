"""Task aggregate: one unit of fulfillment work for one worker on one order.

State Machine:
    PENDING → {IN_PROGRESS, COMPLETED, CANCELLED}
    IN_PROGRESS → {PENDING, COMPLETED, CANCELLED}
    COMPLETED → IN_PROGRESS (reopen)
    CANCELLED → PENDING

Only the crossing into COMPLETED is reported as a completion; re-saving a
completed task changes nothing.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, Text

from storefront.domain import storefront
from storefront.order.order import coerce_enum
from storefront.task.events import (
    TaskCompleted,
    TaskCreated,
    TaskDeleted,
    TaskReassigned,
    TaskStatusChanged,
)

AD_HOC_TASK_TYPE = "other"


class TaskStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


_VALID_TRANSITIONS = {
    TaskStatus.PENDING: {TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED, TaskStatus.CANCELLED},
    TaskStatus.IN_PROGRESS: {TaskStatus.PENDING, TaskStatus.COMPLETED, TaskStatus.CANCELLED},
    TaskStatus.COMPLETED: {TaskStatus.IN_PROGRESS},
    TaskStatus.CANCELLED: {TaskStatus.PENDING},
}


def step_key_for(order_id: str, task_type: str) -> str:
    """Uniqueness key for the ``(order_id, type)`` pair."""
    return f"{order_id}:{task_type}"


def _step_key(order_id: str, task_type: str) -> str:
    # Ad-hoc tasks sit outside the workflow and may repeat per order
    if task_type == AD_HOC_TASK_TYPE:
        return f"{step_key_for(order_id, task_type)}:{uuid4().hex}"
    return step_key_for(order_id, task_type)


@storefront.aggregate
class Task:
    order_id = Identifier(required=True)
    order_number = String(max_length=50)
    task_type = String(required=True, max_length=50)
    step_key = String(required=True, max_length=150, unique=True)
    assigned_to = String(required=True, max_length=100)
    assigned_by = String(max_length=100)
    priority = String(choices=TaskPriority, default=TaskPriority.MEDIUM.value)
    status = String(choices=TaskStatus, default=TaskStatus.PENDING.value)
    notes = Text()
    created_at = DateTime()
    updated_at = DateTime()
    completed_at = DateTime()

    @classmethod
    def create(
        cls,
        order_id: str,
        task_type: str,
        assigned_to: str,
        assigned_by: str | None = None,
        order_number: str | None = None,
        priority: str = TaskPriority.MEDIUM.value,
        notes: str | None = None,
    ):
        now = datetime.now(UTC)
        task = cls(
            order_id=order_id,
            order_number=order_number,
            task_type=task_type,
            step_key=_step_key(str(order_id), task_type),
            assigned_to=assigned_to,
            assigned_by=assigned_by,
            priority=coerce_enum(TaskPriority, priority or TaskPriority.MEDIUM.value, "priority").value,
            status=TaskStatus.PENDING.value,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        task.raise_(
            TaskCreated(
                task_id=str(task.id),
                order_id=str(order_id),
                order_number=order_number,
                task_type=task_type,
                assigned_to=assigned_to,
                assigned_by=assigned_by,
                priority=task.priority,
                created_at=now,
            )
        )
        return task

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED.value

    def change_status(self, status: str, actor_id: str | None = None) -> bool:
        """Move to ``status``; returns True only when the task just became completed."""
        target = coerce_enum(TaskStatus, status, "status")
        current = TaskStatus(self.status)
        if target is current:
            return False
        if target not in _VALID_TRANSITIONS[current]:
            raise ValidationError({"status": [f"Cannot transition task from {current.value} to {target.value}"]})

        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now
        self.completed_at = now if target is TaskStatus.COMPLETED else None
        self.raise_(
            TaskStatusChanged(
                task_id=str(self.id),
                order_id=str(self.order_id),
                task_type=self.task_type,
                previous_status=current.value,
                new_status=target.value,
                changed_at=now,
            )
        )
        if target is not TaskStatus.COMPLETED:
            return False

        self.raise_(
            TaskCompleted(
                task_id=str(self.id),
                order_id=str(self.order_id),
                task_type=self.task_type,
                completed_by=actor_id,
                completed_at=now,
            )
        )
        return True

    def reassign(self, worker_id: str, reassigned_by: str) -> None:
        worker_id = (worker_id or "").strip()
        if not worker_id:
            raise ValidationError({"assigned_to": ["A task must be assigned to a worker"]})
        if worker_id == self.assigned_to:
            return
        previous = self.assigned_to
        now = datetime.now(UTC)
        self.assigned_to = worker_id
        self.updated_at = now
        self.raise_(
            TaskReassigned(
                task_id=str(self.id),
                order_id=str(self.order_id),
                previous_assignee=previous,
                assigned_to=worker_id,
                reassigned_by=reassigned_by,
                reassigned_at=now,
            )
        )

    def reprioritize(self, priority: str) -> None:
        self.priority = coerce_enum(TaskPriority, priority, "priority").value
        self.updated_at = datetime.now(UTC)

    def annotate(self, notes: str) -> None:
        self.notes = notes
        self.updated_at = datetime.now(UTC)

    def mark_deleted(self, deleted_by: str) -> None:
        """Record the removal; the repository drops the row afterwards."""
        self.raise_(
            TaskDeleted(
                task_id=str(self.id),
                order_id=str(self.order_id),
                task_type=self.task_type,
                status=self.status,
                deleted_by=deleted_by,
                deleted_at=datetime.now(UTC),
            )
        )
