"""Workflow engine: advances tasks and order status when a step completes.

On the edge into ``completed`` the engine:

1. looks up the completed step and its successor in the definition,
2. creates the successor task unless one already exists for the order
   (same assignee and priority, ``assigned_by`` is the acting principal),
3. re-derives completeness over the order's tasks and moves the order to
   the completion status, or applies the definition's point transitions.

Steps 2 and 3 are best-effort. Failures are wrapped in
``WorkflowSideEffectError`` and handed to the incident sink; the completion
that triggered them still succeeds. ``repair`` replays the same steps for
every completed step of an order and is safe to run any number of times.
"""

from dataclasses import dataclass, field

import structlog
from protean.utils.globals import current_domain

from storefront.auth import Principal
from storefront.errors import WorkflowSideEffectError
from storefront.order.order import Order
from storefront.task.task import Task
from storefront.workflow.definition import WorkflowDefinition, WorkflowStep
from storefront.workflow.incidents import IncidentSink, LoggingIncidentSink

logger = structlog.get_logger(__name__)


@dataclass
class WorkflowOutcome:
    order_id: str
    created_tasks: list[Task] = field(default_factory=list)
    previous_status: str | None = None
    order_status: str | None = None
    incidents: list[WorkflowSideEffectError] = field(default_factory=list)

    @property
    def status_changed(self) -> bool:
        return self.previous_status is not None and self.previous_status != self.order_status

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "created_tasks": [{"id": str(t.id), "type": t.task_type} for t in self.created_tasks],
            "previous_status": self.previous_status,
            "order_status": self.order_status,
            "incidents": [i.stage for i in self.incidents],
        }


class WorkflowEngine:
    def __init__(
        self,
        workflow: WorkflowDefinition,
        incidents: IncidentSink | None = None,
        orders=None,
        tasks=None,
    ):
        self.workflow = workflow
        self.incidents = incidents or LoggingIncidentSink()
        self._orders = orders
        self._tasks = tasks

    @property
    def orders(self):
        return self._orders or current_domain.repository_for(Order)

    @property
    def tasks(self):
        return self._tasks or current_domain.repository_for(Task)

    # -------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------
    def start(self, order: Order, principal: Principal, assigned_to: str, priority: str | None = None):
        """Create the first step's task for ``order`` unless it exists; returns ``(task, created)``."""
        first = self.workflow.first_step()
        task = Task.create(
            order_id=str(order.id),
            order_number=order.order_number,
            task_type=first.type,
            assigned_to=assigned_to,
            assigned_by=principal.id,
            priority=priority,
        )
        return self.tasks.add_if_absent(task)

    def on_task_completed(self, task: Task, principal: Principal) -> WorkflowOutcome:
        outcome = WorkflowOutcome(order_id=str(task.order_id))
        step = self.workflow.step_by_type(task.task_type)
        if step is None:
            return outcome

        try:
            tasks = self._order_tasks(task)
        except Exception as exc:
            self._report(outcome, exc, "load_tasks", task)
            return outcome

        self._create_successor(step, task, tasks, principal, outcome)
        self._sync_order_status([(step, task)], tasks, outcome)
        return outcome

    def repair(self, order_id: str, principal: Principal) -> WorkflowOutcome:
        """Close gaps left by interrupted completions: missing successors and stale status."""
        order = self.orders.get(order_id)
        outcome = WorkflowOutcome(order_id=str(order.id))
        tasks = list(self.tasks.for_order(str(order.id)))

        completed = []
        for step in self.workflow.steps:
            trigger = self._latest_completed(step, tasks)
            if trigger is None:
                continue
            completed.append((step, trigger))
            self._create_successor(step, trigger, tasks, principal, outcome)

        if completed:
            self._sync_order_status(completed, tasks, outcome, order=order)
        else:
            outcome.order_status = order.status
        logger.info(
            "workflow_repaired",
            order_id=outcome.order_id,
            created=[t.task_type for t in outcome.created_tasks],
            status=outcome.order_status,
        )
        return outcome

    # -------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------
    def _order_tasks(self, trigger: Task) -> list[Task]:
        """Stored tasks for the order with ``trigger`` standing in for its stored copy."""
        tasks = [t for t in self.tasks.for_order(str(trigger.order_id)) if str(t.id) != str(trigger.id)]
        tasks.append(trigger)
        return tasks

    @staticmethod
    def _latest_completed(step: WorkflowStep, tasks: list[Task]) -> Task | None:
        done = [t for t in tasks if t.task_type == step.type and t.is_completed]
        if not done:
            return None
        return max(done, key=lambda t: (t.completed_at is not None, t.completed_at or t.created_at))

    def _create_successor(
        self,
        step: WorkflowStep,
        trigger: Task,
        tasks: list[Task],
        principal: Principal,
        outcome: WorkflowOutcome,
    ) -> None:
        successor_step = self.workflow.next_step(step.type)
        if successor_step is None:
            return
        if any(t.task_type == successor_step.type for t in tasks):
            return

        try:
            successor = Task.create(
                order_id=str(trigger.order_id),
                order_number=trigger.order_number,
                task_type=successor_step.type,
                assigned_to=trigger.assigned_to,
                assigned_by=principal.id,
                priority=trigger.priority,
            )
            stored, created = self.tasks.add_if_absent(successor)
        except Exception as exc:
            self._report(outcome, exc, "create_next_task", trigger)
            return

        tasks.append(stored)
        if created:
            outcome.created_tasks.append(stored)
            logger.info(
                "workflow_task_created",
                order_id=str(trigger.order_id),
                task_id=str(stored.id),
                task_type=stored.task_type,
                assigned_to=stored.assigned_to,
            )

    def _target_status(self, step: WorkflowStep, tasks: list[Task], current: str) -> str | None:
        if self.workflow.all_completed(tasks):
            return self.workflow.completion_status if current in self.workflow.completion_from else None
        return self.workflow.point_transition(step.type, current)

    def _sync_order_status(
        self,
        completed: list[tuple[WorkflowStep, Task]],
        tasks: list[Task],
        outcome: WorkflowOutcome,
        order: Order | None = None,
    ) -> None:
        trigger = completed[-1][1]
        try:
            order = order or self.orders.get(str(trigger.order_id))
            outcome.previous_status = order.status
            moved = False
            for step, _ in completed:
                target = self._target_status(step, tasks, order.status)
                if target is not None and order.advance_status(target):
                    moved = True
            if moved:
                self.orders.add(order)
                logger.info(
                    "order_status_advanced",
                    order_id=str(order.id),
                    previous_status=outcome.previous_status,
                    status=order.status,
                )
            outcome.order_status = order.status
        except Exception as exc:
            self._report(outcome, exc, "sync_order_status", trigger)

    def _report(self, outcome: WorkflowOutcome, exc: Exception, stage: str, task: Task) -> None:
        incident = WorkflowSideEffectError(
            f"Workflow stage {stage} failed: {exc}",
            stage=stage,
            order_id=str(task.order_id),
            task_id=str(task.id),
        )
        incident.__cause__ = exc
        outcome.incidents.append(incident)
        try:
            self.incidents.report(incident)
        except Exception:
            logger.exception("workflow_incident_unreported", stage=stage, order_id=str(task.order_id))
