"""Fulfillment workflow definition: an immutable, ordered list of steps.

The definition also carries the order-status rules the engine applies when
steps complete, so an alternate workflow brings its own rules with it. All
helpers are pure: they only look at the definition and the task list they
are handed (anything with ``task_type`` and ``status`` attributes).
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

_COMPLETED = "completed"


@dataclass(frozen=True)
class WorkflowStep:
    type: str
    label: str
    order: int
    description: str = ""


@dataclass(frozen=True)
class PointTransition:
    """Completing ``step_type`` while the order is ``from_status`` moves it to ``to_status``."""

    step_type: str
    from_status: str
    to_status: str


@dataclass(frozen=True)
class WorkflowDefinition:
    steps: tuple[WorkflowStep, ...]
    completion_status: str = "packed"
    completion_from: frozenset[str] = frozenset({"confirmed", "processing", "packing"})
    point_transitions: tuple[PointTransition, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.steps:
            raise ValueError("A workflow needs at least one step")
        types = [step.type for step in self.steps]
        if len(set(types)) != len(types):
            raise ValueError("Workflow step types must be unique")
        ranks = [step.order for step in self.steps]
        if len(set(ranks)) != len(ranks):
            raise ValueError("Workflow step orders must be unique")
        object.__setattr__(self, "steps", tuple(sorted(self.steps, key=lambda s: s.order)))
        object.__setattr__(self, "completion_from", frozenset(self.completion_from))
        object.__setattr__(self, "point_transitions", tuple(self.point_transitions))

    @property
    def step_types(self) -> tuple[str, ...]:
        return tuple(step.type for step in self.steps)

    def first_step(self) -> WorkflowStep:
        return self.steps[0]

    def step_by_type(self, step_type: str | None) -> WorkflowStep | None:
        for step in self.steps:
            if step.type == step_type:
                return step
        return None

    def next_step(self, current_type: str | None) -> WorkflowStep | None:
        """The step with the smallest rank above ``current_type``.

        ``None`` as input yields the first step; an unknown or last type yields ``None``.
        """
        if current_type is None:
            return self.first_step()
        current = self.step_by_type(current_type)
        if current is None:
            return None
        for step in self.steps:
            if step.order > current.order:
                return step
        return None

    def steps_up_to(self, step_type: str | None) -> tuple[WorkflowStep, ...]:
        step = self.step_by_type(step_type)
        if step is None:
            return ()
        return tuple(s for s in self.steps if s.order <= step.order)

    def is_step_completed(self, step_type: str, tasks: Iterable) -> bool:
        return any(t.task_type == step_type and t.status == _COMPLETED for t in tasks)

    def completed_steps(self, tasks: Iterable) -> tuple[WorkflowStep, ...]:
        tasks = list(tasks)
        return tuple(step for step in self.steps if self.is_step_completed(step.type, tasks))

    def all_completed(self, tasks: Iterable) -> bool:
        return len(self.completed_steps(tasks)) == len(self.steps)

    def current_step(self, tasks: Iterable) -> WorkflowStep | None:
        """First step without a completed task; ``None`` once everything is done."""
        tasks = list(tasks)
        for step in self.steps:
            if not self.is_step_completed(step.type, tasks):
                return step
        return None

    def progress(self, tasks: Iterable) -> int:
        """Completed steps as a rounded percentage."""
        done = len(self.completed_steps(tasks))
        return int(done * 100 / len(self.steps) + 0.5)

    def point_transition(self, step_type: str, order_status: str) -> str | None:
        for transition in self.point_transitions:
            if transition.step_type == step_type and transition.from_status == order_status:
                return transition.to_status
        return None


DEFAULT_WORKFLOW = WorkflowDefinition(
    steps=(
        WorkflowStep("packing", "Packing", 1, "Pack the order items"),
        WorkflowStep("quality_check", "Quality Check", 2, "Verify order quality and contents"),
        WorkflowStep("shipping_prep", "Shipping Preparation", 3, "Prepare order for shipping"),
    ),
    point_transitions=(
        PointTransition("packing", "confirmed", "processing"),
        PointTransition("quality_check", "processing", "packing"),
    ),
)
