"""Sinks for workflow automation failures.

Side effects of a task completion never fail the completion itself; every
failure they swallow is handed to a sink so stuck workflows stay visible.
"""

from abc import ABC, abstractmethod

import structlog

from storefront.errors import WorkflowSideEffectError

logger = structlog.get_logger(__name__)


class IncidentSink(ABC):
    @abstractmethod
    def report(self, incident: WorkflowSideEffectError) -> None: ...


class LoggingIncidentSink(IncidentSink):
    def report(self, incident: WorkflowSideEffectError) -> None:
        logger.error(
            "workflow_side_effect_failed",
            stage=incident.stage,
            order_id=incident.order_id,
            task_id=incident.task_id,
            error=incident.message,
            exc_info=incident.__cause__ or incident,
        )


class RecordingIncidentSink(IncidentSink):
    """Keeps incidents in memory, for tests and diagnostics."""

    def __init__(self):
        self.incidents: list[WorkflowSideEffectError] = []

    def report(self, incident: WorkflowSideEffectError) -> None:
        self.incidents.append(incident)

    @property
    def stages(self) -> list[str]:
        return [incident.stage for incident in self.incidents]

    def clear(self) -> None:
        self.incidents.clear()
