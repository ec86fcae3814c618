"""Workflow configuration registry.

Holds the active workflow definition and incident sink; handlers build a
``WorkflowEngine`` from them for every request.
"""

from storefront.workflow.definition import DEFAULT_WORKFLOW, WorkflowDefinition
from storefront.workflow.incidents import IncidentSink, LoggingIncidentSink

_workflow: WorkflowDefinition | None = None
_incident_sink: IncidentSink | None = None


def get_workflow() -> WorkflowDefinition:
    return _workflow or DEFAULT_WORKFLOW


def configure_workflow(definition: WorkflowDefinition) -> None:
    """Replace the active workflow definition (e.g. with an alternate step list)."""
    global _workflow
    _workflow = definition


def get_incident_sink() -> IncidentSink:
    global _incident_sink
    if _incident_sink is None:
        _incident_sink = LoggingIncidentSink()
    return _incident_sink


def set_incident_sink(sink: IncidentSink) -> None:
    global _incident_sink
    _incident_sink = sink


def build_engine():
    from storefront.workflow.engine import WorkflowEngine

    return WorkflowEngine(workflow=get_workflow(), incidents=get_incident_sink())


def reset_workflow() -> None:
    """Restore the default definition and sink (useful for testing)."""
    global _workflow, _incident_sink
    _workflow = None
    _incident_sink = None
