"""Application tests for StartWorkflow and RepairWorkflow."""

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError
from storefront.errors import AuthorizationError
from storefront.order.order import Order
from storefront.task.task import Task
from storefront.workflow.kickoff import RepairWorkflow, StartWorkflow

SUPERUSER = {"actor_id": "admin-1", "actor_role": "superuser"}
WORKER = {"actor_id": "worker-1", "actor_role": "worker"}


def _start(order_ref, actor=SUPERUSER, **kwargs):
    return current_domain.process(StartWorkflow(order_ref=order_ref, **actor, **kwargs), asynchronous=False)


def _repair(order_ref, actor=SUPERUSER):
    return current_domain.process(RepairWorkflow(order_ref=order_ref, **actor), asynchronous=False)


def _types(order):
    return sorted(t.task_type for t in current_domain.repository_for(Task).for_order(str(order.id)))


class TestStartWorkflow:
    def test_creates_first_step_for_order_assignee(self, place_order):
        order = place_order(status="confirmed", assigned_to="worker-1")

        result = _start(order.order_number)

        assert result["type"] == "packing"
        assert result["created"] is True
        task = current_domain.repository_for(Task).get(result["task_id"])
        assert task.assigned_to == "worker-1"
        assert task.assigned_by == "admin-1"

    def test_is_idempotent(self, place_order):
        order = place_order(assigned_to="worker-1")
        first = _start(str(order.id))

        second = _start(str(order.id), assigned_to="worker-2")

        assert second == {"task_id": first["task_id"], "type": "packing", "created": False}
        assert _types(order) == ["packing"]

    def test_explicit_assignee_and_priority(self, place_order):
        order = place_order()

        result = _start(str(order.id), assigned_to="worker-3", priority="high")

        task = current_domain.repository_for(Task).get(result["task_id"])
        assert (task.assigned_to, task.priority) == ("worker-3", "high")

    def test_requires_an_assignee(self, place_order):
        order = place_order()
        with pytest.raises(ValidationError) as exc:
            _start(str(order.id))
        assert "assigned_to" in exc.value.messages

    def test_workers_cannot_start_workflows(self, place_order):
        order = place_order(assigned_to="worker-1")
        with pytest.raises(AuthorizationError):
            _start(str(order.id), actor=WORKER)

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            _start("ORD-1999-000000")


class TestRepairWorkflow:
    def test_creates_missing_successor_and_syncs_status(self, place_order, make_task):
        order = place_order(status="confirmed")
        make_task(order, "packing", status="completed")

        result = _repair(order.order_number)

        assert [t["type"] for t in result["created_tasks"]] == ["quality_check"]
        assert result["previous_status"] == "confirmed"
        assert result["order_status"] == "processing"
        assert _types(order) == ["packing", "quality_check"]

    def test_replays_every_completed_step_in_order(self, place_order, make_task):
        order = place_order(status="confirmed")
        make_task(order, "packing", status="completed")
        make_task(order, "quality_check", status="completed")

        result = _repair(str(order.id))

        assert [t["type"] for t in result["created_tasks"]] == ["shipping_prep"]
        assert current_domain.repository_for(Order).get(order.id).status == "packing"

    def test_completes_a_finished_workflow(self, place_order, make_task):
        order = place_order(status="processing")
        for step in ("packing", "quality_check", "shipping_prep"):
            make_task(order, step, status="completed")

        result = _repair(str(order.id))

        assert result["created_tasks"] == []
        assert result["order_status"] == "packed"

    def test_is_idempotent(self, place_order, make_task):
        order = place_order(status="confirmed")
        make_task(order, "packing", status="completed")
        _repair(str(order.id))

        second = _repair(str(order.id))

        assert second["created_tasks"] == []
        assert second["order_status"] == "processing"
        assert _types(order) == ["packing", "quality_check"]

    def test_nothing_completed_leaves_order_alone(self, place_order, make_task):
        order = place_order(status="confirmed")
        make_task(order, "packing")

        result = _repair(str(order.id))

        assert result["created_tasks"] == []
        assert result["order_status"] == "confirmed"

    def test_workers_cannot_repair(self, place_order):
        order = place_order()
        with pytest.raises(AuthorizationError):
            _repair(str(order.id), actor=WORKER)
