"""Application tests for CreateTask and DeleteTask."""

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError
from storefront.errors import AuthorizationError, ConflictError
from storefront.task.assignment import CreateTask, DeleteTask
from storefront.task.task import Task

SUPERUSER = {"actor_id": "admin-1", "actor_role": "superuser"}
WORKER = {"actor_id": "worker-1", "actor_role": "worker"}


def _create(order, task_type="packing", actor=SUPERUSER, **kwargs):
    kwargs.setdefault("assigned_to", "worker-1")
    return current_domain.process(
        CreateTask(order_ref=str(order.id), task_type=task_type, **actor, **kwargs),
        asynchronous=False,
    )


class TestCreateTask:
    def test_creates_pending_task(self, place_order):
        order = place_order()

        task_id = _create(order, priority="high", notes="gift wrap")

        task = current_domain.repository_for(Task).get(task_id)
        assert task.status == "pending"
        assert task.order_number == order.order_number
        assert (task.assigned_to, task.assigned_by) == ("worker-1", "admin-1")
        assert (task.priority, task.notes) == ("high", "gift wrap")

    def test_resolves_order_number(self, place_order):
        order = place_order()
        task_id = current_domain.process(
            CreateTask(order_ref=order.order_number, task_type="packing", assigned_to="worker-1", **SUPERUSER),
            asynchronous=False,
        )
        assert current_domain.repository_for(Task).get(task_id).order_id == str(order.id)

    def test_second_task_of_same_type_conflicts(self, place_order):
        order = place_order()
        _create(order)

        with pytest.raises(ConflictError) as exc:
            _create(order, assigned_to="worker-2")

        assert exc.value.message == f"A packing task already exists for order {order.order_number}"
        assert len(current_domain.repository_for(Task).for_order(str(order.id))) == 1

    def test_ad_hoc_tasks_may_repeat(self, place_order):
        order = place_order()
        _create(order, "other")
        _create(order, "other")

        assert len(current_domain.repository_for(Task).for_order(str(order.id))) == 2

    def test_unknown_type_rejected(self, place_order):
        with pytest.raises(ValidationError):
            _create(place_order(), "gift_wrapping")

    def test_workers_cannot_create_tasks(self, place_order):
        with pytest.raises(AuthorizationError, match="Only superusers can create tasks"):
            _create(place_order(), actor=WORKER)


class TestDeleteTask:
    def test_superuser_deletes_task(self, place_order, make_task):
        task = make_task(place_order())

        current_domain.process(DeleteTask(task_id=str(task.id), **SUPERUSER), asynchronous=False)

        with pytest.raises(ObjectNotFoundError):
            current_domain.repository_for(Task).get(task.id)

    def test_deleted_step_can_be_recreated(self, place_order, make_task):
        order = place_order()
        task = make_task(order)
        current_domain.process(DeleteTask(task_id=str(task.id), **SUPERUSER), asynchronous=False)

        assert _create(order) != str(task.id)

    def test_workers_cannot_delete(self, place_order, make_task):
        task = make_task(place_order())
        with pytest.raises(AuthorizationError, match="Only superusers can delete tasks"):
            current_domain.process(DeleteTask(task_id=str(task.id), **WORKER), asynchronous=False)

    def test_deletion_is_recorded_as_an_event(self, place_order, make_task):
        task = make_task(place_order())

        current_domain.process(DeleteTask(task_id=str(task.id), **SUPERUSER), asynchronous=False)

        messages = current_domain.event_store.store.read("storefront::task")
        deleted = [
            m
            for m in messages
            if m.metadata and m.metadata.headers and "TaskDeleted" in (m.metadata.headers.type or "")
        ]
        assert len(deleted) == 1
        assert deleted[0].data["task_id"] == str(task.id)
        assert deleted[0].data["deleted_by"] == SUPERUSER["actor_id"]
