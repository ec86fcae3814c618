"""BDD tests for the order fulfillment workflow."""

from protean import current_domain
from pytest_bdd import given, parsers, scenarios, then, when
from storefront.errors import StorefrontError
from storefront.order.order import Order
from storefront.task.task import Task
from storefront.task.update import UpdateTask

scenarios("features/order_workflow.feature")


def _tasks(order):
    return current_domain.repository_for(Task).for_order(str(order.id))


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a confirmed order assigned to "{worker}"'), target_fixture="order")
def _(place_order, worker):
    return place_order(status="confirmed", assigned_to=worker)


@given(parsers.cfparse('a "{task_type}" task for "{worker}"'))
def _(make_task, order, task_type, worker):
    make_task(order, task_type, assigned_to=worker)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('"{worker}" completes the "{task_type}" task'))
def _(order, outcome, worker, task_type):
    task = next(t for t in _tasks(order) if t.task_type == task_type)
    try:
        outcome["result"] = current_domain.process(
            UpdateTask(task_id=str(task.id), status="completed", actor_id=worker, actor_role="worker"),
            asynchronous=False,
        )
    except StorefrontError as exc:
        outcome["error"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('a "{task_type}" task is assigned to "{worker}"'))
def _(order, task_type, worker):
    matching = [t for t in _tasks(order) if t.task_type == task_type]
    assert len(matching) == 1
    assert matching[0].assigned_to == worker


@then(parsers.cfparse('no "{task_type}" task exists'))
def _(order, task_type):
    assert all(t.task_type != task_type for t in _tasks(order))


@then(parsers.cfparse('the order status is "{status}"'))
def _(order, status):
    assert current_domain.repository_for(Order).get(order.id).status == status


@then(parsers.cfparse("the order has {count:d} tasks"))
def _(order, count):
    assert len(_tasks(order)) == count
