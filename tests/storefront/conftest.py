import itertools
from datetime import UTC, datetime, timedelta

import pytest
from protean.integrations.pytest import DomainFixture
from protean.utils.globals import current_domain

_order_numbers = itertools.count(1)


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield
        for _, provider in current_domain.providers.items():
            provider._data_reset()


@pytest.fixture()
def superuser():
    from storefront.auth import Principal, Role

    return Principal(id="admin-1", role=Role.SUPERUSER)


@pytest.fixture()
def worker():
    from storefront.auth import Principal, Role

    return Principal(id="worker-1", role=Role.WORKER)


@pytest.fixture()
def place_order():
    """Place an order through the domain and return it, optionally moved to ``status``."""
    from storefront.order.order import Order

    def _place(status: str | None = None, assigned_to: str | None = None, **overrides):
        data = {
            "order_number": overrides.pop("order_number", None) or f"ORD-2025-{next(_order_numbers):06d}",
            "customer": {"name": "Asha Rao", "email": "asha@example.com", "phone": "9876543210"},
            "shipping_address": {
                "address_line1": "12 MG Road",
                "city": "Bengaluru",
                "state": "Karnataka",
                "pincode": "560001",
            },
            "items": [{"product_id": "prod-1", "title": "Linen Shirt", "quantity": 2, "price": 1499.0}],
            "shipping": 99.0,
        }
        data.update(overrides)
        order = Order.place(**data)
        if assigned_to:
            order.assign(assigned_to)
        if status:
            order.change_status(status)
        current_domain.repository_for(Order).add(order)
        return current_domain.repository_for(Order).get(order.id)

    return _place


@pytest.fixture()
def make_task():
    """Store a task for an order, optionally already in ``status``."""
    from storefront.task.task import Task

    def _make(order, task_type="packing", assigned_to="worker-1", status=None, priority="medium"):
        task = Task.create(
            order_id=str(order.id),
            order_number=order.order_number,
            task_type=task_type,
            assigned_to=assigned_to,
            assigned_by="admin-1",
            priority=priority,
        )
        if status:
            task.change_status(status)
        current_domain.repository_for(Task).add(task)
        return current_domain.repository_for(Task).get(task.id)

    return _make


@pytest.fixture()
def make_offer():
    from storefront.offer.offer import Offer

    def _make(persist=True, **overrides):
        now = datetime.now(UTC)
        data = {
            "code": "welcome10",
            "title": "Welcome offer",
            "discount_type": "percentage",
            "discount_value": 10.0,
            "valid_from": now - timedelta(days=1),
            "valid_until": now + timedelta(days=30),
        }
        used_count = overrides.pop("used_count", 0)
        data.update(overrides)
        offer = Offer.create(**data)
        offer.used_count = used_count
        if persist:
            current_domain.repository_for(Offer).add(offer)
            return current_domain.repository_for(Offer).get(offer.id)
        return offer

    return _make
