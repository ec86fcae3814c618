"""Application tests for the cached order listing."""

import pytest
from storefront.errors import AuthorizationError, StoreUnavailable
from storefront.listing import get_order_cache
from storefront.listing.cache import InMemoryOrderCache
from storefront.listing.queries import list_orders
from storefront.order.repository import OrderRepository


class _ExplodingCache(InMemoryOrderCache):
    def __init__(self, fail_on):
        super().__init__()
        self.fail_on = fail_on

    def get(self):
        if self.fail_on == "get":
            raise RuntimeError("cache read failed")
        return super().get()

    def set(self, orders, generation=None):
        if self.fail_on == "set":
            raise RuntimeError("cache write failed")
        return super().set(orders, generation=generation)


@pytest.fixture
def orders(place_order):
    return [
        place_order(assigned_to="worker-1"),
        place_order(status="packed", assigned_to="worker-2"),
        place_order(status="shipped", assigned_to="worker-1"),
    ]


class TestReadThrough:
    def test_first_read_misses_then_hits(self, orders, superuser):
        first = list_orders(superuser)
        second = list_orders(superuser)

        assert first.cache_hit is False
        assert second.cache_hit is True
        assert first.total == second.total == 3

    def test_write_invalidates(self, orders, superuser, place_order):
        list_orders(superuser)

        place_order()

        listing = list_orders(superuser)
        assert listing.cache_hit is False
        assert listing.total == 4

    def test_filters_apply_to_cached_snapshot(self, orders, superuser):
        list_orders(superuser)

        listing = list_orders(superuser, status="packed,shipped")

        assert listing.cache_hit is True
        assert {o["status"] for o in listing.orders} == {"packed", "shipped"}

    def test_pagination_reports_filtered_total(self, orders, superuser):
        listing = list_orders(superuser, limit=1, offset=1)

        assert len(listing.orders) == 1
        assert listing.total == 3


class TestScoping:
    def test_workers_see_only_their_orders(self, orders, worker):
        listing = list_orders(worker)

        assert listing.total == 2
        assert {o["assigned_to"] for o in listing.orders} == {"worker-1"}

    def test_workers_cannot_list_other_workers(self, orders, worker):
        with pytest.raises(AuthorizationError):
            list_orders(worker, assigned_to="worker-2")

    def test_superuser_filters_by_assignee(self, orders, superuser):
        assert list_orders(superuser, assigned_to="worker-2").total == 1


class TestDegradedModes:
    def test_store_failure_is_unavailable(self, monkeypatch, superuser):
        def _down(self):
            raise ConnectionError("database is gone")

        monkeypatch.setattr(OrderRepository, "all_orders", _down)

        with pytest.raises(StoreUnavailable):
            list_orders(superuser)
        assert get_order_cache().get() is None

    def test_cache_read_failure_falls_back_to_store(self, orders, superuser):
        listing = list_orders(superuser, cache=_ExplodingCache("get"))

        assert listing.cache_hit is False
        assert listing.total == 3

    def test_cache_write_failure_still_serves_data(self, orders, superuser):
        listing = list_orders(superuser, cache=_ExplodingCache("set"))

        assert listing.total == 3
