"""Application tests for UpdateOrder and UpdateRefund."""

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError
from storefront.errors import AuthorizationError
from storefront.listing import get_order_cache
from storefront.order.order import Order
from storefront.order.refund import UpdateRefund
from storefront.order.update import UpdateOrder

SUPERUSER = {"actor_id": "admin-1", "actor_role": "superuser"}
WORKER = {"actor_id": "worker-1", "actor_role": "worker"}


def _update(order_ref, actor=SUPERUSER, **changes):
    return current_domain.process(UpdateOrder(order_ref=str(order_ref), **actor, **changes), asynchronous=False)


def _refund(order_ref, actor=SUPERUSER, **changes):
    return current_domain.process(UpdateRefund(order_ref=str(order_ref), **actor, **changes), asynchronous=False)


def _reload(order):
    return current_domain.repository_for(Order).get(order.id)


class TestOrderUpdates:
    def test_superuser_assigns_order(self, place_order):
        order = place_order()

        result = _update(order.id, assigned_to="worker-1")

        assert result["assigned_to"] == "worker-1"
        assert _reload(order).assigned_to == "worker-1"

    def test_superuser_unassigns_order(self, place_order):
        order = place_order(assigned_to="worker-1")

        _update(order.id, unassign=True)

        assert _reload(order).assigned_to is None

    def test_order_number_resolves(self, place_order):
        order = place_order()

        _update(order.order_number, status="confirmed")

        assert _reload(order).status == "confirmed"

    def test_worker_updates_assigned_order(self, place_order):
        order = place_order(status="packed", assigned_to="worker-1")

        _update(order.id, actor=WORKER, status="shipped", tracking_number="TRK-1", courier_company="BlueDart")

        stored = _reload(order)
        assert (stored.status, stored.tracking_number, stored.courier_company) == ("shipped", "TRK-1", "BlueDart")

    def test_worker_cannot_assign(self, place_order):
        order = place_order(assigned_to="worker-1")
        with pytest.raises(AuthorizationError, match="Workers cannot assign orders"):
            _update(order.id, actor=WORKER, assigned_to="worker-2")

    def test_worker_cannot_update_unassigned_order(self, place_order):
        order = place_order()
        with pytest.raises(AuthorizationError, match="You can only update orders assigned to you"):
            _update(order.id, actor=WORKER, notes="fragile")

    def test_backward_status_rejected(self, place_order):
        order = place_order(status="packed")
        with pytest.raises(ValidationError):
            _update(order.id, status="confirmed")
        assert _reload(order).status == "packed"

    def test_cancelling_paid_prepaid_order_starts_refund(self, place_order):
        order = place_order(payment_method="razorpay", payment_status="paid")

        result = _update(order.id, status="cancelled")

        assert result["status"] == "cancelled"
        assert result["refund_status"] == "started"

    def test_cancelling_cod_order_needs_no_refund(self, place_order):
        order = place_order()

        _update(order.id, status="cancelled")

        assert _reload(order).refund_status is None

    def test_update_invalidates_listing_cache(self, place_order):
        order = place_order()
        cache = get_order_cache()
        cache.set([order.to_dict()])

        _update(order.id, status="confirmed")

        assert cache.get() is None

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            _update("missing-order", status="confirmed")


class TestRefunds:
    @pytest.fixture
    def cancelled_paid_order(self, place_order):
        return place_order(status="cancelled", payment_method="upi", payment_status="paid")

    def test_progress_refund(self, cancelled_paid_order):
        result = _refund(cancelled_paid_order.id, refund_status="processing", refund_id="rfnd_1", notes="initiated")

        assert result["refund_status"] == "processing"
        assert result["refund_id"] == "rfnd_1"
        assert result["refund_notes"] == "initiated"
        assert result["payment_status"] == "paid"

    def test_completed_refund_marks_payment_refunded(self, cancelled_paid_order):
        result = _refund(cancelled_paid_order.id, refund_status="completed")

        assert result["payment_status"] == "refunded"

    def test_refund_requires_cancelled_order(self, place_order):
        order = place_order(payment_method="upi", payment_status="paid")
        with pytest.raises(ValidationError) as exc:
            _refund(order.id, refund_status="started")
        assert exc.value.messages["refund_status"] == ["Refund can only be processed for cancelled orders"]

    def test_cod_orders_are_not_refundable(self, place_order):
        order = place_order(status="cancelled")
        with pytest.raises(ValidationError) as exc:
            _refund(order.id, refund_status="started")
        assert exc.value.messages["refund_status"] == ["Refund is not applicable for cash on delivery orders"]

    def test_unpaid_orders_are_not_refundable(self, place_order):
        order = place_order(status="cancelled", payment_method="razorpay", payment_status="failed")
        with pytest.raises(ValidationError):
            _refund(order.id, refund_status="started")

    def test_unknown_refund_status(self, cancelled_paid_order):
        with pytest.raises(ValidationError):
            _refund(cancelled_paid_order.id, refund_status="bounced")

    def test_workers_cannot_update_refunds(self, cancelled_paid_order):
        with pytest.raises(AuthorizationError, match="Only superusers can update refunds"):
            _refund(cancelled_paid_order.id, actor=WORKER, refund_status="processing")
