"""Integration tests for the offer endpoints via TestClient."""

from datetime import UTC, datetime, timedelta

from protean import current_domain
from storefront.offer.offer import Offer


def _window():
    now = datetime.now(UTC)
    return {"valid_from": (now - timedelta(days=1)).isoformat(), "valid_until": (now + timedelta(days=7)).isoformat()}


class TestCreateOffer:
    def test_create(self, client, admin):
        response = client.post(
            "/offers",
            json={
                "code": "festive20",
                "title": "Festive sale",
                "discount_type": "percentage",
                "discount_value": 20,
                "max_discount": 500,
                **_window(),
            },
            headers=admin,
        )

        assert response.status_code == 201
        offer = current_domain.repository_for(Offer).get(response.json()["offer_id"])
        assert offer.code == "FESTIVE20"

    def test_duplicate_code(self, client, admin, make_offer):
        make_offer()
        body = {"code": "WELCOME10", "title": "Again", "discount_type": "fixed", "discount_value": 50, **_window()}

        assert client.post("/offers", json=body, headers=admin).status_code == 409

    def test_workers_forbidden(self, client, worker_headers):
        body = {"code": "X", "title": "X", "discount_type": "fixed", "discount_value": 5, **_window()}
        assert client.post("/offers", json=body, headers=worker_headers).status_code == 403


class TestValidateOffer:
    def test_capped_percentage(self, client, make_offer):
        offer = make_offer(discount_type="percentage", discount_value=20, max_discount=500)

        response = client.post("/offers/validate", json={"offer_id": str(offer.id), "subtotal": 5000})

        assert response.status_code == 200
        data = response.json()
        assert data["discount"] == 500.0
        assert data["offer"] == {
            "id": str(offer.id),
            "code": "WELCOME10",
            "title": "Welcome offer",
            "description": None,
            "discount_type": "percentage",
            "discount_value": 20.0,
        }

    def test_requires_identifier(self, client):
        assert client.post("/offers/validate", json={"subtotal": 100}).status_code == 400

    def test_requires_subtotal(self, client, make_offer):
        make_offer()
        assert client.post("/offers/validate", json={"offer_code": "WELCOME10"}).status_code == 400

    def test_unknown_offer(self, client):
        response = client.post("/offers/validate", json={"offer_code": "NOPE", "subtotal": 100})

        assert response.status_code == 404
        assert response.json() == {"error": "Offer not found", "code": "offer_not_found"}

    def test_exhausted_offer(self, client, make_offer):
        offer = make_offer(usage_limit=1, used_count=1)

        response = client.post("/offers/validate", json={"offer_id": str(offer.id), "subtotal": 100})

        assert response.status_code == 400
        assert response.json() == {"error": "This offer has reached its usage limit", "code": "usage_limit_reached"}

    def test_ineligible_customer_is_forbidden(self, client, make_offer):
        make_offer(customer_ids=["cust-9"])

        response = client.post(
            "/offers/validate",
            json={"offer_code": "WELCOME10", "subtotal": 100, "customer_id": "cust-1"},
        )

        assert response.status_code == 403
        assert response.json()["error"] == "This offer is not available for your account"


class TestAvailableOffers:
    def test_lists_usable_offers(self, client, make_offer):
        make_offer(code="open")
        make_offer(code="closed", is_active=False)
        make_offer(code="vip", customer_emails=["vip@example.com"])

        anonymous = client.get("/offers/available").json()["offers"]
        vip = client.get("/offers/available", params={"customer_email": "VIP@example.com"}).json()["offers"]

        assert [o["code"] for o in anonymous] == ["OPEN"]
        assert {o["code"] for o in vip} == {"OPEN", "VIP"}


class TestRedemptions:
    def test_redeem_and_replay(self, client, make_offer):
        offer = make_offer(usage_limit=2)

        first = client.post(f"/offers/{offer.id}/redemptions", json={"order_id": "order-1"})
        replay = client.post(f"/offers/{offer.id}/redemptions", json={"order_id": "order-1"})

        assert first.json() == {"offer_id": str(offer.id), "redeemed": True, "used_count": 1}
        assert replay.json() == {"offer_id": str(offer.id), "redeemed": False, "used_count": 1}

    def test_full_quota_conflicts(self, client, make_offer):
        offer = make_offer(usage_limit=1)
        client.post(f"/offers/{offer.id}/redemptions", json={"order_id": "order-1"})

        response = client.post(f"/offers/{offer.id}/redemptions", json={"order_id": "order-2"})

        assert response.status_code == 409
        assert current_domain.repository_for(Offer).get(offer.id).used_count == 1
