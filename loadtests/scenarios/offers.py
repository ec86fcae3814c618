"""Offer load test scenarios.

A journey that publishes an offer, quotes it and then checks out with it,
so every run exercises validation, checkout re-quoting and redemption.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import checkout_data, customer_data, offer_data, superuser_headers
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import OfferState


class OfferCheckoutJourney(SequentialTaskSet):
    """Create Offer -> Validate -> List Available -> Checkout with code (x2)."""

    def on_start(self):
        self.state = OfferState()

    @task
    def create_offer(self):
        payload = offer_data()
        with self.client.post(
            "/offers",
            json=payload,
            headers=superuser_headers(),
            catch_response=True,
            name="POST /offers",
        ) as resp:
            if resp.status_code == 201:
                self.state.offer_id = resp.json()["offer_id"]
                self.state.code = payload["code"]
            else:
                resp.failure(f"Create offer failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def validate_offer(self):
        with self.client.post(
            "/offers/validate",
            json={"offer_code": self.state.code, "subtotal": 2500.0, "customer_email": customer_data()["email"]},
            catch_response=True,
            name="POST /offers/validate",
        ) as resp:
            if resp.status_code == 200:
                self.state.last_discount = resp.json()["discount"]
            elif resp.status_code in (400, 403):
                # Rejections are business outcomes, not failures
                resp.success()
            else:
                resp.failure(f"Validate offer failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def available_offers(self):
        self.client.get("/offers/available", name="GET /offers/available")

    def _checkout(self):
        with self.client.post(
            "/orders",
            json=checkout_data(num_items=3, offer_code=self.state.code),
            catch_response=True,
            name="POST /orders (offer)",
        ) as resp:
            if resp.status_code == 201:
                self.state.order_ids.append(resp.json()["order_id"])
            elif resp.status_code in (400, 403):
                resp.success()
            else:
                resp.failure(f"Checkout with offer failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def checkout_once(self):
        self._checkout()

    @task
    def checkout_twice(self):
        self._checkout()

    @task
    def done(self):
        self.interrupt()


class OfferUser(HttpUser):
    tasks = [OfferCheckoutJourney]
    wait_time = between(1, 3)
