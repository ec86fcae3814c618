"""Fulfillment workflow load test scenarios.

A SequentialTaskSet journey that drives one order from checkout through
every workflow step, and a read-heavy back-office user that exercises the
order read cache.
"""

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import checkout_data, random_worker, superuser_headers, worker_headers
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import FulfillmentState

WORKFLOW_STEPS = ("packing", "quality_check", "shipping_prep")


class FulfillmentJourney(SequentialTaskSet):
    """Checkout -> Confirm + Assign -> Start Workflow -> Complete each step -> Verify packed.

    Every completion hands the order to the next step; the last one moves
    the order to ``packed``.
    """

    def on_start(self):
        self.state = FulfillmentState(worker_id=random_worker())

    @task
    def checkout(self):
        with self.client.post("/orders", json=checkout_data(), catch_response=True, name="POST /orders") as resp:
            if resp.status_code == 201:
                self.state.order_id = resp.json()["order_id"]
                self.state.order_number = resp.json()["order_number"]
            else:
                resp.failure(f"Checkout failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def confirm_and_assign(self):
        with self.client.put(
            f"/orders/{self.state.order_id}",
            json={"status": "confirmed", "assigned_to": self.state.worker_id},
            headers=superuser_headers(),
            catch_response=True,
            name="PUT /orders/{id}",
        ) as resp:
            if resp.status_code == 200:
                self.state.current_status = "confirmed"
            else:
                resp.failure(f"Confirm order failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def start_workflow(self):
        with self.client.post(
            f"/orders/{self.state.order_id}/workflow",
            json={"priority": "high"},
            headers=superuser_headers(),
            catch_response=True,
            name="POST /orders/{id}/workflow",
        ) as resp:
            if resp.status_code != 201:
                resp.failure(f"Start workflow failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    def _complete_step(self, step: str):
        headers = worker_headers(self.state.worker_id)
        with self.client.get(
            "/tasks",
            params={"order_id": self.state.order_id},
            headers=headers,
            catch_response=True,
            name="GET /tasks?order_id",
        ) as resp:
            tasks = [t for t in resp.json().get("tasks", []) if t["type"] == step] if resp.ok else []
            if not tasks:
                resp.failure(f"No {step} task for order {self.state.order_number}")
                self.interrupt()
                return

        with self.client.put(
            f"/tasks/{tasks[0]['id']}",
            json={"status": "completed"},
            headers=headers,
            catch_response=True,
            name="PUT /tasks/{id} (complete)",
        ) as resp:
            if resp.status_code == 200:
                self.state.completed_steps.append(step)
                workflow = resp.json()["task"].get("workflow", {})
                if workflow.get("incidents"):
                    resp.failure(f"Workflow incidents after {step}: {workflow['incidents']}")
                self.state.current_status = workflow.get("order_status") or self.state.current_status
            else:
                resp.failure(f"Complete {step} failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def complete_packing(self):
        self._complete_step("packing")

    @task
    def complete_quality_check(self):
        self._complete_step("quality_check")

    @task
    def complete_shipping_prep(self):
        self._complete_step("shipping_prep")

    @task
    def verify_packed(self):
        with self.client.get(
            f"/orders/{self.state.order_id}/workflow",
            headers=superuser_headers(),
            catch_response=True,
            name="GET /orders/{id}/workflow",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Workflow progress failed: {resp.status_code}: {extract_error_detail(resp)}")
            elif resp.json()["status"] != "packed" or resp.json()["progress"] != 100:
                resp.failure(f"Order not packed after all steps: {resp.json()['status']}")

    @task
    def done(self):
        self.interrupt()


class FulfillmentUser(HttpUser):
    tasks = [FulfillmentJourney]
    wait_time = between(0.5, 2)


class BackOfficeReader(HttpUser):
    """Dashboards polling the order list; most requests should be cache hits."""

    wait_time = between(0.2, 1)

    @task(5)
    def list_orders(self):
        with self.client.get(
            "/orders",
            params={"limit": 50},
            headers=superuser_headers(),
            catch_response=True,
            name="GET /orders",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"List orders failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task(2)
    def list_packed(self):
        self.client.get(
            "/orders",
            params={"status": "packing,packed"},
            headers=superuser_headers(),
            name="GET /orders?status",
        )

    @task(1)
    def worker_queue(self):
        worker = random_worker()
        self.client.get("/tasks", params={"status": "pending"}, headers=worker_headers(worker), name="GET /tasks")
