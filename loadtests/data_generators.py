"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the API's Pydantic request
schemas and the domain's validation rules (positive quantities, Indian
six-digit pincodes, offer windows that are open right now).
"""

import random
import uuid
from datetime import UTC, datetime, timedelta

from faker import Faker

fake = Faker("en_IN")

WORKERS = [f"worker-{n}" for n in range(1, 11)]

# ---------- Checkout ----------


def customer_data() -> dict:
    local = fake.user_name()[:20]
    return {
        "name": fake.name()[:200],
        "email": f"{local}.{uuid.uuid4().hex[:4]}@{fake.free_email_domain()}",
        "phone": f"9{random.randint(100000000, 999999999)}",
    }


def shipping_address() -> dict:
    return {
        "address_line1": fake.street_address()[:255],
        "city": fake.city()[:100],
        "state": fake.state()[:100],
        "pincode": f"{random.randint(110001, 855126)}",
    }


def order_item() -> dict:
    return {
        "product_id": f"prod-{uuid.uuid4().hex[:8]}",
        "sku": f"LT-{uuid.uuid4().hex[:6].upper()}",
        "title": fake.catch_phrase()[:255],
        "quantity": random.randint(1, 4),
        "price": round(random.uniform(199.0, 4999.0), 2),
    }


def checkout_data(num_items: int = 2, offer_code: str | None = None) -> dict:
    """Generate a PlaceOrderRequest payload."""
    payload = {
        "customer": customer_data(),
        "shipping_address": shipping_address(),
        "items": [order_item() for _ in range(num_items)],
        "shipping": random.choice([0.0, 49.0, 99.0]),
        "payment_method": random.choice(["cod", "upi", "razorpay"]),
    }
    if payload["payment_method"] != "cod":
        payload["payment_status"] = "paid"
        payload["payment_reference"] = f"pay_{uuid.uuid4().hex[:14]}"
    if offer_code:
        payload["offer_code"] = offer_code
    return payload


# ---------- Back office ----------


def random_worker() -> str:
    return random.choice(WORKERS)


def superuser_headers() -> dict:
    return {"X-Actor-Id": "admin-loadtest", "X-Actor-Role": "superuser"}


def worker_headers(worker_id: str) -> dict:
    return {"X-Actor-Id": worker_id, "X-Actor-Role": "worker"}


# ---------- Offers ----------


def offer_code() -> str:
    return f"LT{uuid.uuid4().hex[:8].upper()}"


def offer_data(code: str | None = None) -> dict:
    """Generate a CreateOfferRequest payload valid from now for a week."""
    now = datetime.now(UTC)
    discount_type = random.choice(["percentage", "fixed"])
    return {
        "code": code or offer_code(),
        "title": fake.bs().title()[:200],
        "discount_type": discount_type,
        "discount_value": random.choice([5, 10, 15, 20]) if discount_type == "percentage" else 100.0,
        "max_discount": 500.0 if discount_type == "percentage" else None,
        "min_order_amount": random.choice([None, 499.0]),
        "usage_limit": random.choice([None, 50, 500]),
        "valid_from": (now - timedelta(minutes=5)).isoformat(),
        "valid_until": (now + timedelta(days=7)).isoformat(),
    }
