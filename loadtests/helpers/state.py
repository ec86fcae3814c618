"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state with no cross-user sharing.
State tracks entity IDs returned by creation endpoints so follow-up
operations can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class FulfillmentState:
    """Tracks a single order as it moves through the fulfillment workflow."""

    order_id: str | None = None
    order_number: str | None = None
    worker_id: str | None = None
    completed_steps: list[str] = field(default_factory=list)
    current_status: str = "pending"


@dataclass
class OfferState:
    """Tracks an offer from creation through checkout."""

    offer_id: str | None = None
    code: str | None = None
    order_ids: list[str] = field(default_factory=list)
    last_discount: float = 0.0
