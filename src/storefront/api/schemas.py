"""Pydantic API schemas for the storefront.

These are the external API contracts, kept separate from domain commands;
the routes translate between the two.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class OrderItemRequest(BaseModel):
    product_id: str
    sku: str | None = None
    title: str
    quantity: int = Field(ge=1)
    price: float = Field(ge=0)
    image: str | None = None


class ShippingAddressRequest(BaseModel):
    address_line1: str
    address_line2: str | None = None
    city: str
    state: str
    pincode: str
    country: str = "India"


class CustomerRequest(BaseModel):
    name: str
    email: str
    phone: str


class PlaceOrderRequest(BaseModel):
    customer: CustomerRequest
    shipping_address: ShippingAddressRequest
    items: list[OrderItemRequest] = Field(min_length=1)
    shipping: float = Field(default=0.0, ge=0)
    payment_method: str = "cod"
    payment_status: str = "pending"
    payment_reference: str | None = None
    offer_id: str | None = None
    offer_code: str | None = None
    user_id: str | None = None
    notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer": {"name": "Asha Rao", "email": "asha@example.com", "phone": "9876543210"},
                    "shipping_address": {
                        "address_line1": "12 MG Road",
                        "city": "Bengaluru",
                        "state": "Karnataka",
                        "pincode": "560001",
                    },
                    "items": [{"product_id": "prod-1", "title": "Linen Shirt", "quantity": 2, "price": 1499.0}],
                    "shipping": 99.0,
                    "payment_method": "upi",
                    "offer_code": "WELCOME10",
                }
            ]
        }
    }


class OrderPlacedResponse(BaseModel):
    order_id: str
    order_number: str
    discount: float = 0.0
    offer_redeemed: bool = False


class UpdateOrderRequest(BaseModel):
    """Partial update; omitted fields are left alone, ``assigned_to: null`` unassigns."""

    status: str | None = None
    assigned_to: str | None = None
    payment_status: str | None = None
    tracking_number: str | None = None
    courier_company: str | None = None
    notes: str | None = None


class UpdateRefundRequest(BaseModel):
    refund_status: str
    refund_id: str | None = None
    notes: str | None = None


class StartWorkflowRequest(BaseModel):
    assigned_to: str | None = None
    priority: str = "medium"


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------
class CreateTaskRequest(BaseModel):
    order_id: str | None = None
    assigned_to: str | None = None
    type: str | None = None
    priority: str = "medium"
    notes: str | None = None


class UpdateTaskRequest(BaseModel):
    status: str | None = None
    assigned_to: str | None = None
    priority: str | None = None
    notes: str | None = None


class TaskIdResponse(BaseModel):
    task_id: str


# ---------------------------------------------------------------------------
# Offers
# ---------------------------------------------------------------------------
class CreateOfferRequest(BaseModel):
    code: str
    title: str
    description: str | None = None
    discount_type: str
    discount_value: float = Field(ge=0)
    min_order_amount: float | None = Field(default=None, ge=0)
    max_discount: float | None = Field(default=None, ge=0)
    valid_from: datetime
    valid_until: datetime
    usage_limit: int | None = Field(default=None, ge=0)
    one_time_per_user: bool = False
    is_active: bool = True
    customer_emails: list[str] = Field(default_factory=list)
    customer_ids: list[str] = Field(default_factory=list)


class OfferIdResponse(BaseModel):
    offer_id: str


class ValidateOfferRequest(BaseModel):
    offer_id: str | None = None
    offer_code: str | None = None
    subtotal: float | None = None
    customer_email: str | None = None
    customer_id: str | None = None


class OfferSummary(BaseModel):
    id: str
    code: str
    title: str
    description: str | None = None
    discount_type: str
    discount_value: float


class ValidateOfferResponse(BaseModel):
    offer: OfferSummary
    discount: float


class RedeemOfferRequest(BaseModel):
    order_id: str
    customer_email: str | None = None
    customer_id: str | None = None


class RedeemOfferResponse(BaseModel):
    offer_id: str
    redeemed: bool
    used_count: int
