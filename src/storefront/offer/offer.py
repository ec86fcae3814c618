"""Offer aggregate: a discount code with a validity window, a quota and eligibility rules."""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from storefront.domain import storefront
from storefront.errors import ConflictError
from storefront.offer.events import OfferCreated, OfferRedeemed


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def normalize_email(email: str | None) -> str | None:
    email = (email or "").strip().lower()
    return email or None


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@storefront.aggregate
class Offer:
    code = String(required=True, max_length=50, unique=True)
    title = String(required=True, max_length=200)
    description = Text()
    discount_type = String(required=True, choices=DiscountType)
    discount_value = Float(required=True, min_value=0.0)
    min_order_amount = Float(min_value=0.0)
    max_discount = Float(min_value=0.0)
    valid_from = DateTime(required=True)
    valid_until = DateTime(required=True)
    is_active = Boolean(default=True)
    usage_limit = Integer(min_value=0)
    used_count = Integer(default=0, min_value=0)
    one_time_per_user = Boolean(default=False)
    customer_emails = Text()  # JSON list; empty means everyone
    customer_ids = Text()  # JSON list; empty means everyone
    created_by = String(max_length=100)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def validity_window_must_be_ordered(self):
        if self.valid_from and self.valid_until and as_utc(self.valid_from) > as_utc(self.valid_until):
            raise ValidationError({"valid_until": ["Offer must end after it starts"]})

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and (self.discount_value or 0) > 100:
            raise ValidationError({"discount_value": ["Percentage discount cannot exceed 100"]})

    @invariant.post
    def usage_within_limit(self):
        if self.usage_limit and (self.used_count or 0) > self.usage_limit:
            raise ValidationError({"used_count": ["Offer usage cannot exceed its usage limit"]})

    @classmethod
    def create(
        cls,
        code: str,
        title: str,
        discount_type: str,
        discount_value: float,
        valid_from: datetime,
        valid_until: datetime,
        description: str | None = None,
        min_order_amount: float | None = None,
        max_discount: float | None = None,
        usage_limit: int | None = None,
        one_time_per_user: bool = False,
        customer_emails: list[str] | None = None,
        customer_ids: list[str] | None = None,
        is_active: bool = True,
        created_by: str | None = None,
    ):
        now = datetime.now(UTC)
        emails = sorted({e for e in (normalize_email(e) for e in customer_emails or []) if e})
        ids = sorted({str(i).strip() for i in customer_ids or [] if str(i).strip()})
        offer = cls(
            code=normalize_code(code),
            title=title,
            description=description,
            discount_type=discount_type,
            discount_value=discount_value,
            min_order_amount=min_order_amount,
            max_discount=max_discount,
            valid_from=as_utc(valid_from),
            valid_until=as_utc(valid_until),
            is_active=is_active,
            usage_limit=usage_limit,
            used_count=0,
            one_time_per_user=one_time_per_user,
            customer_emails=json.dumps(emails) if emails else None,
            customer_ids=json.dumps(ids) if ids else None,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        offer.raise_(
            OfferCreated(
                offer_id=str(offer.id),
                code=offer.code,
                discount_type=discount_type,
                discount_value=discount_value,
                created_by=created_by,
                created_at=now,
            )
        )
        return offer

    @property
    def eligible_emails(self) -> list[str]:
        return json.loads(self.customer_emails) if self.customer_emails else []

    @property
    def eligible_customer_ids(self) -> list[str]:
        return json.loads(self.customer_ids) if self.customer_ids else []

    @property
    def is_restricted(self) -> bool:
        return bool(self.eligible_emails or self.eligible_customer_ids)

    @property
    def quota_exhausted(self) -> bool:
        return bool(self.usage_limit) and (self.used_count or 0) >= self.usage_limit

    def redeem(self, order_id: str, customer_email: str | None = None, customer_id: str | None = None) -> None:
        """Consume one use; the caller guarantees this runs once per placed order."""
        if self.quota_exhausted:
            raise ConflictError("This offer has reached its usage limit", code="usage_limit_reached")
        now = datetime.now(UTC)
        self.used_count = (self.used_count or 0) + 1
        self.updated_at = now
        self.raise_(
            OfferRedeemed(
                offer_id=str(self.id),
                order_id=order_id,
                used_count=self.used_count,
                customer_email=customer_email,
                customer_id=customer_id,
                redeemed_at=now,
            )
        )

    def to_summary(self) -> dict:
        return {
            "id": str(self.id),
            "code": self.code,
            "title": self.title,
            "description": self.description,
            "discount_type": self.discount_type,
            "discount_value": self.discount_value,
        }
