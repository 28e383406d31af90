from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class CheckSubscriptionResponse(BaseModel):
    subscribed: bool
    blocked: bool
    status: str
    price_id: str | None = None
    product_id: str | None = None
    subscription_end: datetime | None = None
    grace_period_end: datetime | None = None
    days_overdue: int | None = Field(default=None, ge=0)
    grace_period_remaining: int | None = Field(default=None, ge=0)
    message: str | None = None


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    price_id: str = Field(..., min_length=1, max_length=255, alias="priceId")


class RedirectUrlResponse(BaseModel):
    url: str


class PlanResponse(BaseModel):
    code: str
    name: str
    price_id: str
    product_id: str | None = None
    amount: Decimal
    currency: str
    interval: str
    description: str | None = None
    badge: str | None = None


class PlansResponse(BaseModel):
    grace_days: int
    plans: list[PlanResponse]
