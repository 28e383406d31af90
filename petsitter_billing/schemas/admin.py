from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class PlanConfig(BaseModel):
    code: str = Field(..., min_length=1, max_length=32)
    name: str = Field(..., min_length=1, max_length=128)
    price_id: str = Field(..., min_length=1, max_length=255)
    product_id: str | None = Field(default=None, max_length=255)
    amount: Decimal = Field(..., ge=0)
    currency: str = Field(default="BRL", min_length=3, max_length=3)
    interval: Literal["month", "year"]
    description: str | None = Field(default=None, max_length=255)
    badge: str | None = Field(default=None, max_length=64)


class BillingConfig(BaseModel):
    grace_days: int = Field(default=7, ge=0, le=90)
    plans: list[PlanConfig] = Field(default_factory=list)

    @field_validator("plans")
    @classmethod
    def unique_prices(cls, plans: list[PlanConfig]) -> list[PlanConfig]:
        price_ids = [plan.price_id for plan in plans]
        if len(price_ids) != len(set(price_ids)):
            raise ValueError("Plan price ids must be unique")
        return plans

    def find_plan(self, price_id: str) -> PlanConfig | None:
        return next((plan for plan in self.plans if plan.price_id == price_id), None)


class BillingConfigUpdateRequest(BaseModel):
    grace_days: int | None = Field(default=None, ge=0, le=90)
    plans: list[PlanConfig] | None = None
