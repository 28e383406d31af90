from petsitter_billing.schemas.admin import BillingConfig, BillingConfigUpdateRequest, PlanConfig
from petsitter_billing.schemas.billing import (
    CheckoutRequest,
    CheckSubscriptionResponse,
    PlanResponse,
    PlansResponse,
    RedirectUrlResponse,
)

__all__ = [
    "BillingConfig",
    "BillingConfigUpdateRequest",
    "PlanConfig",
    "CheckoutRequest",
    "CheckSubscriptionResponse",
    "PlanResponse",
    "PlansResponse",
    "RedirectUrlResponse",
]
