import logging

from fastapi import APIRouter, Depends, HTTPException

from petsitter_billing.api.deps import get_config, get_current_user, get_gateway, rate_limit_check
from petsitter_billing.config import get_settings
from petsitter_billing.schemas import (
    BillingConfig,
    CheckoutRequest,
    CheckSubscriptionResponse,
    PlanResponse,
    PlansResponse,
    RedirectUrlResponse,
)
from petsitter_billing.services.auth import TokenData
from petsitter_billing.services.billing import BillingMisconfigured, ProviderUnavailable, StripeBillingGateway
from petsitter_billing.services.subscription import SubscriptionStatus, resolve_subscription

logger = logging.getLogger(__name__)

router = APIRouter(tags=["billing"])

PROVIDER_RETRY_SECONDS = 60


def provider_error(exc: Exception) -> HTTPException:
    if isinstance(exc, BillingMisconfigured):
        return HTTPException(status_code=503, detail="Billing not configured")
    return HTTPException(
        status_code=503,
        detail="Billing provider unavailable",
        headers={"Retry-After": str(PROVIDER_RETRY_SECONDS)},
    )


def serialize_status(status: SubscriptionStatus) -> CheckSubscriptionResponse:
    return CheckSubscriptionResponse(
        subscribed=status.subscribed,
        blocked=status.blocked,
        status=status.provider_status or status.kind.value,
        price_id=status.plan_price_id,
        product_id=status.plan_product_id,
        subscription_end=status.period_end,
        grace_period_end=status.grace_period_end,
        days_overdue=status.days_overdue,
        grace_period_remaining=status.grace_period_remaining,
        message=status.message,
    )


@router.post("/check-subscription", response_model=CheckSubscriptionResponse, response_model_exclude_none=True)
def check_subscription(
    user: TokenData = Depends(rate_limit_check),
    config: BillingConfig = Depends(get_config),
    gateway: StripeBillingGateway = Depends(get_gateway),
) -> CheckSubscriptionResponse:
    settings = get_settings()
    try:
        status = resolve_subscription(
            gateway,
            user.email,
            grace_days=config.grace_days,
            lookback=settings.subscription_lookback,
        )
    except (ProviderUnavailable, BillingMisconfigured) as exc:
        raise provider_error(exc) from exc
    return serialize_status(status)


@router.post("/create-checkout", response_model=RedirectUrlResponse)
def create_checkout(
    payload: CheckoutRequest,
    user: TokenData = Depends(get_current_user),
    config: BillingConfig = Depends(get_config),
    gateway: StripeBillingGateway = Depends(get_gateway),
) -> RedirectUrlResponse:
    if config.find_plan(payload.price_id) is None:
        raise HTTPException(status_code=400, detail="Unknown plan")

    base_url = get_settings().app_base_url.rstrip("/")
    try:
        customer_id = gateway.find_customer_id(user.email)
        url = gateway.create_checkout_url(
            payload.price_id,
            email=user.email,
            customer_id=customer_id,
            success_url=f"{base_url}/dashboard?checkout=success",
            cancel_url=f"{base_url}/assinatura?checkout=canceled",
        )
    except (ProviderUnavailable, BillingMisconfigured) as exc:
        raise provider_error(exc) from exc
    return RedirectUrlResponse(url=url)


@router.post("/customer-portal", response_model=RedirectUrlResponse)
def customer_portal(
    user: TokenData = Depends(get_current_user),
    gateway: StripeBillingGateway = Depends(get_gateway),
) -> RedirectUrlResponse:
    base_url = get_settings().app_base_url.rstrip("/")
    try:
        customer_id = gateway.find_customer_id(user.email)
        if customer_id is None:
            raise HTTPException(status_code=404, detail="Billing customer not found")
        url = gateway.create_portal_url(customer_id, return_url=f"{base_url}/assinatura")
    except (ProviderUnavailable, BillingMisconfigured) as exc:
        raise provider_error(exc) from exc
    return RedirectUrlResponse(url=url)


@router.get("/plans", response_model=PlansResponse)
def list_plans(config: BillingConfig = Depends(get_config)) -> PlansResponse:
    return PlansResponse(
        grace_days=config.grace_days,
        plans=[PlanResponse(**plan.model_dump()) for plan in config.plans],
    )
