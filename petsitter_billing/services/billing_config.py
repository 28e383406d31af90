import logging
from decimal import Decimal

from pydantic import ValidationError
from sqlalchemy.orm import Session

from petsitter_billing.config import get_settings
from petsitter_billing.models import AuditLog, SystemSetting
from petsitter_billing.schemas import BillingConfig, PlanConfig

logger = logging.getLogger(__name__)

BILLING_CONFIG_KEY = "billing"


def default_billing_config() -> BillingConfig:
    settings = get_settings()
    plans: list[PlanConfig] = []
    if settings.plan_monthly_price_id:
        plans.append(
            PlanConfig(
                code="monthly",
                name="Monthly",
                price_id=settings.plan_monthly_price_id,
                product_id=settings.plan_monthly_product_id,
                amount=Decimal("49.90"),
                interval="month",
                description="Flexible monthly billing",
            )
        )
    if settings.plan_annual_price_id:
        plans.append(
            PlanConfig(
                code="annual",
                name="Annual",
                price_id=settings.plan_annual_price_id,
                product_id=settings.plan_annual_product_id,
                amount=Decimal("419.16"),
                interval="year",
                description="30% off the monthly price",
                badge="30% OFF",
            )
        )
    return BillingConfig(grace_days=settings.grace_days, plans=plans)


def get_billing_config(db: Session) -> BillingConfig:
    """Read the admin-editable billing config, falling back to env defaults.

    A stored row only overrides the keys it contains; a corrupt row is
    logged and ignored.
    """
    defaults = default_billing_config()
    row = db.get(SystemSetting, BILLING_CONFIG_KEY)
    if row is None or not row.value:
        return defaults

    merged = {**defaults.model_dump(mode="json"), **row.value}
    try:
        return BillingConfig.model_validate(merged)
    except ValidationError as exc:
        logger.error("Stored billing config is invalid, using defaults: %s", exc)
        return defaults


def save_billing_config(
    db: Session,
    actor: str,
    grace_days: int | None = None,
    plans: list[PlanConfig] | None = None,
) -> BillingConfig:
    current = get_billing_config(db)
    updated = BillingConfig(
        grace_days=current.grace_days if grace_days is None else grace_days,
        plans=current.plans if plans is None else plans,
    )
    value = updated.model_dump(mode="json")

    row = db.get(SystemSetting, BILLING_CONFIG_KEY)
    if row is None:
        db.add(SystemSetting(key=BILLING_CONFIG_KEY, value=value))
    else:
        row.value = value

    db.add(
        AuditLog(
            actor=actor,
            action="billing_config.update",
            meta={
                "grace_days": {"from": current.grace_days, "to": updated.grace_days},
                "plans": [plan.price_id for plan in updated.plans],
            },
        )
    )
    db.commit()
    logger.info("Billing config updated by %s: grace_days=%s", actor, updated.grace_days)
    return updated
