import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from petsitter_billing.services.billing import ProviderSubscription
from petsitter_billing.services.grace import evaluate_grace
from petsitter_billing.utils.time import utcnow

logger = logging.getLogger(__name__)

LAPSED_MESSAGE = "Your subscription was canceled or not paid. Settle it to keep using the system."
LAPSED_STATUSES = ("canceled", "unpaid")


class SubscriptionKind(str, enum.Enum):
    no_subscription = "no_subscription"
    active = "active"
    past_due_in_grace = "past_due_in_grace"
    blocked = "blocked"
    unknown = "unknown"
    transient_error = "transient_error"
    no_session = "no_session"


@dataclass(frozen=True)
class SubscriptionStatus:
    kind: SubscriptionKind
    provider_status: str | None = None
    plan_product_id: str | None = None
    plan_price_id: str | None = None
    period_end: datetime | None = None
    grace_period_end: datetime | None = None
    days_overdue: int | None = None
    grace_period_remaining: int | None = None
    message: str | None = None
    error: str | None = None

    @property
    def subscribed(self) -> bool:
        return self.kind in (SubscriptionKind.active, SubscriptionKind.past_due_in_grace)

    @property
    def blocked(self) -> bool:
        return self.kind == SubscriptionKind.blocked

    @property
    def grace_days(self) -> int | None:
        if self.period_end is None or self.grace_period_end is None:
            return None
        return (self.grace_period_end - self.period_end).days

    @classmethod
    def active(
        cls,
        product_id: str | None,
        price_id: str | None,
        period_end: datetime | None,
    ) -> "SubscriptionStatus":
        return cls(
            kind=SubscriptionKind.active,
            provider_status="active",
            plan_product_id=product_id,
            plan_price_id=price_id,
            period_end=period_end,
        )

    @classmethod
    def past_due(
        cls,
        product_id: str | None,
        price_id: str | None,
        period_end: datetime,
        grace_period_end: datetime,
        days_overdue: int,
        grace_period_remaining: int,
        within_grace: bool,
    ) -> "SubscriptionStatus":
        in_grace = within_grace and grace_period_remaining > 0
        return cls(
            kind=SubscriptionKind.past_due_in_grace if in_grace else SubscriptionKind.blocked,
            provider_status="past_due",
            plan_product_id=product_id,
            plan_price_id=price_id,
            period_end=period_end,
            grace_period_end=grace_period_end,
            days_overdue=days_overdue,
            grace_period_remaining=grace_period_remaining if in_grace else 0,
        )

    @classmethod
    def lapsed(cls, provider_status: str, message: str | None = LAPSED_MESSAGE) -> "SubscriptionStatus":
        return cls(kind=SubscriptionKind.blocked, provider_status=provider_status, message=message)

    @classmethod
    def no_subscription(cls) -> "SubscriptionStatus":
        return cls(kind=SubscriptionKind.no_subscription, provider_status="no_subscription")

    @classmethod
    def no_session(cls, error: str | None = None) -> "SubscriptionStatus":
        return cls(kind=SubscriptionKind.no_session, error=error)

    @classmethod
    def transient_error(cls, error: str) -> "SubscriptionStatus":
        return cls(kind=SubscriptionKind.transient_error, error=error)

    @classmethod
    def unknown(cls, provider_status: str | None, error: str | None = None) -> "SubscriptionStatus":
        return cls(kind=SubscriptionKind.unknown, provider_status=provider_status, error=error)


class SubscriptionSource(Protocol):
    def find_customer_id(self, email: str) -> str | None: ...

    def list_subscriptions(
        self, customer_id: str, status: str | None = None, limit: int = 1
    ) -> list[ProviderSubscription]: ...


def resolve_subscription(
    source: SubscriptionSource,
    email: str,
    grace_days: int,
    now: datetime | None = None,
    lookback: int = 5,
) -> SubscriptionStatus:
    """Reduce the billing provider's view of a customer to one status.

    Checks run in a fixed order and the first match wins: active, past due,
    then canceled or unpaid among the latest ``lookback`` subscriptions.
    """
    customer_id = source.find_customer_id(email)
    if customer_id is None:
        logger.info("No billing customer for %s", email)
        return SubscriptionStatus.no_subscription()
    logger.info("Billing customer %s found for %s", customer_id, email)

    active = source.list_subscriptions(customer_id, status="active", limit=1)
    if active:
        subscription = active[0]
        logger.info("Active subscription %s (price %s)", subscription.id, subscription.price_id)
        return SubscriptionStatus.active(
            product_id=subscription.product_id,
            price_id=subscription.price_id,
            period_end=subscription.current_period_end,
        )

    past_due = source.list_subscriptions(customer_id, status="past_due", limit=1)
    if past_due:
        subscription = past_due[0]
        period_end = subscription.current_period_end or now or utcnow()
        grace = evaluate_grace(period_end, grace_days, now)
        logger.info(
            "Past due subscription %s: %s day(s) overdue, within grace=%s",
            subscription.id,
            grace.days_overdue,
            grace.within_grace,
        )
        return SubscriptionStatus.past_due(
            product_id=subscription.product_id,
            price_id=subscription.price_id,
            period_end=period_end,
            grace_period_end=grace.grace_period_end,
            days_overdue=grace.days_overdue,
            grace_period_remaining=grace.grace_period_remaining,
            within_grace=grace.within_grace,
        )

    recent = source.list_subscriptions(customer_id, status="all", limit=lookback)
    lapsed = next((sub for sub in recent if sub.status in LAPSED_STATUSES), None)
    if lapsed:
        logger.info("Lapsed subscription %s with status %s", lapsed.id, lapsed.status)
        return SubscriptionStatus.lapsed(lapsed.status)

    logger.info("No subscription found for customer %s", customer_id)
    return SubscriptionStatus.no_subscription()
