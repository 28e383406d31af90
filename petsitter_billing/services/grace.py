from dataclasses import dataclass
from datetime import datetime, timedelta

from petsitter_billing.utils.time import ensure_utc, utcnow

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class GraceEvaluation:
    days_overdue: int
    grace_period_end: datetime
    within_grace: bool
    grace_period_remaining: int


def evaluate_grace(
    period_end: datetime,
    grace_days: int,
    now: datetime | None = None,
) -> GraceEvaluation:
    """Apply the grace period to a lapsed billing period.

    Overdue days count whole elapsed 24h spans since ``period_end`` and are
    never negative. ``grace_days`` must already be validated as >= 0.
    """
    period_end = ensure_utc(period_end)
    now = ensure_utc(now) if now is not None else utcnow()

    grace_period_end = period_end + timedelta(days=grace_days)
    days_overdue = max(0, (now - period_end) // ONE_DAY)

    return GraceEvaluation(
        days_overdue=days_overdue,
        grace_period_end=grace_period_end,
        within_grace=now < grace_period_end,
        grace_period_remaining=max(0, grace_days - days_overdue),
    )
