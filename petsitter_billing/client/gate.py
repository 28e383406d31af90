import enum
from dataclasses import dataclass

from petsitter_billing.client.store import SubscriptionSnapshot
from petsitter_billing.services.subscription import LAPSED_MESSAGE, SubscriptionKind, SubscriptionStatus


class AccessMode(str, enum.Enum):
    loading = "loading"
    full_access = "full_access"
    access_with_warning = "access_with_warning"
    subscribe_prompt = "subscribe_prompt"
    blocked = "blocked"
    retry = "retry"
    sign_in = "sign_in"


class RemediationAction(str, enum.Enum):
    view_plans = "view_plans"
    open_portal = "open_portal"
    retry = "retry"
    sign_in = "sign_in"


@dataclass(frozen=True)
class AccessDecision:
    mode: AccessMode
    show_content: bool
    title: str | None = None
    message: str | None = None
    banner: str | None = None
    actions: tuple[RemediationAction, ...] = ()


def _blocked_message(status: SubscriptionStatus) -> str:
    grace_days = status.grace_days
    if status.provider_status == "past_due" and status.days_overdue is not None and grace_days is not None:
        return (
            f"Your subscription has been overdue for {status.days_overdue} day(s). "
            f"The {grace_days}-day grace period has ended."
        )
    return status.message or LAPSED_MESSAGE


def evaluate_access(snapshot: SubscriptionSnapshot) -> AccessDecision:
    """Map the store's current snapshot to what the protected area renders.

    A cached status always wins over ``loading`` so a background refresh
    never flashes a different screen.
    """
    status = snapshot.status
    if status is None:
        return AccessDecision(mode=AccessMode.loading, show_content=False)

    kind = status.kind
    if kind == SubscriptionKind.active:
        return AccessDecision(mode=AccessMode.full_access, show_content=True)

    if kind == SubscriptionKind.past_due_in_grace:
        remaining = status.grace_period_remaining or 0
        return AccessDecision(
            mode=AccessMode.access_with_warning,
            show_content=True,
            banner=f"Payment pending! You have {remaining} day(s) left to settle it.",
            actions=(RemediationAction.open_portal,),
        )

    if kind == SubscriptionKind.no_subscription:
        return AccessDecision(
            mode=AccessMode.subscribe_prompt,
            show_content=False,
            title="Subscribe to continue",
            message="An active subscription is required to access the system.",
            actions=(RemediationAction.view_plans,),
        )

    if kind == SubscriptionKind.blocked:
        return AccessDecision(
            mode=AccessMode.blocked,
            show_content=False,
            title="Access blocked",
            message=_blocked_message(status),
            actions=(RemediationAction.open_portal, RemediationAction.view_plans),
        )

    if kind == SubscriptionKind.no_session:
        return AccessDecision(
            mode=AccessMode.sign_in,
            show_content=False,
            title="Session expired",
            message="Sign in again to continue.",
            actions=(RemediationAction.sign_in,),
        )

    return AccessDecision(
        mode=AccessMode.retry,
        show_content=False,
        title="Could not verify your subscription",
        message="We could not reach the billing service. Try again in a moment.",
        actions=(RemediationAction.retry, RemediationAction.view_plans),
    )
