import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import stripe

from petsitter_billing.config import get_settings
from petsitter_billing.utils.time import from_timestamp

logger = logging.getLogger(__name__)


class BillingError(Exception):
    pass


class ProviderUnavailable(BillingError):
    pass


class BillingMisconfigured(BillingError):
    pass


@dataclass(frozen=True)
class ProviderSubscription:
    id: str
    status: str
    current_period_end: datetime | None
    price_id: str | None
    product_id: str | None


def _field(obj: Any, key: str) -> Any | None:
    # Stripe objects support key lookup but not the dict API.
    try:
        return obj[key]
    except (KeyError, TypeError):
        return None


def _first_item(subscription: Any) -> Any | None:
    data = _field(_field(subscription, "items"), "data") or []
    return data[0] if data else None


def to_provider_subscription(subscription: Any) -> ProviderSubscription:
    """Reduce a Stripe subscription object to the fields access checks read.

    Newer API versions moved ``current_period_end`` onto subscription items,
    so the first item is used when the subscription itself has none.
    """
    item = _first_item(subscription)
    price = _field(item, "price")

    period_end = _field(subscription, "current_period_end")
    if period_end is None:
        period_end = _field(item, "current_period_end")

    product = _field(price, "product")
    if product is not None and not isinstance(product, str):
        product = _field(product, "id")

    return ProviderSubscription(
        id=subscription["id"],
        status=subscription["status"],
        current_period_end=from_timestamp(period_end) if period_end is not None else None,
        price_id=_field(price, "id"),
        product_id=product,
    )


class StripeBillingGateway:
    def __init__(
        self,
        api_key: str | None,
        timeout_seconds: int = 10,
        max_network_retries: int = 0,
    ) -> None:
        if not api_key:
            raise BillingMisconfigured("STRIPE_SECRET_KEY is not set")
        self._client = stripe.StripeClient(
            api_key,
            max_network_retries=max_network_retries,
            http_client=stripe.HTTPXClient(timeout=timeout_seconds, allow_sync_methods=True),
        )

    def _call(self, operation: str, func, params: dict[str, Any]):
        try:
            return func(params=params)
        except stripe.AuthenticationError as exc:
            logger.error("Stripe rejected credentials during %s", operation)
            raise BillingMisconfigured("Stripe credentials rejected") from exc
        except (stripe.APIConnectionError, stripe.RateLimitError) as exc:
            logger.warning("Stripe unreachable during %s: %s", operation, exc)
            raise ProviderUnavailable("Billing provider unavailable") from exc
        except stripe.StripeError as exc:
            logger.error("Stripe %s failed: %s", operation, exc)
            raise ProviderUnavailable("Billing provider request failed") from exc

    def find_customer_id(self, email: str) -> str | None:
        customers = self._call(
            "customers.list", self._client.v1.customers.list, {"email": email, "limit": 1}
        )
        if not customers.data:
            return None
        return customers.data[0].id

    def list_subscriptions(
        self,
        customer_id: str,
        status: str | None = None,
        limit: int = 1,
    ) -> list[ProviderSubscription]:
        params: dict[str, Any] = {"customer": customer_id, "limit": limit}
        if status:
            params["status"] = status
        subscriptions = self._call("subscriptions.list", self._client.v1.subscriptions.list, params)
        return [to_provider_subscription(sub) for sub in subscriptions.data]

    def create_checkout_url(
        self,
        price_id: str,
        email: str,
        customer_id: str | None,
        success_url: str,
        cancel_url: str,
    ) -> str:
        params: dict[str, Any] = {
            "line_items": [{"price": price_id, "quantity": 1}],
            "mode": "subscription",
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
        if customer_id:
            params["customer"] = customer_id
        else:
            params["customer_email"] = email
        session = self._call("checkout.sessions.create", self._client.v1.checkout.sessions.create, params)
        logger.info("Checkout session %s created for price %s", session.id, price_id)
        return session.url

    def create_portal_url(self, customer_id: str, return_url: str) -> str:
        session = self._call(
            "billing_portal.sessions.create",
            self._client.v1.billing_portal.sessions.create,
            {"customer": customer_id, "return_url": return_url},
        )
        logger.info("Billing portal session created for customer %s", customer_id)
        return session.url


def build_gateway() -> StripeBillingGateway:
    settings = get_settings()
    return StripeBillingGateway(
        settings.stripe_secret_key,
        timeout_seconds=settings.stripe_timeout_seconds,
        max_network_retries=settings.stripe_max_network_retries,
    )
