import logging
from typing import Any

import httpx
from pydantic import ValidationError

from petsitter_billing.client.errors import (
    AuthenticationError,
    BillingClientError,
    CheckoutCreationFailed,
    InvalidBillingResponse,
    PortalCreationFailed,
    ProviderUnavailable,
)
from petsitter_billing.schemas import CheckSubscriptionResponse, RedirectUrlResponse
from petsitter_billing.services.subscription import LAPSED_STATUSES, SubscriptionKind, SubscriptionStatus

logger = logging.getLogger(__name__)


def status_from_payload(payload: CheckSubscriptionResponse) -> SubscriptionStatus:
    if payload.subscribed and payload.blocked:
        raise InvalidBillingResponse("Response is both subscribed and blocked")

    if payload.status == "active":
        kind = SubscriptionKind.active
    elif payload.status == "past_due":
        if payload.blocked:
            kind = SubscriptionKind.blocked
        elif payload.days_overdue is None or not payload.grace_period_remaining:
            raise InvalidBillingResponse("Past due response without grace details")
        else:
            kind = SubscriptionKind.past_due_in_grace
    elif payload.status in LAPSED_STATUSES:
        kind = SubscriptionKind.blocked
    elif payload.status == "no_subscription":
        kind = SubscriptionKind.no_subscription
    else:
        logger.warning("Unrecognized subscription status %r", payload.status)
        return SubscriptionStatus.unknown(payload.status)

    return SubscriptionStatus(
        kind=kind,
        provider_status=payload.status,
        plan_product_id=payload.product_id,
        plan_price_id=payload.price_id,
        period_end=payload.subscription_end,
        grace_period_end=payload.grace_period_end,
        days_overdue=payload.days_overdue,
        grace_period_remaining=payload.grace_period_remaining,
        message=payload.message,
    )


class BillingApiClient:
    """Async client for the billing backend functions."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    async def __aenter__(self) -> "BillingApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(
        self,
        path: str,
        access_token: str,
        json_body: dict[str, Any] | None = None,
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {access_token}"}
        try:
            response = await self._client.post(path, json=json_body, headers=headers)
        except httpx.RequestError as exc:
            logger.error("Billing request to %s failed: %s", path, exc)
            raise ProviderUnavailable("Billing backend unreachable") from exc

        if response.status_code in (401, 403):
            raise AuthenticationError("Session is not authorized")
        if response.status_code == 429 or response.status_code >= 500:
            logger.warning("Billing backend error %s for %s", response.status_code, path)
            raise ProviderUnavailable(f"Billing backend returned {response.status_code}")
        return response

    async def check_subscription(self, access_token: str) -> SubscriptionStatus:
        response = await self._post("/check-subscription", access_token)
        if response.status_code >= 400:
            raise InvalidBillingResponse(f"Unexpected status {response.status_code}")
        try:
            payload = CheckSubscriptionResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise InvalidBillingResponse("Malformed subscription response") from exc
        return status_from_payload(payload)

    async def _redirect_url(
        self,
        path: str,
        access_token: str,
        failure: type[BillingClientError],
        json_body: dict[str, Any] | None = None,
    ) -> str:
        try:
            response = await self._post(path, access_token, json_body)
        except ProviderUnavailable as exc:
            raise failure(str(exc)) from exc
        if response.status_code >= 400:
            raise failure(f"Billing backend returned {response.status_code}")
        try:
            payload = RedirectUrlResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise failure("Malformed redirect response") from exc
        if not payload.url:
            raise failure("Billing backend returned no url")
        return payload.url

    async def create_checkout(self, access_token: str, price_id: str) -> str:
        return await self._redirect_url(
            "/create-checkout", access_token, CheckoutCreationFailed, {"priceId": price_id}
        )

    async def create_portal(self, access_token: str) -> str:
        return await self._redirect_url("/customer-portal", access_token, PortalCreationFailed)
