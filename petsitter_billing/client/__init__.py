from petsitter_billing.client.api import BillingApiClient, status_from_payload
from petsitter_billing.client.errors import (
    AuthenticationError,
    BillingClientError,
    CheckoutCreationFailed,
    InvalidBillingResponse,
    PortalCreationFailed,
    ProviderUnavailable,
)
from petsitter_billing.client.gate import AccessDecision, AccessMode, RemediationAction, evaluate_access
from petsitter_billing.client.remediation import RemediationActions
from petsitter_billing.client.store import ClientSession, SubscriptionSnapshot, SubscriptionStore

__all__ = [
    "AccessDecision",
    "AccessMode",
    "AuthenticationError",
    "BillingApiClient",
    "BillingClientError",
    "CheckoutCreationFailed",
    "ClientSession",
    "InvalidBillingResponse",
    "PortalCreationFailed",
    "ProviderUnavailable",
    "RemediationAction",
    "RemediationActions",
    "SubscriptionSnapshot",
    "SubscriptionStore",
    "evaluate_access",
    "status_from_payload",
]
