import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("JWT_AUDIENCE", "authenticated")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_123")
os.environ.setdefault("ALLOW_INSECURE_HTTP", "true")
os.environ.setdefault("ADMIN_TOKEN", "admin-token")
os.environ.setdefault("PLAN_MONTHLY_PRICE_ID", "price_monthly")
os.environ.setdefault("PLAN_ANNUAL_PRICE_ID", "price_annual")

from datetime import datetime, timezone

import pytest

from petsitter_billing.services.billing import ProviderSubscription


class FakeBillingSource:
    def __init__(self, customer_id=None, subscriptions=(), error=None):
        self.customer_id = customer_id
        self.subscriptions = list(subscriptions)
        self.error = error
        self.calls = []
        self.checkouts = []
        self.portals = []

    def find_customer_id(self, email):
        self.calls.append(("find_customer_id", email))
        if self.error:
            raise self.error
        return self.customer_id

    def list_subscriptions(self, customer_id, status=None, limit=1):
        self.calls.append(("list_subscriptions", status, limit))
        if self.error:
            raise self.error
        matching = [sub for sub in self.subscriptions if status in (None, "all") or sub.status == status]
        return matching[:limit]

    def create_checkout_url(self, price_id, email, customer_id, success_url, cancel_url):
        self.checkouts.append((price_id, email, customer_id))
        return f"https://checkout.stripe.test/{price_id}"

    def create_portal_url(self, customer_id, return_url):
        self.portals.append((customer_id, return_url))
        return f"https://billing.stripe.test/{customer_id}"


def make_subscription(status, period_end=None, sub_id="sub_1", price_id="price_monthly", product_id="prod_monthly"):
    return ProviderSubscription(
        id=sub_id,
        status=status,
        current_period_end=period_end or datetime(2025, 1, 1, tzinfo=timezone.utc),
        price_id=price_id,
        product_id=product_id,
    )


@pytest.fixture
def fake_source():
    return FakeBillingSource


@pytest.fixture
def subscription_factory():
    return make_subscription
