from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from petsitter_billing.api.deps import check_limiter, get_config, get_db, get_gateway
from petsitter_billing.db.base import Base
from petsitter_billing.main import app
from petsitter_billing.services.auth import create_access_token
from petsitter_billing.services.billing import ProviderUnavailable
from petsitter_billing.services.billing_config import default_billing_config


def auth_headers(email="owner@example.com", user_id="user-1"):
    token, _ = create_access_token(user_id, email, audience="authenticated")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def source(fake_source):
    return fake_source(customer_id=None)


@pytest.fixture
def client(source):
    app.dependency_overrides[get_gateway] = lambda: source
    app.dependency_overrides[get_config] = default_billing_config
    check_limiter.reset()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_check_subscription_requires_token(client):
    response = client.post("/check-subscription")

    assert response.status_code == 401


def test_check_subscription_rejects_bad_token(client):
    response = client.post("/check-subscription", headers={"Authorization": "Bearer nope"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Token invalid"


def test_check_subscription_without_customer(client):
    response = client.post("/check-subscription", headers=auth_headers())

    assert response.status_code == 200
    assert response.json() == {"subscribed": False, "blocked": False, "status": "no_subscription"}


def test_check_subscription_active(client, source, subscription_factory):
    source.customer_id = "cus_1"
    period_end = datetime.now(timezone.utc) + timedelta(days=20)
    source.subscriptions = [subscription_factory("active", period_end)]

    body = client.post("/check-subscription", headers=auth_headers()).json()

    assert body["subscribed"] is True
    assert body["blocked"] is False
    assert body["status"] == "active"
    assert body["price_id"] == "price_monthly"
    assert body["product_id"] == "prod_monthly"
    assert "grace_period_end" not in body


def test_check_subscription_past_due_in_grace(client, source, subscription_factory):
    source.customer_id = "cus_1"
    period_end = datetime.now(timezone.utc) - timedelta(days=2, hours=1)
    source.subscriptions = [subscription_factory("past_due", period_end)]

    body = client.post("/check-subscription", headers=auth_headers()).json()

    assert body["subscribed"] is True
    assert body["blocked"] is False
    assert body["status"] == "past_due"
    assert body["days_overdue"] == 2
    assert body["grace_period_remaining"] == 5
    assert "grace_period_end" in body


def test_check_subscription_canceled(client, source, subscription_factory):
    source.customer_id = "cus_1"
    source.subscriptions = [subscription_factory("canceled")]

    body = client.post("/check-subscription", headers=auth_headers()).json()

    assert body["subscribed"] is False
    assert body["blocked"] is True
    assert body["status"] == "canceled"
    assert body["message"]


def test_check_subscription_provider_down(client, source):
    source.error = ProviderUnavailable("down")

    response = client.post("/check-subscription", headers=auth_headers())

    assert response.status_code == 503
    assert response.headers["retry-after"] == "60"


def test_check_subscription_is_rate_limited(client):
    headers = auth_headers()
    statuses = [client.post("/check-subscription", headers=headers).status_code for _ in range(31)]

    assert statuses[:30] == [200] * 30
    assert statuses[30] == 429


def test_create_checkout(client, source):
    response = client.post("/create-checkout", json={"priceId": "price_monthly"}, headers=auth_headers())

    assert response.status_code == 200
    assert response.json() == {"url": "https://checkout.stripe.test/price_monthly"}
    assert source.checkouts == [("price_monthly", "owner@example.com", None)]


def test_create_checkout_rejects_unknown_plan(client, source):
    response = client.post("/create-checkout", json={"priceId": "price_other"}, headers=auth_headers())

    assert response.status_code == 400
    assert source.checkouts == []


def test_customer_portal_requires_customer(client):
    response = client.post("/customer-portal", headers=auth_headers())

    assert response.status_code == 404


def test_customer_portal(client, source):
    source.customer_id = "cus_1"

    response = client.post("/customer-portal", headers=auth_headers())

    assert response.status_code == 200
    assert response.json() == {"url": "https://billing.stripe.test/cus_1"}


def test_plans_are_public(client):
    body = client.get("/plans").json()

    assert body["grace_days"] == 7
    assert [plan["code"] for plan in body["plans"]] == ["monthly", "annual"]


@pytest.fixture
def admin_client():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(bind=engine)

    def override_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    engine.dispose()


def test_admin_requires_token(admin_client):
    assert admin_client.get("/admin/billing-config").status_code == 401
    assert admin_client.get("/admin/billing-config", headers={"X-Admin-Token": "wrong"}).status_code == 401


def test_admin_updates_grace_days(admin_client):
    headers = {"X-Admin-Token": "admin-token"}

    response = admin_client.patch("/admin/billing-config", json={"grace_days": 3}, headers=headers)

    assert response.status_code == 200
    assert response.json()["grace_days"] == 3
    assert admin_client.get("/admin/billing-config", headers=headers).json()["grace_days"] == 3
    assert admin_client.get("/plans").json()["grace_days"] == 3


def test_admin_rejects_negative_grace_days(admin_client):
    response = admin_client.patch(
        "/admin/billing-config", json={"grace_days": -1}, headers={"X-Admin-Token": "admin-token"}
    )

    assert response.status_code == 422
