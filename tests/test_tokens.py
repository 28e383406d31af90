from datetime import datetime, timedelta, timezone

import jwt
import pytest

from petsitter_billing.services.auth import TokenExpired, TokenInvalid, create_access_token, decode_access_token


def test_create_and_decode_token():
    issued_at = datetime(2025, 1, 1, tzinfo=timezone.utc)
    token, data = create_access_token(
        "user-1",
        "owner@example.com",
        issued_at=issued_at,
        ttl=timedelta(days=36500),
        secret="test-secret",
        algorithm="HS256",
    )

    decoded = decode_access_token(token, secret="test-secret", algorithm="HS256")

    assert decoded.user_id == "user-1"
    assert decoded.email == "owner@example.com"
    assert decoded.issued_at == issued_at
    assert decoded.expires_at == data.expires_at


def test_decode_expired_token():
    issued_at = datetime.now(timezone.utc) - timedelta(hours=2)
    token, _ = create_access_token(
        "user-1",
        "owner@example.com",
        issued_at=issued_at,
        ttl=timedelta(hours=1),
        secret="test-secret",
        algorithm="HS256",
    )

    with pytest.raises(TokenExpired):
        decode_access_token(token, secret="test-secret", algorithm="HS256")


def test_decode_invalid_token():
    token, _ = create_access_token(
        "user-1",
        "owner@example.com",
        secret="test-secret",
        algorithm="HS256",
    )

    with pytest.raises(TokenInvalid):
        decode_access_token(token, secret="wrong-secret", algorithm="HS256")


def test_token_without_email_is_rejected():
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": "user-1", "iat": int(now.timestamp()), "exp": int((now + timedelta(hours=1)).timestamp())},
        "test-secret",
        algorithm="HS256",
    )

    with pytest.raises(TokenInvalid):
        decode_access_token(token, secret="test-secret", algorithm="HS256")


def test_audience_is_enforced_when_configured():
    token, _ = create_access_token(
        "user-1",
        "owner@example.com",
        secret="test-secret",
        algorithm="HS256",
        audience="anon",
    )

    with pytest.raises(TokenInvalid):
        decode_access_token(token, secret="test-secret", algorithm="HS256", audience="authenticated")
