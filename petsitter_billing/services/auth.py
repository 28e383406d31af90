from dataclasses import dataclass
from datetime import datetime, timedelta

import jwt

from petsitter_billing.config import get_settings
from petsitter_billing.utils.time import from_timestamp, utcnow


class TokenError(Exception):
    pass


class TokenExpired(TokenError):
    pass


class TokenInvalid(TokenError):
    pass


@dataclass(frozen=True)
class TokenData:
    user_id: str
    email: str
    issued_at: datetime
    expires_at: datetime


def create_access_token(
    user_id: str,
    email: str,
    issued_at: datetime | None = None,
    ttl: timedelta = timedelta(hours=1),
    secret: str | None = None,
    algorithm: str | None = None,
    audience: str | None = None,
) -> tuple[str, TokenData]:
    settings = None
    issued_at = issued_at or utcnow()
    if secret is None or algorithm is None:
        settings = get_settings()
    expires_at = issued_at + ttl

    payload = {
        "sub": user_id,
        "email": email,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    if audience:
        payload["aud"] = audience

    token = jwt.encode(
        payload,
        secret or settings.jwt_secret,
        algorithm=algorithm or settings.jwt_algorithm,
    )
    return token, TokenData(user_id=user_id, email=email, issued_at=issued_at, expires_at=expires_at)


def decode_access_token(
    token: str,
    secret: str | None = None,
    algorithm: str | None = None,
    audience: str | None = None,
) -> TokenData:
    """Validate a bearer token issued by the hosted auth service.

    The ``email`` claim is the billing identity, so tokens without it are
    rejected. Audience is only enforced when one is configured.
    """
    settings = None
    if secret is None or algorithm is None:
        settings = get_settings()
        audience = audience if audience is not None else settings.jwt_audience
    options = {"require": ["sub", "exp", "iat"], "verify_aud": bool(audience)}
    try:
        payload = jwt.decode(
            token,
            secret or settings.jwt_secret,
            algorithms=[algorithm or settings.jwt_algorithm],
            audience=audience or None,
            options=options,
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpired("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise TokenInvalid("Token invalid") from exc

    email = payload.get("email")
    if not email:
        raise TokenInvalid("Token payload missing email")

    return TokenData(
        user_id=str(payload["sub"]),
        email=email,
        issued_at=from_timestamp(payload["iat"]),
        expires_at=from_timestamp(payload["exp"]),
    )
