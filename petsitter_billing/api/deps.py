import hmac
import logging

from fastapi import Depends, Header, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from petsitter_billing.config import get_settings
from petsitter_billing.db import SessionLocal
from petsitter_billing.schemas import BillingConfig
from petsitter_billing.services.auth import TokenData, TokenExpired, TokenInvalid, decode_access_token
from petsitter_billing.services.billing import BillingMisconfigured, StripeBillingGateway, build_gateway
from petsitter_billing.services.billing_config import get_billing_config
from petsitter_billing.services.rate_limit import SlidingWindowLimiter

logger = logging.getLogger(__name__)

settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=False)
check_limiter = SlidingWindowLimiter(settings.rate_limit_check_per_minute, 60)


def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def require_admin(x_admin_token: str | None = Header(default=None)) -> None:
    if not settings.admin_token:
        raise HTTPException(status_code=503, detail="Admin token not configured")
    if not x_admin_token or not hmac.compare_digest(x_admin_token, settings.admin_token):
        raise HTTPException(status_code=401, detail="Admin token invalid")


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> TokenData:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Missing bearer token")

    try:
        return decode_access_token(credentials.credentials)
    except TokenExpired:
        raise HTTPException(status_code=401, detail="Token expired")
    except TokenInvalid:
        raise HTTPException(status_code=401, detail="Token invalid")


def rate_limit_check(user: TokenData = Depends(get_current_user)) -> TokenData:
    if not check_limiter.allow(user.user_id):
        retry_after = check_limiter.retry_after(user.user_id)
        raise HTTPException(
            status_code=429,
            detail="Too many requests",
            headers={"Retry-After": str(retry_after)},
        )
    return user


def get_gateway() -> StripeBillingGateway:
    try:
        return build_gateway()
    except BillingMisconfigured as exc:
        logger.error("Billing gateway unavailable: %s", exc)
        raise HTTPException(status_code=503, detail="Billing not configured") from exc


def get_config(db: Session = Depends(get_db)) -> BillingConfig:
    return get_billing_config(db)
