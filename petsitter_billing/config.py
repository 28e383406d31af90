from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = Field(default="PetSitter Billing", alias="APP_NAME")
    database_url: str = Field(alias="DATABASE_URL")
    jwt_secret: str = Field(alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_audience: str | None = Field(default="authenticated", alias="JWT_AUDIENCE")
    stripe_secret_key: str | None = Field(default=None, alias="STRIPE_SECRET_KEY")
    stripe_timeout_seconds: int = Field(default=10, alias="STRIPE_TIMEOUT_SECONDS")
    stripe_max_network_retries: int = Field(default=0, alias="STRIPE_MAX_NETWORK_RETRIES")
    grace_days: int = Field(default=7, ge=0, le=90, alias="GRACE_DAYS")
    subscription_lookback: int = Field(default=5, ge=1, le=100, alias="SUBSCRIPTION_LOOKBACK")
    app_base_url: str = Field(default="http://localhost:5173", alias="APP_BASE_URL")
    plan_monthly_price_id: str | None = Field(default=None, alias="PLAN_MONTHLY_PRICE_ID")
    plan_monthly_product_id: str | None = Field(default=None, alias="PLAN_MONTHLY_PRODUCT_ID")
    plan_annual_price_id: str | None = Field(default=None, alias="PLAN_ANNUAL_PRICE_ID")
    plan_annual_product_id: str | None = Field(default=None, alias="PLAN_ANNUAL_PRODUCT_ID")
    rate_limit_check_per_minute: int = Field(default=30, alias="RATE_LIMIT_CHECK_PER_MINUTE")
    allow_insecure_http: bool = Field(default=False, alias="ALLOW_INSECURE_HTTP")
    cors_origins: Annotated[list[str], NoDecode] = Field(default_factory=list, alias="CORS_ORIGINS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    admin_token: str | None = Field(default=None, alias="ADMIN_TOKEN")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, value):
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()
