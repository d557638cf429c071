import json
from decimal import Decimal
from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ROLE_LIMITS: dict[str, dict[str, Any]] = {
    "sales": {"max_percent": 10, "max_amount": 200},
    "manager": {"max_percent": 25, "max_amount": 1000},
    "admin": {"max_percent": 50, "max_amount": 5000},
    "owner": {"max_percent": 100, "max_amount": None},
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Discount Engine"
    version: str = "0.1.0"
    DEBUG: bool = False
    APP_DATABASE_DSN: str = "sqlite:////tmp/discounts.db"
    REDIS_URL: str = "redis://localhost:6379"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Discount engine defaults, used when an organization has no settings row
    DISCOUNT_RESERVATION_TTL_MINUTES: int = 30
    DISCOUNT_MAX_COMBINED_PERCENT: Decimal = Decimal("50")
    DISCOUNT_ALLOW_CODE_RULE_STACKING: bool = True
    DISCOUNT_ESCALATION_AFTER_HOURS: int = 24
    DISCOUNT_AUTO_REJECT_AFTER_HOURS: int = 72
    DISCOUNT_DEFAULT_ROLE_LIMITS: str = json.dumps(DEFAULT_ROLE_LIMITS)
    # Org-wide approval thresholds on top of the role limits; unset means not enforced
    DISCOUNT_APPROVAL_THRESHOLD_PERCENT: Decimal | None = None
    DISCOUNT_APPROVAL_THRESHOLD_AMOUNT: Decimal | None = None
    DISCOUNT_APPROVAL_FOR_ORDERS_OVER: Decimal | None = None
    DISCOUNT_EVALUATE_RATE_LIMIT_PER_MINUTE: int = 600

    # Idempotency records older than this are purged by the worker
    IDEMPOTENCY_RETENTION_HOURS: int = 24

    @property
    def default_role_limits(self) -> dict[str, dict[str, Any]]:
        limits: dict[str, dict[str, Any]] = json.loads(self.DISCOUNT_DEFAULT_ROLE_LIMITS)
        return limits


settings = Settings()
