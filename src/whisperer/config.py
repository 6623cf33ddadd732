"""Configuration management for Whisperer."""

import logging
import secrets
import warnings
from typing import Literal

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# Delay (seconds) before retry N+1 after attempt N fails: 1s, 5s, 15s, 45s, 135s
DEFAULT_RETRY_DELAYS: tuple[float, ...] = (1.0, 5.0, 15.0, 45.0, 135.0)


class DeliverySettings(BaseModel):
    """Tuning for outbound webhook delivery.

    Attributes:
        timeout_seconds: Hard deadline for a single POST (30 default).
        max_attempts: Attempts per trigger instance before giving up (5 default).
        retry_delays: Backoff schedule indexed by the failed attempt number.
        circuit_breaker_window: Consecutive failed log rows that disable a webhook.
        response_body_limit: Characters of response body kept in the delivery log.
        user_agent: User-Agent header sent with every delivery.
    """

    timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        le=300.0,
        description="HTTP timeout for a single delivery attempt",
    )
    max_attempts: int = Field(
        default=5,
        ge=1,
        le=10,
        description="Maximum delivery attempts per trigger instance",
    )
    retry_delays: tuple[float, ...] = Field(
        default=DEFAULT_RETRY_DELAYS,
        description="Seconds to wait after attempt N fails (index N-1)",
    )
    circuit_breaker_window: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Most recent log rows inspected by the circuit breaker",
    )
    response_body_limit: int = Field(
        default=1000,
        ge=0,
        description="Maximum response body characters stored per log row",
    )
    user_agent: str = Field(
        default="Sales-Whisperer-Webhook/1.0",
        description="User-Agent header for outbound deliveries",
    )

    @model_validator(mode="after")
    def _check_retry_schedule(self) -> "DeliverySettings":
        """Every retry needs a delay, and delays must be non-negative."""
        if not self.retry_delays:
            raise ValueError("retry_delays must contain at least one delay")
        if any(delay < 0 for delay in self.retry_delays):
            raise ValueError(f"retry_delays must be non-negative, got {self.retry_delays}")
        if len(self.retry_delays) < self.max_attempts - 1:
            warnings.warn(
                f"Only {len(self.retry_delays)} retry delays for {self.max_attempts} attempts; "
                f"the last delay ({self.retry_delays[-1]}s) will be reused.",
                UserWarning,
                stacklevel=2,
            )
        return self

    def retry_delay(self, attempt: int) -> float:
        """Delay before the attempt that follows a failed ``attempt`` (1-based)."""
        index = min(max(attempt, 1) - 1, len(self.retry_delays) - 1)
        return self.retry_delays[index]


class MatchingSettings(BaseModel):
    """Thresholds for participant-to-contact matching.

    Attributes:
        review_threshold: Top confidence below this requires human review.
        max_suggestions: Number of ranked matches returned per participant.
    """

    review_threshold: int = Field(
        default=85,
        ge=0,
        le=100,
        description="Confidence at or above which a match is auto-approved",
    )
    max_suggestions: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum suggested matches per participant",
    )


class Settings(BaseSettings):
    """Whisperer configuration loaded from environment variables.

    All settings can be overridden via environment variables with
    the WHISPERER_ prefix. For example:
        WHISPERER_STORAGE_BACKEND=postgrest
        WHISPERER_DELIVERY__TIMEOUT_SECONDS=10

    Security Notes:
        - In production (WHISPERER_ENV=production), WHISPERER_INTERNAL_SECRET is required
        - In development/test a random internal secret is generated when unset
    """

    env: Literal["development", "production", "test"] = Field(
        default="development",
        description="Environment: development, production, or test",
    )

    # Storage
    storage_backend: Literal["memory", "postgrest"] = Field(
        default="memory",
        description="Where subscriptions, delivery logs and match reviews live",
    )
    supabase_url: str | None = Field(
        default=None,
        description="Supabase project URL (PostgREST is served under /rest/v1)",
    )
    supabase_service_key: str | None = Field(
        default=None,
        description="Service role key used for PostgREST requests",
    )
    webhooks_table: str = Field(default="zapier_webhooks")
    delivery_logs_table: str = Field(default="zapier_webhook_logs")
    match_reviews_table: str = Field(default="zapier_match_reviews")
    storage_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        description="HTTP timeout for PostgREST calls",
    )

    # Engines
    delivery: DeliverySettings = Field(default_factory=DeliverySettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "text"] = Field(default="json", description="Log output format")

    # Internal trigger ingestion
    internal_secret: str | None = Field(
        default=None,
        description=(
            "Shared bearer secret upstream services present to POST /triggers. "
            "REQUIRED in production. In dev/test, a random secret is generated if not set."
        ),
    )

    _runtime_dev_secret: str | None = None

    @model_validator(mode="after")
    def validate_storage_settings(self) -> "Settings":
        """PostgREST storage needs both a URL and a service key."""
        if self.storage_backend == "postgrest":
            missing = [
                name
                for name, value in (
                    ("supabase_url", self.supabase_url),
                    ("supabase_service_key", self.supabase_service_key),
                )
                if not value
            ]
            if missing:
                raise ValueError(
                    f"storage_backend='postgrest' requires {', '.join(missing)} "
                    f"(WHISPERER_SUPABASE_URL / WHISPERER_SUPABASE_SERVICE_KEY)"
                )
        return self

    @model_validator(mode="after")
    def validate_security_settings(self) -> "Settings":
        """Fail fast without an internal secret in production; generate one otherwise."""
        if self.env == "production":
            if not self.internal_secret:
                raise ValueError(
                    "WHISPERER_INTERNAL_SECRET must be set in production. "
                    'Generate one with: python -c "import secrets; print(secrets.token_hex(32))"'
                )
        elif self.internal_secret is None:
            object.__setattr__(self, "_runtime_dev_secret", secrets.token_hex(32))
            logger.debug("Generated random internal secret for development")
        return self

    @property
    def effective_internal_secret(self) -> str:
        """The configured internal secret, or the runtime-generated dev secret."""
        if self.internal_secret:
            return self.internal_secret
        if self._runtime_dev_secret is not None:
            return self._runtime_dev_secret
        raise ValueError("No internal secret available")

    model_config = {
        "env_prefix": "WHISPERER_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",
    }


settings = Settings()
