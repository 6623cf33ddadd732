"""Webhook models for outbound trigger delivery.

Provides subscriber registrations, the wire payload, per-attempt
delivery log rows and the outcome of a single attempt.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .base import generate_id, truncate, utc_now
from .triggers import TriggerType

DeliveryStatus = Literal["pending", "delivered", "failed"]

OutcomeStatus = Literal["delivered", "failed", "skipped", "circuit_open", "aborted"]

CIRCUIT_BREAKER_ERROR = "Webhook disabled due to consecutive failures (circuit breaker)"

# Log columns that change when an attempt resolves
RESOLUTION_FIELDS = frozenset(
    {"delivery_status", "http_status_code", "response_body", "error_message", "delivered_at"}
)


class WebhookSubscription(BaseModel):
    """A user's subscription of one URL to one trigger type.

    Created by the user (outside this package). The delivery engine only
    updates the counters, timestamps and ``is_active``; it never deletes.

    Attributes:
        id: Unique identifier for this subscription.
        user_id: User who owns the subscription.
        trigger_type: Trigger type delivered to this URL.
        webhook_url: Endpoint receiving POSTed payloads.
        secret_token: Shared secret for HMAC-SHA256 signatures (optional).
        is_active: False once the circuit breaker trips or the user disables it.
        success_count: Deliveries acknowledged with a 2xx.
        failure_count: Failed attempts (each retry counts).
        last_triggered: Time of the last successful delivery.
        last_error: Most recent failure description, cleared on success.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=generate_id)
    user_id: str = Field(description="User who owns this subscription")
    trigger_type: TriggerType = Field(description="Trigger type delivered to this URL")
    webhook_url: str = Field(description="Endpoint receiving POSTed payloads")
    secret_token: str | None = Field(default=None, description="HMAC signing secret")
    is_active: bool = Field(default=True)
    success_count: int = Field(default=0, ge=0)
    failure_count: int = Field(default=0, ge=0)
    last_triggered: datetime | None = Field(default=None)
    last_error: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)


class WebhookPayload(BaseModel):
    """Body POSTed to every subscriber of a trigger.

    Serialized once per attempt with ``model_dump_json`` and signed over
    exactly those bytes.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    trigger_type: TriggerType
    user_id: str
    analysis_id: str | None = None
    timestamp: datetime = Field(default_factory=utc_now)
    data: dict[str, Any] = Field(default_factory=dict)


class DeliveryLogEntry(BaseModel):
    """Audit row for one delivery attempt.

    Inserted as ``pending`` before the HTTP request and resolved in place
    once the request finishes. Retries insert new rows.

    Attributes:
        id: Unique identifier for this attempt.
        webhook_id: Subscription the attempt belongs to.
        trigger_data: Full outbound payload, kept for replay.
        delivery_status: pending, delivered or failed.
        http_status_code: Response status code, if a response arrived.
        response_body: Response body (truncated).
        error_message: Failure description.
        attempt_count: 1-based attempt number within the trigger instance.
        created_at: When the attempt started.
        delivered_at: When a 2xx was received.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=generate_id)
    webhook_id: str
    trigger_data: dict[str, Any] = Field(default_factory=dict)
    delivery_status: DeliveryStatus = Field(default="pending")
    http_status_code: int | None = None
    response_body: str | None = None
    error_message: str | None = None
    attempt_count: int = Field(default=1, ge=1)
    created_at: datetime = Field(default_factory=utc_now)
    delivered_at: datetime | None = None

    def mark_delivered(
        self,
        status_code: int,
        response_body: str | None = None,
        body_limit: int = 1000,
    ) -> "DeliveryLogEntry":
        """Mark the attempt as acknowledged by the receiver."""
        self.delivery_status = "delivered"
        self.http_status_code = status_code
        self.response_body = truncate(response_body, body_limit)
        self.error_message = None
        self.delivered_at = utc_now()
        return self

    def mark_failed(
        self,
        error: str,
        status_code: int | None = None,
        response_body: str | None = None,
        body_limit: int = 1000,
    ) -> "DeliveryLogEntry":
        """Mark the attempt as failed."""
        self.delivery_status = "failed"
        self.error_message = error
        self.http_status_code = status_code
        self.response_body = truncate(response_body, body_limit)
        return self

    def resolution(self, mode: Literal["python", "json"] = "python") -> dict[str, Any]:
        """Columns written when the attempt resolves."""
        return self.model_dump(mode=mode, include=set(RESOLUTION_FIELDS))


class DeliveryOutcome(BaseModel):
    """Result of one ``deliver_webhook`` call.

    ``retryable`` is True only for failed HTTP attempts (non-2xx, timeout,
    network error); skipped, aborted and circuit-open attempts end the chain.
    """

    model_config = ConfigDict(extra="forbid")

    webhook_id: str
    attempt: int = Field(ge=1)
    status: OutcomeStatus
    http_status_code: int | None = None
    error: str | None = None
    log_id: str | None = None

    @property
    def retryable(self) -> bool:
        return self.status == "failed"


__all__ = [
    "CIRCUIT_BREAKER_ERROR",
    "DeliveryLogEntry",
    "DeliveryOutcome",
    "DeliveryStatus",
    "OutcomeStatus",
    "WebhookPayload",
    "WebhookSubscription",
]
