"""Pydantic schemas for API request/response models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from whisperer.models import CRMContact, ParticipantMatchResult, TriggerType


class HealthResponse(BaseModel):
    """Response for health check endpoint.

    Attributes:
        status: Service status (healthy, unhealthy).
        version: API version.
        storage_backend: Configured store, or None when the service is down.
        pending_deliveries: Delivery chains still running.
    """

    model_config = ConfigDict(extra="forbid")

    status: Literal["healthy", "unhealthy"]
    version: str
    storage_backend: str | None = None
    pending_deliveries: int = 0


class TriggerResponse(BaseModel):
    """Acknowledgment for an accepted trigger event.

    Returned once subscriptions are enumerated; deliveries continue in
    the background.
    """

    model_config = ConfigDict(extra="forbid")

    success: bool = True
    message: str
    trigger_type: TriggerType
    webhooks_queued: int = Field(ge=0)


class MatchRequest(BaseModel):
    """Request body for matching one participant.

    Attributes:
        participant: Free-text label, e.g. "Bob Jones - Acme".
        user_id: Owner of the roster.
        analysis_id: When set, suggestions are stored for review.
        contacts: Roster snapshot to match against.
    """

    model_config = ConfigDict(extra="forbid")

    participant: str = Field(min_length=1, description="Free-text participant label")
    user_id: str = Field(min_length=1, description="Owner of the roster")
    analysis_id: str | None = Field(default=None, description="Analysis the label came from")
    contacts: list[CRMContact] = Field(default_factory=list, description="Roster snapshot")


class BatchMatchRequest(BaseModel):
    """Request body for matching every participant of one analysis."""

    model_config = ConfigDict(extra="forbid")

    participants: list[str] = Field(min_length=1, description="Participant labels")
    user_id: str = Field(min_length=1, description="Owner of the roster")
    analysis_id: str = Field(min_length=1, description="Analysis the labels came from")
    contacts: list[CRMContact] = Field(default_factory=list, description="Roster snapshot")


class BatchMatchResponse(BaseModel):
    """Results in input order, plus how many still need a human."""

    model_config = ConfigDict(extra="forbid")

    results: list[ParticipantMatchResult]
    review_required: int = Field(ge=0)


__all__ = [
    "BatchMatchRequest",
    "BatchMatchResponse",
    "HealthResponse",
    "MatchRequest",
    "TriggerResponse",
]
