"""FastAPI router for Whisperer API endpoints."""

from __future__ import annotations

import json
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, status

from whisperer import __version__
from whisperer.exceptions import ValidationError
from whisperer.logging import bind_context, get_logger, unbind_context
from whisperer.models import ParticipantMatchResult, parse_trigger_event
from whisperer.service import WhispererService

from .auth import InternalAuthDependency
from .schemas import (
    BatchMatchRequest,
    BatchMatchResponse,
    HealthResponse,
    MatchRequest,
    TriggerResponse,
)

logger = get_logger(__name__)

router = APIRouter()

# Service instance (set by app lifespan)
_service: WhispererService | None = None


def set_service(service: WhispererService | None) -> None:
    """Set the global service instance."""
    global _service
    _service = service


async def get_service() -> WhispererService:
    """Dependency to get the WhispererService instance."""
    if _service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return _service


def _internal_secret() -> str:
    if _service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return _service.settings.effective_internal_secret


ServiceDep = Annotated[WhispererService, Depends(get_service)]
InternalAuth = Annotated[None, Depends(InternalAuthDependency(_internal_secret))]


@router.get("/health", response_model=HealthResponse, tags=["system"])
async def health_check() -> HealthResponse:
    """Check service health."""
    if _service is None:
        return HealthResponse(status="unhealthy", version=__version__)
    return HealthResponse(
        status="healthy",
        version=__version__,
        storage_backend=_service.settings.storage_backend,
        pending_deliveries=_service.dispatcher.pending,
    )


@router.post("/triggers", response_model=TriggerResponse, tags=["webhooks"])
async def ingest_trigger(
    request: Request,
    service: ServiceDep,
    _: InternalAuth,
) -> TriggerResponse:
    """Accept a trigger event and fan it out to subscribed webhooks.

    Responds as soon as subscriptions are enumerated. Delivery, retries
    and the circuit breaker run in the background and never affect this
    response.

    Raises:
        ValidationError: Body is not JSON or misses trigger_type, user_id or data.
    """
    try:
        body: Any = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("body", "Request body must be valid JSON") from e

    event = parse_trigger_event(body)
    trigger_type = event.trigger_type

    bind_context(trigger_type=trigger_type, user_id=event.user_id)
    try:
        tasks = await service.process_trigger(event)
        logger.info("Trigger accepted", webhooks_queued=len(tasks))
    finally:
        unbind_context("trigger_type", "user_id")

    return TriggerResponse(
        success=True,
        message=f"Trigger {trigger_type} processed",
        trigger_type=trigger_type,
        webhooks_queued=len(tasks),
    )


@router.post("/matches", response_model=ParticipantMatchResult, tags=["matching"])
async def match_participant(
    request: MatchRequest,
    service: ServiceDep,
) -> ParticipantMatchResult:
    """Suggest CRM contacts for one participant label."""
    return await service.match_participant(
        request.participant,
        user_id=request.user_id,
        contacts=request.contacts,
        analysis_id=request.analysis_id,
    )


@router.post("/matches/batch", response_model=BatchMatchResponse, tags=["matching"])
async def match_participants(
    request: BatchMatchRequest,
    service: ServiceDep,
) -> BatchMatchResponse:
    """Match every participant of an analysis against one roster.

    A participant that fails to match is returned as an empty,
    review-required result; the batch itself does not fail.
    """
    results = await service.match_participants(
        request.participants,
        user_id=request.user_id,
        analysis_id=request.analysis_id,
        contacts=request.contacts,
    )
    return BatchMatchResponse(
        results=results,
        review_required=sum(1 for r in results if r.requires_review),
    )


__all__ = ["get_service", "router", "set_service"]
