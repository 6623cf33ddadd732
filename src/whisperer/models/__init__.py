"""Data models for Whisperer.

Webhook delivery:
    - TriggerEvent: Immutable upstream fact, tagged union on trigger_type
    - WebhookSubscription: A user's URL subscribed to one trigger type
    - WebhookPayload: Exact body POSTed (and signed) per delivery
    - DeliveryLogEntry: Append-only audit row per delivery attempt
    - DeliveryOutcome: Result of a single attempt

Contact matching:
    - CRMContact: Roster entry
    - ParsedParticipant: Name/email/company parsed from free text
    - ContactMatch: One scored suggestion
    - ParticipantMatchResult: Ranked suggestions plus review flag
    - MatchReview: Persisted suggestions for human confirmation
"""

from .base import generate_id, truncate, utc_now
from .matching import (
    ContactMatch,
    CRMContact,
    MatchMethod,
    MatchReview,
    ParsedParticipant,
    ParticipantMatchResult,
    ReviewStatus,
)
from .triggers import (
    ALL_TRIGGER_TYPES,
    AnalysisCompletedEvent,
    FollowUpRequiredEvent,
    GenericTriggerEvent,
    HotDealData,
    HotDealIdentifiedEvent,
    ParticipantMatchedEvent,
    TriggerEvent,
    TriggerType,
    event_data,
    parse_trigger_event,
)
from .webhook import (
    CIRCUIT_BREAKER_ERROR,
    DeliveryLogEntry,
    DeliveryOutcome,
    DeliveryStatus,
    OutcomeStatus,
    WebhookPayload,
    WebhookSubscription,
)

__all__ = [
    # Helpers
    "generate_id",
    "truncate",
    "utc_now",
    # Triggers
    "ALL_TRIGGER_TYPES",
    "AnalysisCompletedEvent",
    "FollowUpRequiredEvent",
    "GenericTriggerEvent",
    "HotDealData",
    "HotDealIdentifiedEvent",
    "ParticipantMatchedEvent",
    "TriggerEvent",
    "TriggerType",
    "event_data",
    "parse_trigger_event",
    # Webhooks
    "CIRCUIT_BREAKER_ERROR",
    "DeliveryLogEntry",
    "DeliveryOutcome",
    "DeliveryStatus",
    "OutcomeStatus",
    "WebhookPayload",
    "WebhookSubscription",
    # Matching
    "CRMContact",
    "ContactMatch",
    "MatchMethod",
    "MatchReview",
    "ParsedParticipant",
    "ParticipantMatchResult",
    "ReviewStatus",
]
