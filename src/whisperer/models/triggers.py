"""Trigger events raised by upstream business logic.

A trigger event is an immutable fact ("analysis completed for user X").
Each trigger type carries its own data schema; the variants form a
pydantic discriminated union keyed on ``trigger_type`` so the
outbound webhook body is validated per type.

Data schemas accept unknown keys: producers may add fields without
breaking delivery, while the fields listed here are type-checked.
"""

from __future__ import annotations

import copy
from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    TypeAdapter,
    ValidatorFunctionWrapHandler,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError

from whisperer.exceptions import ValidationError

TriggerType = Literal[
    "analysis_completed",
    "hot_deal_identified",
    "follow_up_required",
    "participant_matched",
    "deal_stage_changed",
    "heat_level_change",
    "priority_actions",
    "failed_matches",
    "test_delivery",
]

ALL_TRIGGER_TYPES: list[TriggerType] = [
    "analysis_completed",
    "hot_deal_identified",
    "follow_up_required",
    "participant_matched",
    "deal_stage_changed",
    "heat_level_change",
    "priority_actions",
    "failed_matches",
    "test_delivery",
]


class _TriggerData(BaseModel):
    model_config = ConfigDict(extra="allow")

    _raw: dict[str, Any] | None = PrivateAttr(default=None)

    @model_validator(mode="wrap")
    @classmethod
    def _keep_raw(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        # Known fields are coerced; the producer's own mapping is what gets forwarded
        model = handler(value)
        if isinstance(value, dict):
            model._raw = copy.deepcopy(value)
        return model

    def as_sent(self) -> dict[str, Any]:
        """The data mapping exactly as the producer sent it."""
        if self._raw is not None:
            return copy.deepcopy(self._raw)
        return self.model_dump(mode="json", exclude_unset=True)


class GenericTriggerData(_TriggerData):
    """Free-form data for trigger types without a dedicated schema."""


class DealIntelligence(_TriggerData):
    heat_level: Literal["hot", "warm", "cold"] | None = None
    deal_stage_recommendation: str | None = None
    priority_score: float | None = None
    next_action: str | None = None
    timeline: str | None = None
    confidence_level: float | None = None


class AnalysisCompletedData(_TriggerData):
    """CRM-formatted analysis of a completed call."""

    transcript_id: str | None = None
    deal_intelligence: DealIntelligence | None = None
    participant_data: dict[str, Any] | None = None
    conversation_insights: dict[str, Any] | None = None
    crm_specific: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None


class HotDealData(_TriggerData):
    priority_score: float | None = None
    heat_level: Literal["hot", "warm", "cold"] | None = None
    recommended_actions: list[str] = Field(default_factory=list)
    urgency_indicators: list[str] = Field(default_factory=list)


class FollowUpAction(_TriggerData):
    action: str
    due_date: str | None = None
    priority: str | None = None


class FollowUpData(_TriggerData):
    follow_up_actions: list[FollowUpAction] = Field(default_factory=list)
    suggested_timing: str | None = None
    template_suggestions: dict[str, str] | None = None


class MatchedParticipant(_TriggerData):
    name: str
    crm_contact_id: str
    confidence_score: float | None = None
    match_source: str | None = None


class UnmatchedParticipant(_TriggerData):
    name: str
    suggested_actions: list[str] = Field(default_factory=list)


class ParticipantMatchedData(_TriggerData):
    matched_participants: list[MatchedParticipant] = Field(default_factory=list)
    unmatched_participants: list[UnmatchedParticipant] = Field(default_factory=list)


class _TriggerEventBase(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    user_id: str = Field(min_length=1, description="User whose subscriptions receive the event")
    analysis_id: str | None = Field(default=None, description="Related call analysis")


class AnalysisCompletedEvent(_TriggerEventBase):
    trigger_type: Literal["analysis_completed"]
    data: AnalysisCompletedData


class HotDealIdentifiedEvent(_TriggerEventBase):
    trigger_type: Literal["hot_deal_identified"]
    data: HotDealData


class FollowUpRequiredEvent(_TriggerEventBase):
    trigger_type: Literal["follow_up_required"]
    data: FollowUpData


class ParticipantMatchedEvent(_TriggerEventBase):
    trigger_type: Literal["participant_matched"]
    data: ParticipantMatchedData


class GenericTriggerEvent(_TriggerEventBase):
    trigger_type: Literal[
        "deal_stage_changed",
        "heat_level_change",
        "priority_actions",
        "failed_matches",
        "test_delivery",
    ]
    data: GenericTriggerData


TriggerEvent = Annotated[
    AnalysisCompletedEvent
    | HotDealIdentifiedEvent
    | FollowUpRequiredEvent
    | ParticipantMatchedEvent
    | GenericTriggerEvent,
    Field(discriminator="trigger_type"),
]

_trigger_adapter: TypeAdapter[TriggerEvent] = TypeAdapter(TriggerEvent)

_REQUIRED_FIELDS = ("trigger_type", "user_id", "data")


def parse_trigger_event(raw: Any) -> TriggerEvent:
    """Validate an untyped request body into a TriggerEvent.

    Args:
        raw: Decoded JSON body.

    Returns:
        The typed trigger event variant.

    Raises:
        ValidationError: Body is not an object, a required field is missing,
            the trigger type is unknown, or the data does not fit its schema.
    """
    if not isinstance(raw, dict):
        raise ValidationError("body", "Trigger event must be a JSON object")

    missing = [name for name in _REQUIRED_FIELDS if raw.get(name) in (None, "")]
    if missing:
        raise ValidationError(
            missing[0],
            f"Missing required fields: {', '.join(_REQUIRED_FIELDS)}",
        )
    if not isinstance(raw["data"], dict):
        raise ValidationError("data", "Trigger data must be a JSON object")

    try:
        return _trigger_adapter.validate_python(raw)
    except PydanticValidationError as e:
        first = e.errors()[0]
        if first["type"] == "union_tag_invalid":
            raise ValidationError("trigger_type", first["msg"]) from e
        # loc starts with the union tag, e.g. ("follow_up_required", "data", ...)
        field = ".".join(str(part) for part in first["loc"][1:]) or "body"
        raise ValidationError(field, first["msg"]) from e


def event_data(event: TriggerEvent) -> dict[str, Any]:
    """Data of an event as the producer sent it, without type coercion."""
    return event.data.as_sent()


__all__ = [
    "ALL_TRIGGER_TYPES",
    "AnalysisCompletedData",
    "AnalysisCompletedEvent",
    "DealIntelligence",
    "FollowUpAction",
    "FollowUpData",
    "FollowUpRequiredEvent",
    "GenericTriggerData",
    "GenericTriggerEvent",
    "HotDealData",
    "HotDealIdentifiedEvent",
    "MatchedParticipant",
    "ParticipantMatchedData",
    "ParticipantMatchedEvent",
    "TriggerEvent",
    "TriggerType",
    "UnmatchedParticipant",
    "event_data",
    "parse_trigger_event",
]
