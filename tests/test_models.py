"""Tests for Whisperer data models."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from whisperer.exceptions import ValidationError
from whisperer.models import (
    ALL_TRIGGER_TYPES,
    AnalysisCompletedEvent,
    ContactMatch,
    CRMContact,
    DeliveryLogEntry,
    DeliveryOutcome,
    FollowUpRequiredEvent,
    GenericTriggerEvent,
    HotDealData,
    HotDealIdentifiedEvent,
    MatchReview,
    ParsedParticipant,
    ParticipantMatchedEvent,
    ParticipantMatchResult,
    WebhookPayload,
    WebhookSubscription,
    event_data,
    parse_trigger_event,
)


class TestParseTriggerEvent:
    """Tests for trigger event validation."""

    def test_analysis_completed(self):
        event = parse_trigger_event(
            {
                "trigger_type": "analysis_completed",
                "user_id": "user_1",
                "analysis_id": "an_1",
                "data": {
                    "transcript_id": "tr_1",
                    "deal_intelligence": {"heat_level": "hot", "priority_score": 8.5},
                },
            }
        )

        assert isinstance(event, AnalysisCompletedEvent)
        assert event.data.deal_intelligence.heat_level == "hot"
        assert event.analysis_id == "an_1"

    @pytest.mark.parametrize(
        ("trigger_type", "event_class"),
        [
            ("hot_deal_identified", HotDealIdentifiedEvent),
            ("follow_up_required", FollowUpRequiredEvent),
            ("participant_matched", ParticipantMatchedEvent),
            ("deal_stage_changed", GenericTriggerEvent),
            ("test_delivery", GenericTriggerEvent),
        ],
    )
    def test_variants_selected_by_trigger_type(self, trigger_type, event_class):
        event = parse_trigger_event({"trigger_type": trigger_type, "user_id": "u", "data": {}})
        assert isinstance(event, event_class)

    def test_every_trigger_type_parses(self):
        for trigger_type in ALL_TRIGGER_TYPES:
            event = parse_trigger_event({"trigger_type": trigger_type, "user_id": "u", "data": {}})
            assert event.trigger_type == trigger_type

    @pytest.mark.parametrize("missing", ["trigger_type", "user_id", "data"])
    def test_missing_required_field(self, missing):
        raw = {"trigger_type": "analysis_completed", "user_id": "u", "data": {}}
        del raw[missing]

        with pytest.raises(ValidationError) as exc_info:
            parse_trigger_event(raw)

        assert exc_info.value.field == missing
        assert "Missing required fields" in exc_info.value.message

    def test_unknown_trigger_type(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_trigger_event({"trigger_type": "made_up", "user_id": "u", "data": {}})
        assert exc_info.value.field == "trigger_type"

    def test_non_object_body(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_trigger_event(["not", "an", "object"])
        assert exc_info.value.field == "body"

    def test_non_object_data(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_trigger_event({"trigger_type": "test_delivery", "user_id": "u", "data": "x"})
        assert exc_info.value.field == "data"

    def test_data_schema_violation_names_field(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_trigger_event(
                {
                    "trigger_type": "follow_up_required",
                    "user_id": "u",
                    "data": {"follow_up_actions": [{"due_date": "tomorrow"}]},
                }
            )
        assert exc_info.value.field.startswith("data.follow_up_actions.0")

    def test_unknown_top_level_field_rejected(self):
        with pytest.raises(ValidationError):
            parse_trigger_event(
                {"trigger_type": "test_delivery", "user_id": "u", "data": {}, "extra": 1}
            )

    def test_event_is_immutable(self):
        event = parse_trigger_event({"trigger_type": "test_delivery", "user_id": "u", "data": {}})
        with pytest.raises(PydanticValidationError):
            event.user_id = "other"

    def test_event_data_keeps_extra_keys_and_drops_unset(self):
        event = parse_trigger_event(
            {
                "trigger_type": "hot_deal_identified",
                "user_id": "u",
                "data": {"priority_score": 9, "custom_field": "kept"},
            }
        )

        assert event_data(event) == {"priority_score": 9, "custom_field": "kept"}

    def test_event_data_is_not_coerced(self):
        raw = {
            "trigger_type": "hot_deal_identified",
            "user_id": "u",
            "data": {"priority_score": 85, "deal_intelligence": {"confidence_level": "0.9"}},
        }
        event = parse_trigger_event(raw)

        assert event.data.priority_score == 85.0
        forwarded = event_data(event)
        assert forwarded == raw["data"]
        assert isinstance(forwarded["priority_score"], int)

    def test_event_data_is_a_copy(self):
        raw = {"trigger_type": "test_delivery", "user_id": "u", "data": {"nested": {"a": 1}}}
        event = parse_trigger_event(raw)

        event_data(event)["nested"]["a"] = 2
        raw["data"]["nested"]["a"] = 3

        assert event_data(event) == {"nested": {"a": 1}}

    def test_event_data_of_constructed_event(self):
        event = HotDealIdentifiedEvent(
            trigger_type="hot_deal_identified",
            user_id="u",
            data=HotDealData(priority_score=7.5),
        )

        assert event_data(event) == {"priority_score": 7.5}


class TestWebhookModels:
    """Tests for subscription, payload and log models."""

    def test_subscription_ignores_unknown_columns(self):
        webhook = WebhookSubscription.model_validate(
            {
                "id": "wh_1",
                "user_id": "u",
                "trigger_type": "analysis_completed",
                "webhook_url": "https://example.com",
                "updated_at": "2024-01-01T00:00:00Z",
            }
        )
        assert webhook.is_active is True
        assert webhook.success_count == 0

    def test_payload_json_has_wire_fields(self):
        payload = WebhookPayload(
            trigger_type="test_delivery",
            user_id="u",
            timestamp=datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC),
            data={"test": True},
        )

        assert payload.model_dump(mode="json") == {
            "trigger_type": "test_delivery",
            "user_id": "u",
            "analysis_id": None,
            "timestamp": "2024-01-02T03:04:05Z",
            "data": {"test": True},
        }

    def test_mark_delivered(self):
        entry = DeliveryLogEntry(webhook_id="wh_1")
        entry.mark_delivered(201, "y" * 20, body_limit=10)

        assert entry.delivery_status == "delivered"
        assert entry.http_status_code == 201
        assert entry.response_body == "y" * 10
        assert entry.delivered_at is not None

    def test_mark_failed_without_response(self):
        entry = DeliveryLogEntry(webhook_id="wh_1", attempt_count=3)
        entry.mark_failed("connection refused")

        assert entry.delivery_status == "failed"
        assert entry.http_status_code is None
        assert entry.error_message == "connection refused"
        assert entry.delivered_at is None

    def test_resolution_contains_only_result_columns(self):
        entry = DeliveryLogEntry(webhook_id="wh_1").mark_failed("x", status_code=500)

        assert set(entry.resolution()) == {
            "delivery_status",
            "http_status_code",
            "response_body",
            "error_message",
            "delivered_at",
        }

    @pytest.mark.parametrize(
        ("status", "retryable"),
        [
            ("failed", True),
            ("delivered", False),
            ("skipped", False),
            ("circuit_open", False),
            ("aborted", False),
        ],
    )
    def test_outcome_retryable(self, status, retryable):
        outcome = DeliveryOutcome(webhook_id="wh_1", attempt=1, status=status)
        assert outcome.retryable is retryable


class TestMatchingModels:
    """Tests for matching models."""

    def test_contact_email_domain(self):
        assert CRMContact(id="c", email="A@Example.COM").email_domain == "example.com"
        assert CRMContact(id="c").email_domain is None
        assert CRMContact(id="c", email="not-an-email").email_domain is None

    def test_confidence_bounds(self):
        contact = CRMContact(id="c")
        with pytest.raises(PydanticValidationError):
            ContactMatch(
                contact_id="c",
                confidence=101,
                match_method="email_exact",
                reasoning="",
                contact_data=contact,
            )

    def test_unmatched_result(self):
        result = ParticipantMatchResult.unmatched("Someone")

        assert result.suggested_matches == []
        assert result.requires_review is True
        assert result.top_match is None

    def test_review_status_follows_review_flag(self):
        contact = CRMContact(id="c", name="A")
        match = ContactMatch(
            contact_id="c",
            confidence=98,
            match_method="email_exact",
            reasoning="Exact email match: a@b.co",
            contact_data=contact,
        )
        parsed = ParsedParticipant(email="a@b.co")

        approved = MatchReview.from_result(
            "u",
            "an",
            parsed,
            ParticipantMatchResult(participant="a@b.co", suggested_matches=[match], requires_review=False),
        )
        pending = MatchReview.from_result(
            "u",
            "an",
            parsed,
            ParticipantMatchResult(participant="a@b.co", suggested_matches=[match], requires_review=True),
        )

        assert approved.status == "auto_approved"
        assert pending.status == "pending"
        assert approved.participant_data == {"email": "a@b.co"}
        assert approved.suggested_matches[0]["contact_data"]["id"] == "c"
