"""Models for participant-to-contact matching.

A free-text meeting participant ("Bob Jones - Acme") is parsed into a
ParsedParticipant, scored against a CRM roster snapshot, and returned
as a ranked ParticipantMatchResult. Results that carry at least one
suggestion for an analysis are persisted as MatchReview rows for human
confirmation.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .base import generate_id, utc_now

MatchMethod = Literal["email_exact", "email_domain_company", "name_company", "company_only"]

ReviewStatus = Literal["pending", "auto_approved", "confirmed", "rejected"]


class CRMContact(BaseModel):
    """One entry of the known-contacts roster handed to the matcher."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    email: str | None = None
    company: str | None = None
    phone: str | None = None
    domain: str | None = None

    @property
    def email_domain(self) -> str | None:
        """Lowercased domain part of the contact's email, if any."""
        if not self.email or "@" not in self.email:
            return None
        return self.email.rsplit("@", 1)[1].lower() or None


class ParsedParticipant(BaseModel):
    """Name, email and company candidates extracted from one participant string."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    email: str | None = None
    company: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.name or self.email or self.company)


class ContactMatch(BaseModel):
    """A roster contact suggested for a participant by one strategy."""

    model_config = ConfigDict(extra="forbid")

    contact_id: str
    confidence: int = Field(ge=0, le=100, description="Integer confidence 0-100")
    match_method: MatchMethod
    reasoning: str
    contact_data: CRMContact


class ParticipantMatchResult(BaseModel):
    """Ranked suggestions for one participant."""

    model_config = ConfigDict(extra="forbid")

    participant: str
    suggested_matches: list[ContactMatch] = Field(default_factory=list)
    requires_review: bool = True
    confidence_threshold: int = 85

    @property
    def top_match(self) -> ContactMatch | None:
        return self.suggested_matches[0] if self.suggested_matches else None

    @classmethod
    def unmatched(cls, participant: str, confidence_threshold: int = 85) -> "ParticipantMatchResult":
        """Placeholder for a participant that could not be matched."""
        return cls(
            participant=participant,
            suggested_matches=[],
            requires_review=True,
            confidence_threshold=confidence_threshold,
        )


class MatchReview(BaseModel):
    """Persisted match suggestions awaiting (or exempt from) human review.

    This package only writes ``pending`` and ``auto_approved`` rows;
    ``confirmed``/``rejected`` transitions belong to the review queue UI.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=generate_id)
    user_id: str
    analysis_id: str
    participant_data: dict[str, Any] = Field(default_factory=dict)
    suggested_matches: list[dict[str, Any]] = Field(default_factory=list)
    status: ReviewStatus = "pending"
    created_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def from_result(
        cls,
        user_id: str,
        analysis_id: str,
        parsed: ParsedParticipant,
        result: ParticipantMatchResult,
    ) -> "MatchReview":
        return cls(
            user_id=user_id,
            analysis_id=analysis_id,
            participant_data=parsed.model_dump(exclude_none=True),
            suggested_matches=[m.model_dump(mode="json") for m in result.suggested_matches],
            status="pending" if result.requires_review else "auto_approved",
        )


__all__ = [
    "CRMContact",
    "ContactMatch",
    "MatchMethod",
    "MatchReview",
    "ParsedParticipant",
    "ParticipantMatchResult",
    "ReviewStatus",
]
