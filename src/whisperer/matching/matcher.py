"""Participant-to-contact matching.

Four independent strategies run in a fixed order and their suggestions
are merged:

1. email_exact: the parsed email equals a contact's email (98)
2. email_domain_company: same email domain and a similar company (80-95)
3. name_company: similar name and similar company (70-84)
4. company_only: similar company (60-75)

Duplicates keep their first (strongest-strategy) occurrence, the rest
are ranked by confidence and cut to the top suggestions. A top match
below the review threshold (85) is flagged for human review.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from whisperer.config import MatchingSettings
from whisperer.models import (
    ContactMatch,
    CRMContact,
    MatchReview,
    ParsedParticipant,
    ParticipantMatchResult,
)

from .normalize import normalize_company, normalize_name
from .parser import parse_participant
from .similarity import name_similarity, round_half_up, string_similarity

if TYPE_CHECKING:
    from whisperer.storage import MatchReviewSink

logger = logging.getLogger(__name__)

EMAIL_EXACT_CONFIDENCE = 98

# Similarity a strategy requires before it suggests a contact
DOMAIN_COMPANY_MIN_SIMILARITY = 0.7
NAME_MIN_SIMILARITY = 0.6
COMPANY_MIN_SIMILARITY = 0.7
COMPANY_ONLY_MIN_SIMILARITY = 0.8

CONFIDENCE_THRESHOLDS: dict[str, Any] = {
    "email_exact": {"min": 95, "max": 100},
    "email_domain_company": {"min": 80, "max": 95},
    "name_company": {"min": 70, "max": 84},
    "company_only": {"min": 60, "max": 75},
    "review_threshold": 85,
}


def _band(method: str, score: float, span: float) -> int:
    """min + score * span, capped at the band's max and rounded half up."""
    band = CONFIDENCE_THRESHOLDS[method]
    return round_half_up(min(band["max"], band["min"] + score * span))


def _percent(similarity: float) -> int:
    return round_half_up(similarity * 100)


def _domain_of(email: str) -> str | None:
    if "@" not in email:
        return None
    return email.rsplit("@", 1)[1].lower() or None


class ContactMatcher:
    """Suggests CRM contacts for free-text meeting participants.

    Example:
        ```python
        matcher = ContactMatcher(contacts, review_sink=store)
        result = await matcher.match_participant(
            "John Smith from Acme Inc", user_id="user_123", analysis_id="an_456"
        )
        if result.requires_review:
            ...
        ```
    """

    def __init__(
        self,
        contacts: Iterable[CRMContact] | None = None,
        review_sink: MatchReviewSink | None = None,
        settings: MatchingSettings | None = None,
    ) -> None:
        self._contacts: list[CRMContact] = list(contacts or [])
        self._review_sink = review_sink
        self._settings = settings or MatchingSettings()

    @property
    def contacts(self) -> list[CRMContact]:
        return list(self._contacts)

    @property
    def review_threshold(self) -> int:
        return self._settings.review_threshold

    def update_contacts(self, contacts: Iterable[CRMContact]) -> None:
        """Replace the roster snapshot used by later match calls."""
        self._contacts = list(contacts)

    @classmethod
    def confidence_thresholds(cls) -> dict[str, Any]:
        """Confidence bands per match method plus the review threshold."""
        return copy.deepcopy(CONFIDENCE_THRESHOLDS)

    async def match_participant(
        self,
        participant: str,
        user_id: str,
        analysis_id: str | None = None,
    ) -> ParticipantMatchResult:
        """Rank roster contacts for one participant label.

        Args:
            participant: Free-text label, e.g. "Bob Jones - Acme".
            user_id: Owner of the roster, recorded on the review row.
            analysis_id: When given and there is at least one suggestion,
                a MatchReview row is written to the review sink.

        Returns:
            Up to ``max_suggestions`` matches, confidence descending.
        """
        parsed = parse_participant(participant)
        matches = self.find_matches(parsed)

        threshold = self.review_threshold
        requires_review = not matches or matches[0].confidence < threshold
        result = ParticipantMatchResult(
            participant=participant,
            suggested_matches=matches[: self._settings.max_suggestions],
            requires_review=requires_review,
            confidence_threshold=threshold,
        )

        logger.debug(
            "Matched participant %r: %d suggestions, requires_review=%s",
            participant,
            len(result.suggested_matches),
            requires_review,
        )

        if analysis_id and matches:
            await self._store_review(user_id, analysis_id, parsed, result)

        return result

    def find_matches(self, parsed: ParsedParticipant) -> list[ContactMatch]:
        """All strategy hits for a parsed participant, deduplicated and ranked."""
        matches: list[ContactMatch] = []

        if parsed.email:
            matches.extend(self._email_exact_matches(parsed.email))
        if parsed.email and parsed.company:
            matches.extend(self._email_domain_company_matches(parsed.email, parsed.company))
        if parsed.name and parsed.company:
            matches.extend(self._name_company_matches(parsed.name, parsed.company))
        if parsed.company:
            matches.extend(self._company_only_matches(parsed.company))

        seen: set[str] = set()
        unique = []
        for match in matches:
            if match.contact_id in seen:
                continue
            seen.add(match.contact_id)
            unique.append(match)

        # sorted() is stable, so equal confidences keep strategy order
        return sorted(unique, key=lambda m: m.confidence, reverse=True)

    def _email_exact_matches(self, email: str) -> list[ContactMatch]:
        target = email.lower()
        return [
            ContactMatch(
                contact_id=contact.id,
                confidence=EMAIL_EXACT_CONFIDENCE,
                match_method="email_exact",
                reasoning=f"Exact email match: {email}",
                contact_data=contact,
            )
            for contact in self._contacts
            if contact.email and contact.email.lower() == target
        ]

    def _email_domain_company_matches(self, email: str, company: str) -> list[ContactMatch]:
        domain = _domain_of(email)
        if not domain:
            return []

        normalized_company = normalize_company(company)
        matches = []
        for contact in self._contacts:
            if not contact.company or contact.email_domain != domain:
                continue

            similarity = string_similarity(normalized_company, normalize_company(contact.company))
            if similarity > DOMAIN_COMPANY_MIN_SIMILARITY:
                matches.append(
                    ContactMatch(
                        contact_id=contact.id,
                        confidence=_band("email_domain_company", similarity, 15),
                        match_method="email_domain_company",
                        reasoning=(
                            f"Email domain {domain} matches company {contact.company} "
                            f"({_percent(similarity)}% similarity)"
                        ),
                        contact_data=contact,
                    )
                )
        return matches

    def _name_company_matches(self, name: str, company: str) -> list[ContactMatch]:
        normalized_name = normalize_name(name)
        normalized_company = normalize_company(company)
        matches = []
        for contact in self._contacts:
            if not contact.name or not contact.company:
                continue

            name_score = name_similarity(normalized_name, normalize_name(contact.name))
            company_score = string_similarity(
                normalized_company, normalize_company(contact.company)
            )
            if name_score > NAME_MIN_SIMILARITY and company_score > COMPANY_MIN_SIMILARITY:
                combined = name_score * 0.6 + company_score * 0.4
                matches.append(
                    ContactMatch(
                        contact_id=contact.id,
                        confidence=_band("name_company", combined, 14),
                        match_method="name_company",
                        reasoning=(
                            f"Name similarity {_percent(name_score)}%, "
                            f"company similarity {_percent(company_score)}%"
                        ),
                        contact_data=contact,
                    )
                )
        return matches

    def _company_only_matches(self, company: str) -> list[ContactMatch]:
        normalized_company = normalize_company(company)
        matches = []
        for contact in self._contacts:
            if not contact.company:
                continue

            similarity = string_similarity(normalized_company, normalize_company(contact.company))
            if similarity > COMPANY_ONLY_MIN_SIMILARITY:
                matches.append(
                    ContactMatch(
                        contact_id=contact.id,
                        confidence=_band("company_only", similarity, 15),
                        match_method="company_only",
                        reasoning=f"Company name similarity {_percent(similarity)}%",
                        contact_data=contact,
                    )
                )
        return matches

    async def _store_review(
        self,
        user_id: str,
        analysis_id: str,
        parsed: ParsedParticipant,
        result: ParticipantMatchResult,
    ) -> None:
        """Persist suggestions for review. Failures are logged, never raised."""
        if self._review_sink is None:
            return

        review = MatchReview.from_result(user_id, analysis_id, parsed, result)
        try:
            await self._review_sink.insert_review(review)
        except Exception as e:
            logger.error("Failed to store match review for %r: %s", result.participant, e)


async def match_multiple_participants(
    participants: Iterable[str],
    user_id: str,
    analysis_id: str,
    contacts: Iterable[CRMContact] | None = None,
    review_sink: MatchReviewSink | None = None,
    settings: MatchingSettings | None = None,
) -> list[ParticipantMatchResult]:
    """Match participants one at a time against the same roster.

    A participant that raises is logged and replaced with an empty,
    review-required result, so the output always has one entry per input.
    """
    matcher = ContactMatcher(contacts, review_sink=review_sink, settings=settings)
    results = []

    for participant in participants:
        try:
            results.append(await matcher.match_participant(participant, user_id, analysis_id))
        except Exception as e:
            logger.exception("Error matching participant %r: %s", participant, e)
            results.append(
                ParticipantMatchResult.unmatched(participant, matcher.review_threshold)
            )

    return results


__all__ = [
    "CONFIDENCE_THRESHOLDS",
    "ContactMatcher",
    "match_multiple_participants",
]
