"""Fuzzy matching of meeting participants to CRM contacts.

Example:
    ```python
    from whisperer.matching import ContactMatcher, match_multiple_participants

    matcher = ContactMatcher(contacts)
    result = await matcher.match_participant("Bob Jones - Acme", user_id="user_123")

    results = await match_multiple_participants(
        ["Jane Doe <jane@acme.com>", "Sarah Lee (Globex)"],
        user_id="user_123",
        analysis_id="an_456",
        contacts=contacts,
    )
    ```
"""

from .matcher import CONFIDENCE_THRESHOLDS, ContactMatcher, match_multiple_participants
from .normalize import (
    COMPANY_SUFFIXES,
    NAME_VARIATIONS,
    name_variations,
    normalize_company,
    normalize_name,
)
from .parser import parse_participant
from .similarity import levenshtein_distance, name_similarity, string_similarity

__all__ = [
    "COMPANY_SUFFIXES",
    "CONFIDENCE_THRESHOLDS",
    "NAME_VARIATIONS",
    "ContactMatcher",
    "levenshtein_distance",
    "match_multiple_participants",
    "name_similarity",
    "name_variations",
    "normalize_company",
    "normalize_name",
    "parse_participant",
    "string_similarity",
]
