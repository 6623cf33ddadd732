"""Parse free-text meeting participant labels.

Handles the shapes that show up in calendar and transcript metadata:

    "Jane Doe <jane@acme.com>"
    "John Smith from Acme Inc"
    "Sarah Lee (Globex)"
    "Bob Jones - Acme"
    "Tom @ Initech"
"""

from __future__ import annotations

import re

from whisperer.models import ParsedParticipant

_EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")

# Tried in order on the label with the email removed; first hit wins
_COMPANY_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bfrom\s+(.+?)$", re.IGNORECASE),
    re.compile(r"\(([^)]+)\)$"),
    re.compile(r"@\s*([^@\s]+)$"),
    # A leading hyphen is what remains of "jane@acme.com - Acme"
    re.compile(r"(?:^|\s)[-–—]\s*(.+)$"),
)

_NAME_NOISE = re.compile(r"[()<>\[\]@\"]")
_WHITESPACE = re.compile(r"\s+")
_EDGE_PUNCTUATION = " \t,;:-–—"


def parse_participant(participant: str) -> ParsedParticipant:
    """Split a participant label into name, email and company candidates.

    Parsing never fails: a label with nothing recognizable yields an
    empty ParsedParticipant.
    """
    text = participant.strip()
    email: str | None = None

    email_match = _EMAIL_PATTERN.search(text)
    if email_match:
        email = email_match.group(0).lower()
        text = (text[: email_match.start()] + " " + text[email_match.end() :]).strip()
        text = re.sub(r"<\s*>|\(\s*\)|\[\s*\]", " ", text).strip()

    company: str | None = None
    name_part = text
    for pattern in _COMPANY_PATTERNS:
        match = pattern.search(text)
        if match:
            candidate = match.group(1).strip().strip(_EDGE_PUNCTUATION)
            if candidate:
                company = candidate
                name_part = text[: match.start()]
                break

    name = _NAME_NOISE.sub(" ", name_part)
    name = _WHITESPACE.sub(" ", name).strip(_EDGE_PUNCTUATION).strip()

    return ParsedParticipant(
        name=name or None,
        email=email,
        company=company,
    )


__all__ = ["parse_participant"]
