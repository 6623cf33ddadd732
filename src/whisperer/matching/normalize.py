"""Normalization tables and helpers for contact matching.

Company names lose their legal-entity suffixes ("Acme Inc." and
"ACME INCORPORATED" both become "acme"). Person names are lowercased
and de-punctuated. First names expand through a static nickname table
that is looked up in both directions.
"""

from __future__ import annotations

import re

# Legal-entity and filler suffixes stripped from the end of company names
COMPANY_SUFFIXES: tuple[str, ...] = (
    "inc",
    "incorporated",
    "corp",
    "corporation",
    "company",
    "co",
    "ltd",
    "limited",
    "llc",
    "llp",
    "lp",
    "pllc",
    "pc",
    "group",
    "holdings",
    "international",
    "intl",
    "enterprises",
    "solutions",
    "technologies",
    "tech",
    "systems",
)

# Canonical first name -> common nicknames
NAME_VARIATIONS: dict[str, tuple[str, ...]] = {
    "robert": ("rob", "bob", "bobby"),
    "william": ("will", "bill", "billy"),
    "michael": ("mike", "mick"),
    "david": ("dave", "davy"),
    "richard": ("rick", "dick", "rich"),
    "thomas": ("tom", "tommy"),
    "christopher": ("chris",),
    "matthew": ("matt",),
    "anthony": ("tony",),
    "elizabeth": ("liz", "beth", "betty"),
    "jennifer": ("jen", "jenny"),
    "patricia": ("pat", "patty"),
    "margaret": ("meg", "maggie"),
    "catherine": ("cathy", "kate"),
    "stephanie": ("steph",),
    "nicholas": ("nick",),
    "alexander": ("alex",),
    "jonathan": ("jon",),
    "benjamin": ("ben",),
    "gregory": ("greg",),
}

_NICKNAME_TO_CANONICAL: dict[str, list[str]] = {}
for _canonical, _nicknames in NAME_VARIATIONS.items():
    for _nickname in _nicknames:
        _NICKNAME_TO_CANONICAL.setdefault(_nickname, []).append(_canonical)

_SUFFIX_PATTERN = re.compile(
    r"[\s,]*\b(?:" + "|".join(COMPANY_SUFFIXES) + r")\b\.?$",
    re.IGNORECASE,
)
_COMPANY_PUNCTUATION = re.compile(r"[.,\-&]")
_NAME_PUNCTUATION = re.compile(r"[.,\-]")
_WHITESPACE = re.compile(r"\s+")


def normalize_company(company: str) -> str:
    """Lowercase, strip trailing entity suffixes, collapse punctuation.

    Suffixes are removed repeatedly ("Acme Holdings Group" -> "acme") but
    a name made only of a suffix ("Group") is left as is.

    Example:
        >>> normalize_company("Acme Inc.")
        'acme'
        >>> normalize_company("ACME INCORPORATED")
        'acme'
    """
    normalized = company.lower().strip()
    while True:
        stripped = _SUFFIX_PATTERN.sub("", normalized).strip()
        if not stripped or stripped == normalized:
            break
        normalized = stripped

    normalized = _COMPANY_PUNCTUATION.sub(" ", normalized)
    return _WHITESPACE.sub(" ", normalized).strip()


def normalize_name(name: str) -> str:
    """Lowercase and turn periods, commas and hyphens into spaces."""
    normalized = _NAME_PUNCTUATION.sub(" ", name.lower())
    return _WHITESPACE.sub(" ", normalized).strip()


def name_variations(token: str) -> set[str]:
    """The token plus every nickname-table name it is equivalent to.

    "robert" expands to its nicknames; "bob" expands to "robert" and
    robert's other nicknames. Unknown tokens expand to themselves.
    """
    lower = token.lower()
    variations = {lower}
    variations.update(NAME_VARIATIONS.get(lower, ()))
    for canonical in _NICKNAME_TO_CANONICAL.get(lower, ()):
        variations.add(canonical)
        variations.update(NAME_VARIATIONS[canonical])
    return variations


__all__ = [
    "COMPANY_SUFFIXES",
    "NAME_VARIATIONS",
    "name_variations",
    "normalize_company",
    "normalize_name",
]
