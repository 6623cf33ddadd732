"""String and name similarity scores in [0, 1]."""

from __future__ import annotations

import math

from .normalize import name_variations


def levenshtein_distance(a: str, b: str) -> int:
    """Minimum single-character insertions, deletions and substitutions to turn a into b."""
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + cost,
                )
            )
        previous = current
    return previous[-1]


def string_similarity(a: str, b: str) -> float:
    """1 - distance / max_len. Empty input scores 0, equal strings score 1."""
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / max(len(a), len(b))


def name_similarity(name1: str, name2: str) -> float:
    """Best token-pair similarity between two normalized names.

    Each token is expanded through the nickname table and the best score
    over all variation pairs counts. The result is the maximum over token
    pairs, so one strong token (a shared last name) is enough.
    """
    best = 0.0
    for token1 in name1.split():
        variations1 = name_variations(token1)
        for token2 in name2.split():
            variations2 = name_variations(token2)
            if variations1 & variations2:
                return 1.0
            for var1 in variations1:
                for var2 in variations2:
                    best = max(best, string_similarity(var1, var2))
    return best


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 going up."""
    return int(math.floor(value + 0.5))


__all__ = [
    "levenshtein_distance",
    "name_similarity",
    "round_half_up",
    "string_similarity",
]
