"""Tests for participant parsing, normalization and similarity."""

import pytest

from whisperer.matching import (
    levenshtein_distance,
    name_similarity,
    name_variations,
    normalize_company,
    normalize_name,
    parse_participant,
    string_similarity,
)
from whisperer.matching.similarity import round_half_up


class TestParseParticipant:
    """Tests for free-text participant parsing."""

    def test_from_pattern(self):
        parsed = parse_participant("John Smith from Acme Inc")
        assert parsed.name == "John Smith"
        assert parsed.company == "Acme Inc"
        assert parsed.email is None

    def test_trailing_parentheses(self):
        parsed = parse_participant("Sarah Lee (Globex Corp)")
        assert parsed.name == "Sarah Lee"
        assert parsed.company == "Globex Corp"

    def test_trailing_hyphen(self):
        parsed = parse_participant("Bob Jones - Acme")
        assert parsed.name == "Bob Jones"
        assert parsed.company == "Acme"

    def test_at_company(self):
        parsed = parse_participant("Tom @ Initech")
        assert parsed.name == "Tom"
        assert parsed.company == "Initech"

    def test_angle_bracket_email(self):
        parsed = parse_participant("Jane Doe <Jane.Doe@Acme.com>")
        assert parsed.email == "jane.doe@acme.com"
        assert parsed.name == "Jane Doe"
        assert parsed.company is None

    def test_email_and_company(self):
        parsed = parse_participant("jane@acme.com (Acme Corp)")
        assert parsed.email == "jane@acme.com"
        assert parsed.company == "Acme Corp"
        assert parsed.name is None

    def test_email_then_hyphen_company(self):
        parsed = parse_participant("jane@globex.com - Globex")
        assert parsed.email == "jane@globex.com"
        assert parsed.company == "Globex"
        assert parsed.name is None

    def test_unspaced_hyphen_stays_in_name(self):
        parsed = parse_participant("Bob Jones-Acme")
        assert parsed.name == "Bob Jones-Acme"
        assert parsed.company is None

    def test_hyphenated_name_is_not_a_company(self):
        parsed = parse_participant("Mary-Jane Watson")
        assert parsed.name == "Mary-Jane Watson"
        assert parsed.company is None

    def test_plain_name(self):
        parsed = parse_participant("  Alice  ")
        assert parsed.name == "Alice"
        assert parsed.company is None
        assert parsed.email is None

    def test_nothing_recognizable(self):
        parsed = parse_participant("()")
        assert parsed.is_empty


class TestNormalizeCompany:
    """Tests for company normalization."""

    @pytest.mark.parametrize(
        "raw",
        ["Acme Inc.", "ACME INCORPORATED", "Acme, Inc.", "acme corp", "Acme Holdings Group"],
    )
    def test_suffixes_are_stripped(self, raw):
        assert normalize_company(raw) == "acme"

    def test_is_idempotent(self):
        once = normalize_company("Acme Inc.")
        assert normalize_company(once) == once

    def test_suffix_inside_word_is_kept(self):
        assert normalize_company("Disco") == "disco"

    def test_company_made_of_a_suffix_is_kept(self):
        assert normalize_company("Group") == "group"

    def test_punctuation_collapses(self):
        assert normalize_company("Smith & Wesson") == "smith wesson"


class TestNormalizeName:
    def test_lowercases_and_splits_punctuation(self):
        assert normalize_name("J. Smith-Jones") == "j smith jones"


class TestSimilarity:
    """Tests for Levenshtein-based similarity."""

    def test_levenshtein_distance(self):
        assert levenshtein_distance("kitten", "sitting") == 3
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("abc", "abc") == 0

    def test_string_similarity_bounds(self):
        assert string_similarity("abc", "abc") == 1.0
        assert string_similarity("", "abc") == 0.0
        assert string_similarity("abc", "") == 0.0

    def test_string_similarity_value(self):
        assert string_similarity("acme", "acne") == pytest.approx(0.75)

    def test_nickname_variations_are_bidirectional(self):
        assert "bob" in name_variations("robert")
        assert "robert" in name_variations("bob")
        assert "bobby" in name_variations("bob")
        assert name_variations("zelda") == {"zelda"}

    def test_nickname_resolves_to_full_similarity(self):
        assert name_similarity("bob", "robert") == 1.0
        assert name_similarity("liz", "elizabeth") == 1.0

    def test_single_strong_token_is_enough(self):
        """The best token pair wins; other tokens do not dilute it."""
        assert name_similarity("jonathan q smith", "smith") == 1.0

    def test_initials_do_not_match_full_names(self):
        assert name_similarity("john", "jane") < 0.6

    def test_round_half_up(self):
        assert round_half_up(72.5) == 73
        assert round_half_up(84.49) == 84
        assert round_half_up(90.5) == 91
