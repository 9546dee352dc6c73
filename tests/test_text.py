"""
Unit Tests - Text Normalization
===============================
"""

import pytest

from pantry_recipes.text import normalize_token, normalize_tokens, token_similarity, tokenize_text

SAMPLES = [
    "",
    "   ",
    "Spinach",
    "Half-and-Half",
    "  2 c. Brown Sugar!! ",
    "crème fraîche",
    "ALL CAPS, with; punctuation...",
    "tabs\tand\nnewlines",
    "already normal",
]


class TestNormalizeToken:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Spinach", "spinach"),
            ("Half-and-Half", "half and half"),
            ("  2 c. Brown Sugar!! ", "2 c brown sugar"),
            ("crème fraîche", "cr me fra che"),
            ("", ""),
            (None, ""),
            ("---", ""),
        ],
    )
    def test_examples(self, raw, expected):
        assert normalize_token(raw) == expected

    @pytest.mark.parametrize("raw", SAMPLES)
    def test_idempotent(self, raw):
        once = normalize_token(raw)
        assert normalize_token(once) == once


class TestTokenize:

    def test_dedupes_in_first_seen_order(self):
        assert tokenize_text("Eggs, eggs and MORE eggs") == ["eggs", "and", "more"]

    def test_punctuation_only_pieces_dropped(self):
        assert tokenize_text("salt -- pepper") == ["salt", "pepper"]

    def test_normalize_tokens_skips_empty_and_none(self):
        assert normalize_tokens(["Brown Sugar", None, "", "brown sugar", "eggs"]) == ["brown sugar", "eggs"]


class TestTokenSimilarity:

    def test_identical(self):
        assert token_similarity("spinach", "spinach") == 1.0

    def test_one_edit(self):
        # one substitution over seven characters
        assert token_similarity("spinach", "spinich") == pytest.approx(1 - 1 / 7)

    def test_length_difference(self):
        assert token_similarity("frittata", "frittatta") == pytest.approx(1 - 1 / 9)

    def test_unrelated(self):
        assert token_similarity("abc", "xyz") == 0.0
