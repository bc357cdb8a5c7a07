"""Tests for normalization, edit distance and similarity."""

import pytest

from wlx.lookup.matching import levenshtein, normalize_text, similarity


class TestNormalizeText:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Aa.", "aa"),
            ("  Hola,   MUNDO!  ", "hola mundo"),
            ("¿qué?", "¿qué"),
            ("a;b:c", "abc"),
            ("", ""),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_text(raw) == expected

    def test_idempotent(self):
        once = normalize_text(" Jama,  perro. ")
        assert normalize_text(once) == once


class TestLevenshtein:
    @pytest.mark.parametrize(
        "a,b,expected",
        [
            ("", "", 0),
            ("abc", "", 3),
            ("", "abc", 3),
            ("kitten", "sitting", 3),
            ("jama", "jama", 0),
            ("jama", "kama", 1),
            ("flaw", "lawn", 2),
        ],
    )
    def test_distance(self, a, b, expected):
        assert levenshtein(a, b) == expected

    def test_symmetric(self):
        assert levenshtein("aainjaa", "aaint") == levenshtein("aaint", "aainjaa")


class TestSimilarity:
    def test_both_empty(self):
        assert similarity("", "") == 1.0

    def test_identical(self):
        assert similarity("emaa", "emaa") == 1.0

    def test_decomposed_umlaut(self):
        # "u" + combining diaeresis is six code points against five
        assert similarity("anasu\u0308", "anasu") == pytest.approx(5 / 6)

    def test_precomposed_umlaut(self):
        assert similarity("anas\u00fc", "anasu") == pytest.approx(0.8)

    def test_decreases_with_distance(self):
        query = "abcdefghij"
        scores = [similarity(query, query[: 10 - k] + "x" * k) for k in range(5)]
        assert scores == sorted(scores, reverse=True)
        assert len(set(scores)) == len(scores)
