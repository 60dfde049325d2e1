"""Unit tests for trigram name similarity."""

from __future__ import annotations

from django.test import SimpleTestCase

from apps.customers.similarity import similarity, trigrams


class TrigramTests(SimpleTestCase):
    def test_word_is_padded_before_splitting(self) -> None:
        self.assertEqual(trigrams("Cat"), frozenset({"  c", " ca", "cat", "at "}))

    def test_punctuation_separates_words(self) -> None:
        self.assertEqual(trigrams("Doe, John"), trigrams("john doe"))

    def test_empty_input_has_no_trigrams(self) -> None:
        self.assertEqual(trigrams(""), frozenset())
        self.assertEqual(trigrams(None), frozenset())


class SimilarityTests(SimpleTestCase):
    def test_identical_names_ignoring_case(self) -> None:
        self.assertEqual(similarity("John Doe", "john doe"), 1.0)

    def test_matches_pg_trgm_score(self) -> None:
        self.assertAlmostEqual(similarity("word", "two words"), 4 / 11)

    def test_unrelated_names(self) -> None:
        self.assertEqual(similarity("abc", "xyz"), 0.0)

    def test_blank_side_scores_zero(self) -> None:
        self.assertEqual(similarity("", "John"), 0.0)

    def test_small_typo_stays_below_default_threshold(self) -> None:
        self.assertLess(similarity("Somchai Jaidee", "Somchai Jaide"), 0.9)
