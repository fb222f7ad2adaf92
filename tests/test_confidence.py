"""Tests for the confidence module.

Only the arithmetic is asserted; the score is a heuristic, not a
calibrated probability.
"""

import pytest

from textbook_qa.confidence import DEFAULT_SIMILARITY, confidence, passage_similarity
from textbook_qa.models import RetrievedPassage


def _passage(similarity: float | None) -> RetrievedPassage:
    return RetrievedPassage(content="text", page_number=1, similarity=similarity)


class TestPassageSimilarity:
    def test_returns_score_when_present(self) -> None:
        assert passage_similarity(_passage(0.42)) == 0.42

    def test_defaults_when_missing(self) -> None:
        assert passage_similarity(_passage(None)) == DEFAULT_SIMILARITY

    def test_zero_is_not_treated_as_missing(self) -> None:
        assert passage_similarity(_passage(0.0)) == 0.0

    def test_default_is_point_eight(self) -> None:
        assert DEFAULT_SIMILARITY == 0.8


class TestConfidence:
    def test_empty_is_zero(self) -> None:
        assert confidence([]) == 0

    def test_mean_of_scores(self) -> None:
        assert confidence([_passage(0.4), _passage(0.8)]) == 0.6

    def test_missing_score_uses_default(self) -> None:
        assert confidence([_passage(None)]) == 0.8

    def test_mixed_scored_and_unscored(self) -> None:
        assert confidence([_passage(0.6), _passage(None)]) == 0.7

    def test_rounds_to_two_decimals(self) -> None:
        assert confidence([_passage(0.333), _passage(0.334), _passage(0.335)]) == 0.33

    def test_scenario_two_passages(self) -> None:
        assert confidence([_passage(0.9), _passage(0.7)]) == pytest.approx(0.8)

    def test_stays_in_unit_interval(self) -> None:
        assert 0.0 <= confidence([_passage(1.0), _passage(0.0)]) <= 1.0

    def test_ties_round_half_up(self) -> None:
        assert confidence([_passage(0.1), _passage(0.15)]) == 0.13
