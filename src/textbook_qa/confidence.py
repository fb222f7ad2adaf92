"""Confidence estimation from retrieval similarity scores.

The value is a heuristic proxy for retrieval quality, not a calibrated
probability. A passage without a score counts as ``DEFAULT_SIMILARITY``,
which is a neutral prior rather than a measurement, so a confidence built
from unscored passages is less trustworthy than one built from scored ones.
"""

import math

from textbook_qa.models import RetrievedPassage

DEFAULT_SIMILARITY = 0.8


def passage_similarity(passage: RetrievedPassage) -> float:
    """Return the passage's similarity, or the neutral prior when absent."""
    if passage.similarity is None:
        return DEFAULT_SIMILARITY
    return passage.similarity


def confidence(passages: list[RetrievedPassage]) -> float:
    """Mean passage similarity rounded half up to two decimals; 0 for no passages."""
    if not passages:
        return 0.0
    total = sum(passage_similarity(p) for p in passages)
    # Half up, not round()'s half to even: 0.125 -> 0.13.
    return math.floor(total / len(passages) * 100 + 0.5) / 100
