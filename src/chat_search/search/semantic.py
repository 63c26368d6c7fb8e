"""
Vector similarity for semantic message scoring.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

# Rounding slack allowed past +/-1 before a score is treated as invalid.
_RANGE_TOLERANCE = 1e-9


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """Return the cosine similarity of two vectors, or 0.0 when undefined.

    Zero-magnitude, empty or mismatched vectors, and any result that is not
    finite or falls outside [-1, 1], score 0.0 so a degenerate embedding can
    never push NaN into the ranking sort.
    """
    if not vec_a or not vec_b or len(vec_a) != len(vec_b):
        return 0.0

    dot = sum(a * b for a, b in zip(vec_a, vec_b))
    magnitude_a = math.sqrt(sum(a * a for a in vec_a))
    magnitude_b = math.sqrt(sum(b * b for b in vec_b))
    denominator = magnitude_a * magnitude_b
    if denominator == 0.0 or not math.isfinite(denominator):
        return 0.0

    score = dot / denominator
    if not math.isfinite(score):
        return 0.0
    if abs(score) > 1.0:
        if abs(score) - 1.0 > _RANGE_TOLERANCE:
            return 0.0
        score = math.copysign(1.0, score)
    return score
