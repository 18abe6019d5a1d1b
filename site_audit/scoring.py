"""
Scoring formula shared by every analyzer.

A check is worth 100 (success), 50 (warning) or 0 (error). A category
scores the rounded mean of its checks, a report the rounded mean of its
categories. Empty inputs score 0 on purpose: a category that exists but
could not be analysed drags the global score down.
"""

import math
from typing import Iterable, Mapping

STATUS_POINTS = {
    "success": 100,
    "warning": 50,
    "error": 0,
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def category_score(checks: Iterable) -> int:
    points = [STATUS_POINTS[check.status.value] for check in checks]
    if not points:
        return 0
    return round_half_up(sum(points) / len(points))


def global_score(categories: Mapping) -> int:
    scores = [category.score for category in categories.values()]
    if not scores:
        return 0
    return round_half_up(sum(scores) / len(scores))
