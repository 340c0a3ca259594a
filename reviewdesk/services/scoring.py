"""Per-review score aggregation.

Scores may be persisted ``ReviewScore`` rows or the ``ScoreView`` records
produced by :mod:`reviewdesk.services.legacy`; only ``criteria_id``,
``raw_score`` and ``is_na`` are read.
"""
import math
from typing import Iterable, Mapping, Optional


def js_round(value: float) -> int:
    """Round half up, matching the rounding the stored 1-5 scores were made with."""
    return int(math.floor(value + 0.5))


def is_scored(score) -> bool:
    return score is not None and score.raw_score is not None and not getattr(score, "is_na", False)


def scores_by_criteria(scores: Iterable) -> dict:
    return {s.criteria_id: s for s in scores}


def compute_overall_score(criteria: Iterable, scores: Mapping) -> float:
    """Weighted percentage (0-100) over the criteria that have a usable score.

    Each scored criterion contributes ``raw / max_score * weight``; the sum is
    divided by the weights of the scored criteria only, so a partially scored
    review reports progress relative to what has been answered. Scores above
    ``max_score`` are not clamped here.
    """
    total_weighted = 0.0
    total_weight = 0.0
    for criterion in criteria:
        score = scores.get(criterion.id)
        if not is_scored(score):
            continue
        if not criterion.max_score:
            continue
        weight = criterion.weight or 0
        total_weighted += (score.raw_score / criterion.max_score) * weight
        total_weight += weight
    if total_weight <= 0:
        return 0.0
    return (total_weighted / total_weight) * 100


def to_legacy_scale(percentage: float) -> int:
    """Map 0-100 onto the 1-5 band stored in ``Review.overall_score``."""
    scaled = js_round((percentage / 100) * 4) + 1
    return max(1, min(5, scaled))


def normalize_raw_score(raw_score: Optional[float], criterion) -> Optional[float]:
    """Rescale a raw score to 0-100 using the criterion's min/max."""
    if raw_score is None:
        return None
    span = (criterion.max_score or 0) - (criterion.min_score or 0)
    if span <= 0:
        return None
    return round((raw_score - (criterion.min_score or 0)) / span * 100, 4)


def weighted_score(normalized: Optional[float], weight: Optional[float]) -> Optional[float]:
    if normalized is None or weight is None:
        return None
    return round(normalized * weight / 100, 4)


def rubric_level_score(criterion, level: str) -> int:
    """Raw score for a categorical rubric level, spread evenly over min..max."""
    levels = criterion.rubric_levels
    index = levels.index(level)
    if len(levels) == 1:
        return js_round(criterion.max_score)
    step = (criterion.max_score - criterion.min_score) / (len(levels) - 1)
    return js_round(criterion.min_score + step * index)


def has_any_score(scores: Iterable) -> bool:
    return any(is_scored(s) for s in scores)
