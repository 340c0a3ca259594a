"""Reconcile pre-criteria reviews with the per-criterion scoring model.

Reviews written before criteria existed carry only ``overall_score`` (1-10).
``reconcile`` turns every review into a uniform list of ``ScoreView`` records
so aggregation, completion checks and serialization never branch on era.
Synthetic records are never persisted.
"""
from dataclasses import dataclass, field
from typing import List, Optional

NATIVE = "native"
SYNTHETIC = "synthetic"
LEGACY_ID_PREFIX = "legacy_"


@dataclass
class ScoreView:
    id: object
    criteria_id: int
    raw_score: Optional[float]
    kind: str = NATIVE
    review_id: Optional[int] = None
    normalized_score: Optional[float] = None
    weight_applied: Optional[float] = None
    weighted_score: Optional[float] = None
    rubric_level: Optional[str] = None
    score_rationale: Optional[str] = None
    reviewer_confidence: Optional[int] = None
    is_na: bool = False

    @property
    def is_synthetic(self) -> bool:
        return self.kind == SYNTHETIC

    @property
    def editable(self) -> bool:
        return not self.is_synthetic

    @classmethod
    def from_row(cls, row):
        return cls(
            id=row.id,
            criteria_id=row.criteria_id,
            raw_score=row.raw_score,
            kind=NATIVE,
            review_id=row.review_id,
            normalized_score=row.normalized_score,
            weight_applied=row.weight_applied,
            weighted_score=row.weighted_score,
            rubric_level=row.rubric_level,
            score_rationale=row.score_rationale,
            reviewer_confidence=row.reviewer_confidence,
            is_na=bool(row.is_na),
        )

    def to_dict(self, criterion=None):
        out = {
            "id": self.id,
            "review_id": self.review_id,
            "criteria_id": self.criteria_id,
            "raw_score": self.raw_score,
            "normalized_score": self.normalized_score,
            "weight_applied": self.weight_applied,
            "weighted_score": self.weighted_score,
            "rubric_level": self.rubric_level,
            "score_rationale": self.score_rationale,
            "reviewer_confidence": self.reviewer_confidence,
            "is_na": self.is_na,
            "kind": self.kind,
            "editable": self.editable,
        }
        if criterion is not None:
            out["criteria"] = criterion.to_dict()
        return out


@dataclass
class ReconciledScores:
    scores: List[ScoreView] = field(default_factory=list)
    is_legacy: bool = False

    def by_criteria(self):
        return {s.criteria_id: s for s in self.scores}


def is_legacy_review(review, persisted_scores) -> bool:
    return review is not None and not persisted_scores and review.overall_score is not None


def legacy_fraction(overall_score: float, scale: int) -> float:
    """Share of the legacy scale the overall score represents, within 0..1."""
    if not scale:
        return 0.0
    return max(0.0, min(1.0, overall_score / scale))


def synthesize_scores(review, criteria, scale: int = 10) -> List[ScoreView]:
    # the per-criterion breakdown never existed; every criterion gets the
    # same share of the legacy score
    fraction = legacy_fraction(review.overall_score, scale)
    out = []
    for criterion in criteria:
        if not getattr(criterion, "is_active", True):
            continue
        raw = round(fraction * criterion.max_score, 4)
        out.append(ScoreView(
            id=f"{LEGACY_ID_PREFIX}{criterion.id}",
            criteria_id=criterion.id,
            raw_score=raw,
            kind=SYNTHETIC,
            review_id=review.id,
            normalized_score=round(fraction * 100, 4),
            weight_applied=criterion.weight,
            weighted_score=round(fraction * 100 * (criterion.weight or 0) / 100, 4),
        ))
    return out


def reconcile(review, criteria, persisted_scores, scale: int = 10) -> ReconciledScores:
    persisted_scores = list(persisted_scores or [])
    if is_legacy_review(review, persisted_scores):
        return ReconciledScores(scores=synthesize_scores(review, criteria, scale), is_legacy=True)
    return ReconciledScores(scores=[ScoreView.from_row(s) for s in persisted_scores], is_legacy=False)
