from dataclasses import dataclass, field
from typing import List, Optional

from flask import current_app

from ..errors import Unauthorized, NotFound
from ..models.assignment import ReviewAssignment
from ..models.review import Review
from ..models.review_score import ReviewScore
from .criteria import all_criteria
from .legacy import reconcile, ReconciledScores
from .scoring import compute_overall_score, to_legacy_scale, has_any_score
from .assignment_state import derive_status, progress


def legacy_scale():
    return int(current_app.config.get("LEGACY_SCORE_SCALE", 10))


def get_assignment_for_reviewer(assignment_id, reviewer_id):
    """Assignment owned by ``reviewer_id``.

    A missing assignment and one owned by someone else are indistinguishable
    to the caller: both raise NotFound.
    """
    if reviewer_id is None:
        raise Unauthorized()
    assignment = ReviewAssignment.query.filter_by(id=assignment_id, reviewer_id=reviewer_id).first()
    if not assignment:
        raise NotFound("Review assignment not found")
    return assignment


@dataclass
class ReviewState:
    assignment: ReviewAssignment
    criteria: List = field(default_factory=list)
    review: Optional[Review] = None
    persisted: List = field(default_factory=list)
    reconciled: ReconciledScores = field(default_factory=ReconciledScores)

    @property
    def active_criteria(self):
        return [c for c in self.criteria if c.is_active]

    @property
    def criteria_by_id(self):
        return {c.id: c for c in self.criteria}

    @property
    def scores(self):
        return self.reconciled.by_criteria()

    @property
    def is_legacy(self):
        return self.reconciled.is_legacy

    @property
    def status(self):
        return derive_status(self.active_criteria, self.scores)

    @property
    def percentage(self):
        return compute_overall_score(self.active_criteria, self.scores)

    @property
    def overall_score(self):
        if not has_any_score(self.reconciled.scores):
            return None
        return to_legacy_scale(self.percentage)

    @property
    def progress(self):
        return progress(self.active_criteria, self.scores)

    def ordered_scores(self):
        """Scores in criteria display order; scores on unknown criteria go last."""
        order = {c.id: i for i, c in enumerate(self.criteria)}
        return sorted(self.reconciled.scores, key=lambda s: (order.get(s.criteria_id, len(order)), s.criteria_id))

    def serialized_scores(self):
        by_id = self.criteria_by_id
        return [s.to_dict(by_id.get(s.criteria_id)) for s in self.ordered_scores()]


def load_review_state(assignment) -> ReviewState:
    criteria = all_criteria(assignment.application.program_id)
    review = Review.query.filter_by(assignment_id=assignment.id).first()
    persisted = []
    if review is not None:
        persisted = ReviewScore.query.filter_by(review_id=review.id).order_by(ReviewScore.id.asc()).all()
    active = [c for c in criteria if c.is_active]
    reconciled = reconcile(review, active, persisted, scale=legacy_scale()) if review is not None else ReconciledScores()
    return ReviewState(assignment=assignment, criteria=criteria, review=review,
                       persisted=persisted, reconciled=reconciled)
