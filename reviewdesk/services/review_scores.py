"""Score submission pipeline for a reviewer's assignment.

authorize -> validate -> ensure review -> upsert scores + sync overall score
(one transaction) -> refresh assignment status -> recompute application score.

The first transaction is the primary write. The two follow-up steps are
best-effort: their failures are logged and reported as warnings, never
rolled back into the score write. Both are re-derived on the next read.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..errors import Conflict, PersistenceError, ValidationError
from ..models.assignment import COMPLETED
from ..models.review import Review
from ..models.review_score import ReviewScore
from ..schemas import ScoresPayload, parse_payload
from .review_state import get_assignment_for_reviewer, load_review_state
from .scoring import normalize_raw_score, weighted_score, rubric_level_score
from .assignment_state import apply_status, reset_status
from .aggregates import recompute_application_score, refresh_assignment_status

STATUS_STALE = "status_update_failed"
AGGREGATE_STALE = "aggregate_recompute_failed"


@dataclass
class SubmissionResult:
    scores: List[dict]
    status: str
    message: str
    percentage: float
    overall_score: Optional[int]
    application_score: Optional[float] = None
    warnings: List[str] = field(default_factory=list)

    def to_dict(self):
        body = {
            "data": self.scores,
            "status": self.status,
            "message": self.message,
            "percentage": round(self.percentage, 2),
            "overall_score": self.overall_score,
        }
        if self.application_score is not None:
            body["application_score"] = self.application_score
        if self.warnings:
            body["warnings"] = self.warnings
        return body


def _placeholder_score():
    return int(current_app.config.get("REVIEW_PLACEHOLDER_SCORE", 3))


def _reject_legacy(state):
    if state.is_legacy:
        raise Conflict("This review was completed under the legacy scoring model and cannot be modified",
                       code="LEGACY_REVIEW_LOCKED")


def prepare_score(criterion, item, index):
    """Column values for one score input, checked against its criterion."""
    prefix = f"scores.{index}"
    raw = item.raw_score
    level = item.rubric_level

    if level is not None:
        if criterion.scoring_type != "categorical":
            raise ValidationError(f"Criterion {criterion.id} does not use rubric levels", field=f"{prefix}.rubric_level")
        if level not in criterion.rubric_levels:
            raise ValidationError(f"Unknown rubric level {level!r} for criterion {criterion.id}", field=f"{prefix}.rubric_level")
        if raw is None and not item.is_na:
            raw = rubric_level_score(criterion, level)

    if item.is_na:
        raw = None
    elif raw is not None:
        if raw < criterion.min_score or raw > criterion.max_score:
            raise ValidationError(
                f"Score must be between {criterion.min_score:g} and {criterion.max_score:g}",
                field=f"{prefix}.raw_score")
        if criterion.scoring_type == "binary" and raw not in (criterion.min_score, criterion.max_score):
            raise ValidationError(
                f"Binary criterion {criterion.id} accepts only {criterion.min_score:g} or {criterion.max_score:g}",
                field=f"{prefix}.raw_score")

    normalized = normalize_raw_score(raw, criterion)
    return {
        "raw_score": raw,
        "normalized_score": normalized,
        "weight_applied": criterion.weight,
        "weighted_score": weighted_score(normalized, criterion.weight),
        "rubric_level": level,
        "score_rationale": item.score_rationale,
        "reviewer_confidence": item.reviewer_confidence,
        "is_na": item.is_na,
    }


def prepare_scores(state, items):
    active = {c.id: c for c in state.active_criteria}
    prepared = {}
    for index, item in enumerate(items):
        criterion = active.get(item.criteria_id)
        if criterion is None:
            raise ValidationError(f"Criterion {item.criteria_id} is not an active criterion of this program",
                                  field=f"scores.{index}.criteria_id")
        # repeated criteria in one payload: the last one wins
        prepared[item.criteria_id] = prepare_score(criterion, item, index)
    return prepared


def _ensure_review(state):
    if state.review is not None:
        return state.review
    review = Review(assignment_id=state.assignment.id, overall_score=_placeholder_score(),
                    comments="", strengths="", weaknesses="", recommendation="")
    db.session.add(review)
    db.session.flush()
    return review


def _upsert(review, prepared):
    existing = {s.criteria_id: s for s in ReviewScore.query.filter_by(review_id=review.id).all()}
    for criteria_id, values in prepared.items():
        row = existing.get(criteria_id)
        if row is None:
            row = ReviewScore(review_id=review.id, criteria_id=criteria_id)
            db.session.add(row)
            existing[criteria_id] = row
        for key, value in values.items():
            setattr(row, key, value)
    db.session.flush()


def list_scores(assignment_id, reviewer_id):
    assignment = get_assignment_for_reviewer(assignment_id, reviewer_id)
    state = load_review_state(assignment)
    refresh_assignment_status(assignment)
    return state


def submit_scores(assignment_id, reviewer_id, data) -> SubmissionResult:
    assignment = get_assignment_for_reviewer(assignment_id, reviewer_id)
    payload = data if isinstance(data, ScoresPayload) else parse_payload(ScoresPayload, data)
    state = load_review_state(assignment)
    _reject_legacy(state)
    prepared = prepare_scores(state, payload.scores)

    try:
        review = _ensure_review(state)
        _upsert(review, prepared)
        state = load_review_state(assignment)
        # None when only NA answers remain; the score rows keep it from reading as legacy
        review.overall_score = state.overall_score
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.warning('Concurrent score write on assignment %s', assignment_id)
        raise Conflict("Scores were modified concurrently, please retry")
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('Failed to save scores for assignment %s', assignment_id)
        raise PersistenceError()

    warnings = []
    status = state.status
    try:
        apply_status(assignment, status)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('Scores saved but status update failed for assignment %s', assignment_id)
        warnings.append(STATUS_STALE)

    application_score = None
    try:
        application_score = recompute_application_score(assignment.application_id)
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Weighted score recompute failed for application %s', assignment.application_id)
        warnings.append(AGGREGATE_STALE)

    if STATUS_STALE in warnings:
        message = "Scores saved successfully; review status may be stale"
    elif status == COMPLETED:
        message = "Review completed successfully"
    else:
        message = "Scores saved successfully"

    return SubmissionResult(
        scores=state.serialized_scores(),
        status=status,
        message=message,
        percentage=state.percentage,
        overall_score=state.overall_score,
        application_score=application_score,
        warnings=warnings,
    )


def clear_scores(assignment_id, reviewer_id):
    """Delete every score of the assignment's review; the review row stays."""
    assignment = get_assignment_for_reviewer(assignment_id, reviewer_id)
    state = load_review_state(assignment)
    _reject_legacy(state)

    if state.review is not None:
        try:
            ReviewScore.query.filter_by(review_id=state.review.id).delete(synchronize_session=False)
            # no scores left to sync from; a null score also keeps the row
            # from being read as a legacy review
            state.review.overall_score = None
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception('Failed to clear scores for assignment %s', assignment_id)
            raise PersistenceError()

    warnings = []
    try:
        reset_status(assignment)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('Scores cleared but status reset failed for assignment %s', assignment_id)
        warnings.append(STATUS_STALE)

    try:
        recompute_application_score(assignment.application_id)
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Weighted score recompute failed for application %s', assignment.application_id)
        warnings.append(AGGREGATE_STALE)

    return warnings
