from datetime import datetime

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models.application import Application
from ..models.assignment import ReviewAssignment
from .review_state import load_review_state
from .scoring import has_any_score
from .assignment_state import apply_status


def application_review_percentages(application):
    out = []
    for assignment in application.assignments.order_by(ReviewAssignment.id.asc()).all():
        state = load_review_state(assignment)
        if has_any_score(state.reconciled.scores):
            out.append(state.percentage)
    return out


def recompute_application_score(application_id):
    """Average of the per-review percentages for one application (0-100).

    Stores the result on ``Application.score_avg``; returns None when no
    review of the application has a usable score.
    """
    application = db.session.get(Application, application_id)
    if application is None:
        return None
    percentages = application_review_percentages(application)
    score = round(sum(percentages) / len(percentages), 2) if percentages else None
    application.score_avg = score
    application.last_evaluated_at = datetime.utcnow()
    db.session.commit()
    return score


def refresh_assignment_status(assignment, commit=True):
    """Re-derive the cached status from scores; return True when it changed.

    Failures are logged and swallowed: the derived status is served either way.
    """
    state = load_review_state(assignment)
    changed = apply_status(assignment, state.status)
    if changed and commit:
        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception('Failed to refresh status for assignment %s', assignment.id)
            return False
    return changed


def refresh_program(program_id):
    """Heal every assignment status and recompute every application score of a program."""
    refreshed = 0
    scored = 0
    applications = Application.query.filter_by(program_id=program_id).order_by(Application.id.asc()).all()
    for application in applications:
        for assignment in application.assignments.all():
            if refresh_assignment_status(assignment, commit=False):
                refreshed += 1
        db.session.commit()
        if recompute_application_score(application.id) is not None:
            scored += 1
    current_app.logger.info('Program %s refreshed: %s statuses changed, %s applications scored', program_id, refreshed, scored)
    return {"applications": len(applications), "statuses_changed": refreshed, "applications_scored": scored}


def heal_assignments(assignments):
    """Bring cached statuses in line with scores before they are listed or counted."""
    changed = False
    for assignment in assignments:
        changed = refresh_assignment_status(assignment, commit=False) or changed
    if not changed:
        return False
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('Failed to persist refreshed assignment statuses')
        return False
    return True
