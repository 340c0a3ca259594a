from datetime import datetime

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import PersistenceError, ValidationError
from ..models.assignment import ReviewAssignment, ASSIGNMENT_STATUSES, COMPLETED
from ..models.review import Review
from .review_state import get_assignment_for_reviewer, load_review_state
from .assignment_state import is_overdue
from .aggregates import refresh_assignment_status, heal_assignments

SORT_KEYS = ("due_date", "status", "program")
STATUS_FILTERS = ASSIGNMENT_STATUSES + ("overdue", "all")


def _iso(value):
    return value.isoformat() if value else None


def serialize_assignment(assignment, now=None):
    application = assignment.application
    program = application.program
    return {
        "id": assignment.id,
        "application_id": assignment.application_id,
        "reviewer_id": assignment.reviewer_id,
        "status": assignment.status,
        "assigned_at": _iso(assignment.assigned_at),
        "due_date": _iso(assignment.deadline),
        "submitted_at": _iso(assignment.completed_at),
        "overdue": is_overdue(assignment, now),
        "application": {
            "id": application.id,
            "program_id": application.program_id,
            "applicant_name": application.applicant_name or "Unknown",
            "applicant_email": application.applicant_email or "",
            "submitted_at": _iso(application.submitted_at),
            "program": {
                "id": program.id,
                "title": program.title,
                "description": program.description,
            },
        },
    }


def reviewer_assignments(reviewer_id):
    assignments = ReviewAssignment.query.filter_by(reviewer_id=reviewer_id).order_by(ReviewAssignment.id.asc()).all()
    heal_assignments(assignments)
    return assignments


def list_assignments(reviewer_id, status=None, program=None, sort="due_date", order="asc", now=None):
    now = now or datetime.utcnow()
    if status and status not in STATUS_FILTERS:
        raise ValidationError(f"Unknown status filter {status!r}", field="status")
    if sort not in SORT_KEYS:
        sort = "due_date"
    items = reviewer_assignments(reviewer_id)

    if status == "overdue":
        items = [a for a in items if is_overdue(a, now)]
    elif status and status != "all":
        items = [a for a in items if a.status == status]
    if program:
        items = [a for a in items if a.application.program_id == program]

    descending = order == "desc"
    if sort == "status":
        items.sort(key=lambda a: (a.status, a.id), reverse=descending)
    elif sort == "program":
        items.sort(key=lambda a: (a.application.program.title or "", a.id), reverse=descending)
    else:
        # undated assignments always go last
        dated = sorted([a for a in items if a.deadline], key=lambda a: (a.deadline, a.id), reverse=descending)
        items = dated + [a for a in items if not a.deadline]
    return [serialize_assignment(a, now) for a in items]


def reviewer_stats(reviewer_id, now=None):
    now = now or datetime.utcnow()
    items = reviewer_assignments(reviewer_id)
    return {
        "total": len(items),
        "inProgress": sum(1 for a in items if a.status == "in_progress"),
        "completed": sum(1 for a in items if a.status == COMPLETED),
        "overdue": sum(1 for a in items if is_overdue(a, now)),
        "notStarted": sum(1 for a in items if a.status == "not_started"),
    }


def review_detail(assignment_id, reviewer_id):
    assignment = get_assignment_for_reviewer(assignment_id, reviewer_id)
    refresh_assignment_status(assignment)
    state = load_review_state(assignment)
    by_id = state.criteria_by_id
    return {
        "assignment": serialize_assignment(assignment),
        "criteria": [c.to_dict() for c in state.active_criteria],
        "existingScores": {
            str(s.criteria_id): s.to_dict(by_id.get(s.criteria_id)) for s in state.ordered_scores()
        },
        "review": state.review.to_dict() if state.review else None,
        "is_legacy": state.is_legacy,
        "percentage": round(state.percentage, 2),
        "overall_score": state.overall_score,
        "progress": state.progress,
    }


def update_review(assignment_id, reviewer_id, data):
    assignment = get_assignment_for_reviewer(assignment_id, reviewer_id)
    changes = data.model_dump(exclude_unset=True)
    overall = changes.pop("overall_comments", None)
    if overall is not None and "comments" not in changes:
        changes["comments"] = overall

    review = Review.query.filter_by(assignment_id=assignment.id).first()
    try:
        if review is None:
            # comment-only reviews have no score to hold a placeholder for
            review = Review(assignment_id=assignment.id, overall_score=None,
                            comments="", strengths="", weaknesses="", recommendation="")
            db.session.add(review)
        for key, value in changes.items():
            setattr(review, key, (value or "").strip())
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('Failed to update review for assignment %s', assignment_id)
        raise PersistenceError()
    return review
