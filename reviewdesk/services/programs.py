from datetime import timezone

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import NotFound, ValidationError, PersistenceError
from ..models.application import Application
from ..models.assignment import ReviewAssignment, NOT_STARTED, IN_PROGRESS, COMPLETED
from ..models.review_score import ReviewScore
from ..models.user import User
from .criteria import get_program
from .aggregates import heal_assignments, recompute_application_score
from .review_scores import AGGREGATE_STALE


def _naive_utc(value):
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def create_assignments(program_id, data, assigned_by):
    """Assign one reviewer to several applications of a program.

    An existing (application, reviewer) pair is reused and only its deadline
    is updated, so repeating the call never duplicates assignments.
    """
    get_program(program_id)
    application_ids = list(dict.fromkeys(data.application_ids))
    found = {a.id for a in Application.query.filter(
        Application.program_id == program_id, Application.id.in_(application_ids)).all()}
    missing = [i for i in application_ids if i not in found]
    if missing:
        raise ValidationError(f"Invalid application IDs: {missing}", field="application_ids")
    if db.session.get(User, data.reviewer_id) is None:
        raise ValidationError("Reviewer not found", field="reviewer_id")

    deadline = _naive_utc(data.deadline)
    out = []
    try:
        for application_id in application_ids:
            assignment = ReviewAssignment.query.filter_by(
                application_id=application_id, reviewer_id=data.reviewer_id).first()
            if assignment is None:
                assignment = ReviewAssignment(application_id=application_id, reviewer_id=data.reviewer_id,
                                              assigned_by=assigned_by, status=NOT_STARTED)
                db.session.add(assignment)
            if deadline is not None:
                assignment.deadline = deadline
            out.append(assignment)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('Failed to create assignments for program %s', program_id)
        raise PersistenceError()
    return out


def program_stats(program_id):
    get_program(program_id)
    applications = Application.query.filter_by(program_id=program_id).all()
    assignments = (ReviewAssignment.query.join(Application)
                   .filter(Application.program_id == program_id)
                   .order_by(ReviewAssignment.id.asc()).all())
    heal_assignments(assignments)

    reviewed = {a.application_id for a in assignments if a.status == COMPLETED}
    scored = [app.score_avg for app in applications if app.score_avg is not None]
    overview = {
        "total_applications": len(applications),
        "applications_reviewed": len(reviewed),
        "applications_pending_review": len(applications) - len(reviewed),
        "average_score": round(sum(scored) / len(scored), 2) if scored else None,
        "total_reviewers": len({a.reviewer_id for a in assignments}),
        "reviews_completed": sum(1 for a in assignments if a.status == COMPLETED),
        "reviews_pending": sum(1 for a in assignments if a.status != COMPLETED),
    }

    review_counts = {}
    for a in assignments:
        if a.status == COMPLETED:
            review_counts[a.application_id] = review_counts.get(a.application_id, 0) + 1
    ranked = sorted(applications, key=lambda app: (app.score_avg is None, -(app.score_avg or 0), app.id))
    rankings = [{
        "application_id": app.id,
        "applicant_name": app.applicant_name or "Unknown",
        "average_score": app.score_avg,
        "review_count": review_counts.get(app.id, 0),
        "rank": rank,
    } for rank, app in enumerate(ranked, start=1)]

    workload = {}
    for a in assignments:
        row = workload.setdefault(a.reviewer_id, {
            "reviewer": {"id": a.reviewer_id, "full_name": a.reviewer.full_name, "email": a.reviewer.email},
            "total_assigned": 0, COMPLETED: 0, IN_PROGRESS: 0, NOT_STARTED: 0,
        })
        row["total_assigned"] += 1
        row[a.status if a.status in (COMPLETED, IN_PROGRESS) else NOT_STARTED] += 1

    return {"overview": overview, "rankings": rankings, "reviewerWorkload": list(workload.values())}


def _assignment_row(assignment):
    application = assignment.application
    reviewer = assignment.reviewer
    review = assignment.review
    row = assignment.to_dict()
    row["application"] = {
        "id": application.id,
        "applicant_name": application.applicant_name or "",
        "applicant_email": application.applicant_email or "",
        "submitted_at": application.submitted_at.isoformat() if application.submitted_at else None,
    }
    row["reviewer"] = {"id": reviewer.id, "full_name": reviewer.full_name or "", "email": reviewer.email}
    row["review"] = {"overall_score": review.overall_score} if review is not None else None
    return row


def list_program_assignments(program_id, user):
    """Assignments of a program; admins and the creator see all, others only their own.

    Program managers also get the program's applications with the reviewer ids
    already assigned to each, for building new assignments.
    """
    program = get_program(program_id)
    can_view_all = user.is_admin or program.created_by == user.id
    q = (ReviewAssignment.query.join(Application)
         .filter(Application.program_id == program_id))
    if not can_view_all:
        q = q.filter(ReviewAssignment.reviewer_id == user.id)
    assignments = q.order_by(ReviewAssignment.id.asc()).all()
    heal_assignments(assignments)

    applications = []
    if can_view_all:
        assigned = {}
        for a in assignments:
            assigned.setdefault(a.application_id, []).append(a.reviewer_id)
        applications = [{
            "id": app.id,
            "applicant_name": app.applicant_name or "",
            "applicant_email": app.applicant_email or "",
            "submitted_at": app.submitted_at.isoformat() if app.submitted_at else None,
            "assigned_reviewers": assigned.get(app.id, []),
        } for app in Application.query.filter_by(program_id=program_id).order_by(Application.id.asc()).all()]

    return {"assignments": [_assignment_row(a) for a in assignments], "applications": applications}


def remove_assignment(program_id, assignment_id):
    """Delete an assignment with its review and scores; returns follow-up warnings."""
    get_program(program_id)
    assignment = db.session.get(ReviewAssignment, assignment_id)
    if assignment is None or assignment.application.program_id != program_id:
        raise NotFound("Assignment not found in this program")

    application_id = assignment.application_id
    try:
        review = assignment.review
        if review is not None:
            ReviewScore.query.filter_by(review_id=review.id).delete(synchronize_session=False)
            db.session.delete(review)
        db.session.delete(assignment)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('Failed to remove assignment %s', assignment_id)
        raise PersistenceError()
    current_app.logger.info('Assignment %s removed from program %s', assignment_id, program_id)

    warnings = []
    try:
        recompute_application_score(application_id)
    except Exception:
        db.session.rollback()
        current_app.logger.exception('Weighted score recompute failed for application %s', application_id)
        warnings.append(AGGREGATE_STALE)
    return warnings
