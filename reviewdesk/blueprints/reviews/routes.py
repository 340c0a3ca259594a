from flask import jsonify, request, current_app
from flask_login import login_required, current_user
from . import bp
from ...schemas import ReviewUpdate, parse_payload
from ...services import review_scores, reviews


@bp.get("")
@login_required
def list_reviews():
    program = request.args.get('program', type=int)
    items = reviews.list_assignments(
        current_user.id,
        status=request.args.get('status'),
        program=program,
        sort=request.args.get('sort', 'due_date'),
        order=request.args.get('order', 'asc'),
    )
    return jsonify({"data": items})


@bp.get("/stats")
@login_required
def review_stats():
    return jsonify({"data": reviews.reviewer_stats(current_user.id)})


@bp.get("/<int:assignment_id>")
@login_required
def review_detail(assignment_id):
    return jsonify({"data": reviews.review_detail(assignment_id, current_user.id)})


@bp.put("/<int:assignment_id>")
@login_required
def update_review(assignment_id):
    data = parse_payload(ReviewUpdate, request.get_json(silent=True))
    review = reviews.update_review(assignment_id, current_user.id, data)
    return jsonify({"data": review.to_dict(), "message": "Review updated successfully"})


@bp.get("/<int:assignment_id>/scores")
@login_required
def get_scores(assignment_id):
    state = review_scores.list_scores(assignment_id, current_user.id)
    return jsonify({
        "data": state.serialized_scores(),
        "status": state.status,
        "is_legacy": state.is_legacy,
    })


@bp.post("/<int:assignment_id>/scores")
@login_required
def submit_scores(assignment_id):
    result = review_scores.submit_scores(assignment_id, current_user.id, request.get_json(silent=True))
    current_app.logger.info('Assignment %s scored by user %s: status=%s percentage=%.2f',
                            assignment_id, current_user.id, result.status, result.percentage)
    return jsonify(result.to_dict())


@bp.delete("/<int:assignment_id>/scores")
@login_required
def clear_scores(assignment_id):
    warnings = review_scores.clear_scores(assignment_id, current_user.id)
    body = {"message": "Review scores cleared successfully", "status": "not_started"}
    if warnings:
        body["warnings"] = warnings
    return jsonify(body)
