from flask import jsonify, request, current_app
from flask_login import login_required, current_user
from . import bp
from ...extensions import rq
from ...schemas import CriterionInput, CriterionUpdate, AssignmentInput, parse_payload
from ...services import criteria as criteria_service
from ...services.programs import create_assignments, program_stats, list_program_assignments, remove_assignment
from ...jobs.recompute import recompute_program
from ...utils.decorators import program_admin_required


@bp.get("/<int:program_id>/review-criteria")
@login_required
def list_criteria(program_id):
    criteria_service.get_program(program_id)
    include_inactive = request.args.get('include_inactive', '').lower() in ('1', 'true', 'yes')
    if include_inactive:
        rows = criteria_service.all_criteria(program_id)
    else:
        rows = criteria_service.active_criteria(program_id)
    return jsonify({
        "data": [c.to_dict() for c in rows],
        "weight_total": criteria_service.weight_total(rows),
    })


@bp.post("/<int:program_id>/review-criteria")
@login_required
@program_admin_required
def create_criterion(program_id):
    data = parse_payload(CriterionInput, request.get_json(silent=True))
    criterion, total = criteria_service.create_criterion(program_id, data)
    return jsonify({"data": criterion.to_dict(), "weight_total": total}), 201


@bp.patch("/<int:program_id>/review-criteria/<int:criteria_id>")
@login_required
@program_admin_required
def update_criterion(program_id, criteria_id):
    data = parse_payload(CriterionUpdate, request.get_json(silent=True))
    criterion, total = criteria_service.update_criterion(program_id, criteria_id, data)
    return jsonify({"data": criterion.to_dict(), "weight_total": total})


@bp.delete("/<int:program_id>/review-criteria/<int:criteria_id>")
@login_required
@program_admin_required
def disable_criterion(program_id, criteria_id):
    criterion, total = criteria_service.disable_criterion(program_id, criteria_id)
    return jsonify({"data": criterion.to_dict(), "weight_total": total,
                    "message": "Review criterion disabled"})


@bp.post("/<int:program_id>/review-assignments")
@login_required
@program_admin_required
def assign_reviewer(program_id):
    data = parse_payload(AssignmentInput, request.get_json(silent=True))
    assignments = create_assignments(program_id, data, assigned_by=current_user.id)
    return jsonify({"message": "Review assignments created successfully",
                    "assignments": [a.to_dict() for a in assignments]}), 201


@bp.get("/<int:program_id>/review-assignments")
@login_required
def list_assignments(program_id):
    return jsonify(list_program_assignments(program_id, current_user))


@bp.delete("/<int:program_id>/review-assignments/<int:assignment_id>")
@login_required
@program_admin_required
def unassign_reviewer(program_id, assignment_id):
    warnings = remove_assignment(program_id, assignment_id)
    body = {"message": "Assignment removed successfully"}
    if warnings:
        body["warnings"] = warnings
    return jsonify(body)


@bp.get("/<int:program_id>/review-stats")
@login_required
@program_admin_required
def review_stats(program_id):
    return jsonify({"data": program_stats(program_id)})


@bp.post("/<int:program_id>/recompute")
@login_required
@program_admin_required
def recompute(program_id):
    job = rq.enqueue(recompute_program, program_id, job_timeout=600)
    if isinstance(job, dict):
        # ran inline
        return jsonify({"message": "Program scores recomputed", "data": job})
    if job is None:
        # inline run failed; the wrapper already logged it
        return jsonify({"error": "Program recompute failed", "code": "OPERATION_FAILED"}), 500
    current_app.logger.info('Queued recompute for program %s: %s', program_id, getattr(job, 'id', None))
    return jsonify({"message": "Program recompute queued", "job_id": getattr(job, 'id', None)}), 202
