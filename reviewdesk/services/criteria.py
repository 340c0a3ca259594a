from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..errors import NotFound, ValidationError, PersistenceError
from ..models.program import Program
from ..models.criterion import ReviewCriterion


def active_criteria(program_id):
    """Active criteria for a program in their stable display order."""
    return (ReviewCriterion.query
            .filter_by(program_id=program_id, is_active=True)
            .order_by(ReviewCriterion.sort_order.asc(), ReviewCriterion.id.asc())
            .all())


def all_criteria(program_id):
    return (ReviewCriterion.query
            .filter_by(program_id=program_id)
            .order_by(ReviewCriterion.sort_order.asc(), ReviewCriterion.id.asc())
            .all())


def weight_total(criteria):
    return round(sum((c.weight or 0) for c in criteria if c.is_active), 4)


def get_program(program_id):
    program = db.session.get(Program, program_id)
    if not program:
        raise NotFound("Program not found")
    return program


def get_criterion(program_id, criteria_id):
    criterion = ReviewCriterion.query.filter_by(id=criteria_id, program_id=program_id).first()
    if not criterion:
        raise NotFound("Review criterion not found")
    return criterion


def _check_shape(scoring_type, min_score, max_score, rubric_definition):
    if min_score >= max_score:
        raise ValidationError("min_score must be lower than max_score", field="min_score")
    if scoring_type == "categorical" and not rubric_definition:
        raise ValidationError("categorical criteria need at least one rubric level", field="rubric_definition")


def _commit(action):
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception('Failed to %s review criterion', action)
        raise PersistenceError()


def _warn_weight_drift(program_id):
    total = weight_total(all_criteria(program_id))
    if total != 100:
        current_app.logger.warning('Program %s criteria weights sum to %s, not 100', program_id, total)
    return total


def create_criterion(program_id, data):
    get_program(program_id)
    _check_shape(data.scoring_type, data.min_score, data.max_score, data.rubric_definition)
    sort_order = data.sort_order
    if sort_order is None:
        current_max = db.session.query(func.max(ReviewCriterion.sort_order)).filter_by(program_id=program_id).scalar()
        sort_order = (current_max or 0) + 1
    criterion = ReviewCriterion(
        program_id=program_id,
        name=data.name,
        description=data.description,
        scoring_type=data.scoring_type,
        weight=data.weight,
        min_score=data.min_score,
        max_score=data.max_score,
        sort_order=sort_order,
        rubric_definition=data.rubric_definition,
        scoring_guide=data.scoring_guide,
        is_required=data.is_required,
    )
    db.session.add(criterion)
    _commit('create')
    return criterion, _warn_weight_drift(program_id)


def update_criterion(program_id, criteria_id, data):
    criterion = get_criterion(program_id, criteria_id)
    changes = data.model_dump(exclude_unset=True)
    _check_shape(
        changes.get("scoring_type", criterion.scoring_type),
        changes.get("min_score", criterion.min_score),
        changes.get("max_score", criterion.max_score),
        changes.get("rubric_definition", criterion.rubric_definition),
    )
    for key, value in changes.items():
        setattr(criterion, key, value)
    _commit('update')
    return criterion, _warn_weight_drift(program_id)


def disable_criterion(program_id, criteria_id):
    # scores keep pointing at disabled criteria, so rows are never deleted
    criterion = get_criterion(program_id, criteria_id)
    criterion.is_active = False
    _commit('disable')
    return criterion, _warn_weight_drift(program_id)
