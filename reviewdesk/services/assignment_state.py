"""Assignment status as a function of a review's scores.

The ``status``/``completed_at`` columns on ``ReviewAssignment`` are a cache:
``derive_status`` is authoritative and ``apply_status`` refreshes the cache.
"""
from datetime import datetime
from typing import Iterable, Mapping, Optional

from ..models.assignment import NOT_STARTED, IN_PROGRESS, COMPLETED
from .scoring import is_scored


def counts_as_answered(score) -> bool:
    # NA is an explicit answer for completion purposes
    if score is None:
        return False
    return getattr(score, "is_na", False) or score.raw_score is not None


def active_criteria(criteria: Iterable):
    return [c for c in criteria if getattr(c, "is_active", True)]


def answered_criteria(criteria: Iterable, scores: Mapping):
    """Active criteria with an answer; scores on disabled criteria are ignored."""
    return [c for c in active_criteria(criteria) if counts_as_answered(scores.get(c.id))]


def all_criteria_scored(criteria: Iterable, scores: Mapping) -> bool:
    return len(answered_criteria(criteria, scores)) == len(active_criteria(criteria))


def derive_status(criteria: Iterable, scores: Mapping) -> str:
    # every active criterion counts, optional ones included
    criteria = list(criteria)
    if not answered_criteria(criteria, scores):
        return NOT_STARTED
    if all_criteria_scored(criteria, scores):
        return COMPLETED
    return IN_PROGRESS


def apply_status(assignment, status: str, now: Optional[datetime] = None) -> bool:
    """Write ``status`` onto the cached columns; return True when anything changed."""
    now = now or datetime.utcnow()
    changed = assignment.status != status
    assignment.status = status
    if status == COMPLETED:
        if assignment.completed_at is None or changed:
            assignment.completed_at = now
            changed = True
    elif assignment.completed_at is not None:
        assignment.completed_at = None
        changed = True
    return changed


def reset_status(assignment) -> bool:
    return apply_status(assignment, NOT_STARTED)


def is_overdue(assignment, now: Optional[datetime] = None) -> bool:
    """Display-only: deadline passed and not completed."""
    now = now or datetime.utcnow()
    return bool(assignment.deadline and assignment.deadline < now and assignment.status != COMPLETED)


def progress(criteria: Iterable, scores: Mapping) -> dict:
    active = active_criteria(criteria)
    active_ids = {c.id for c in active}
    return {
        "answered": len(answered_criteria(active, scores)),
        "required": len(active),
        "scored": sum(1 for s in scores.values() if s.criteria_id in active_ids and is_scored(s)),
    }
