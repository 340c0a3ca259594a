import os
import sys
from datetime import datetime

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'scripts')))

from refresh_assignment_statuses import refresh
from reviewdesk.extensions import db
from reviewdesk.models import ReviewAssignment, ReviewScore


def test_refresh_rewrites_drifted_statuses(make):
    program = make.program()
    other_program = make.program()
    c = make.criterion(program, weight=100)
    reviewer = make.user()
    scored = make.assignment(make.application(program), reviewer)
    review = make.review(scored, overall_score=4)
    db.session.add(ReviewScore(review_id=review.id, criteria_id=c.id, raw_score=8))
    db.session.commit()
    drifted = make.assignment(make.application(program), reviewer, status='completed',
                              completed_at=datetime(2026, 2, 1))
    elsewhere = make.assignment(make.application(other_program), reviewer, status='in_progress')

    assert refresh(program.id, dry_run=True) == (2, 2)
    assert db.session.get(ReviewAssignment, drifted.id).status == 'completed'

    assert refresh(program.id) == (2, 2)
    assert db.session.get(ReviewAssignment, scored.id).status == 'completed'
    assert db.session.get(ReviewAssignment, drifted.id).status == 'not_started'
    assert db.session.get(ReviewAssignment, drifted.id).completed_at is None
    assert db.session.get(ReviewAssignment, elsewhere.id).status == 'in_progress'

    assert refresh(program.id) == (2, 0)
