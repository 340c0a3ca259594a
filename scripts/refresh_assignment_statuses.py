#!/usr/bin/env python3
"""Re-derive review_assignments.status / completed_at from stored scores.

Status is a cache of what the scores say. This script walks every
assignment (or those of one program) and rewrites the cached columns where
they drifted, e.g. after a failed status write or a criteria change.

Run from project root:
  python scripts/refresh_assignment_statuses.py            # all programs
  python scripts/refresh_assignment_statuses.py --program 3
  python scripts/refresh_assignment_statuses.py --dry-run
"""
import argparse
import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from flask import current_app

from reviewdesk import create_app
from reviewdesk.extensions import db
from reviewdesk.models.application import Application
from reviewdesk.models.assignment import ReviewAssignment
from reviewdesk.services.aggregates import refresh_assignment_status


def refresh(program_id=None, dry_run=False):
    """Return (processed, refreshed) counts; needs an app context."""
    q = ReviewAssignment.query
    if program_id is not None:
        q = q.join(Application).filter(Application.program_id == program_id)
    total = 0
    fixed = 0
    for assignment in q.order_by(ReviewAssignment.id).all():
        total += 1
        before = assignment.status
        if refresh_assignment_status(assignment, commit=False):
            fixed += 1
            current_app.logger.info('assignment %s: %s -> %s', assignment.id, before, assignment.status)

    if fixed and not dry_run:
        db.session.commit()
    else:
        db.session.rollback()
    return total, fixed


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument('--program', type=int, default=None)
    parser.add_argument('--dry-run', action='store_true')
    args = parser.parse_args(argv)

    app = create_app()
    with app.app_context():
        total, fixed = refresh(args.program, args.dry_run)
        print(f"Processed {total} assignments, refreshed {fixed}{' (dry run)' if args.dry_run else ''}.")
    return fixed


if __name__ == '__main__':
    main()
