import os
import sys
from datetime import datetime

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from flask import g

from reviewdesk import create_app
from reviewdesk.extensions import db
from reviewdesk.models import (User, Program, Application, ReviewCriterion,
                               ReviewAssignment, Review)


@pytest.fixture
def app():
    app = create_app('config.TestConfig')

    # the test keeps one app context open and requests reuse it, so the
    # user Flask-Login cached on g would carry over to the next request
    @app.before_request
    def forget_cached_user():
        g.pop('_login_user', None)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


class Factory:
    """Small builders for rows the API tests need; every call commits."""

    def __init__(self):
        self._seq = 0

    def _next(self):
        self._seq += 1
        return self._seq

    def _save(self, obj):
        db.session.add(obj)
        db.session.commit()
        return obj

    def user(self, role='reviewer', **kw):
        n = self._next()
        kw.setdefault('email', f'user{n}@example.com')
        kw.setdefault('full_name', f'User {n}')
        kw.setdefault('api_token', f'token-{n}')
        return self._save(User(role=role, **kw))

    def program(self, owner=None, **kw):
        kw.setdefault('title', f'Program {self._next()}')
        return self._save(Program(created_by=owner.id if owner else None, **kw))

    def criterion(self, program, weight=0, max_score=10, min_score=0, **kw):
        n = self._next()
        kw.setdefault('name', f'Criterion {n}')
        kw.setdefault('sort_order', n)
        kw.setdefault('scoring_type', 'numeric')
        return self._save(ReviewCriterion(program_id=program.id, weight=weight, min_score=min_score,
                                          max_score=max_score, **kw))

    def application(self, program, **kw):
        kw.setdefault('applicant_name', f'Applicant {self._next()}')
        kw.setdefault('submitted_at', datetime(2026, 1, 5, 9, 0))
        return self._save(Application(program_id=program.id, **kw))

    def assignment(self, application, reviewer, **kw):
        kw.setdefault('status', 'not_started')
        return self._save(ReviewAssignment(application_id=application.id, reviewer_id=reviewer.id, **kw))

    def review(self, assignment, overall_score=None, **kw):
        return self._save(Review(assignment_id=assignment.id, overall_score=overall_score, **kw))


@pytest.fixture
def make(app):
    return Factory()


def auth(user):
    return {'Authorization': f'Bearer {user.api_token}'}
