import pytest

from conftest import auth
from reviewdesk.extensions import db
from reviewdesk.models import Application, Review, ReviewAssignment, ReviewCriterion, ReviewScore


@pytest.fixture
def owner(make):
    return make.user(full_name='Program Owner')


@pytest.fixture
def program(make, owner):
    return make.program(owner=owner, title='Fellowship')


def test_criteria_lifecycle(client, owner, program):
    headers = auth(owner)
    url = f'/programs/{program.id}/review-criteria'

    res = client.post(url, json={"name": "Impact", "weight": 60, "max_score": 5, "min_score": 1}, headers=headers)
    assert res.status_code == 201
    impact = res.get_json()['data']
    assert impact['sort_order'] == 1
    assert res.get_json()['weight_total'] == 60

    res = client.post(url, json={"name": "Fit", "weight": 40}, headers=headers)
    fit = res.get_json()['data']
    assert fit['sort_order'] == 2
    assert res.get_json()['weight_total'] == 100

    res = client.patch(f"{url}/{fit['id']}", json={"weight": 30, "scoring_guide": "Mission alignment"}, headers=headers)
    assert res.status_code == 200
    assert res.get_json()['data']['weight'] == 30
    assert res.get_json()['weight_total'] == 90

    res = client.delete(f"{url}/{fit['id']}", headers=headers)
    assert res.status_code == 200
    assert res.get_json()['data']['is_active'] is False
    assert db.session.get(ReviewCriterion, fit['id']) is not None

    listed = client.get(url, headers=headers).get_json()
    assert [c['id'] for c in listed['data']] == [impact['id']]
    assert listed['weight_total'] == 60
    everything = client.get(f'{url}?include_inactive=1', headers=headers).get_json()
    assert [c['id'] for c in everything['data']] == [impact['id'], fit['id']]


@pytest.mark.parametrize("payload,field", [
    ({"name": "Range", "min_score": 5, "max_score": 5}, "min_score"),
    ({"name": "Rubric", "scoring_type": "categorical"}, "rubric_definition"),
    ({"name": "Kind", "scoring_type": "freeform"}, "scoring_type"),
    ({"name": "Heavy", "weight": 120}, "weight"),
    ({"weight": 10}, "name"),
])
def test_invalid_criteria(client, owner, program, payload, field):
    res = client.post(f'/programs/{program.id}/review-criteria', json=payload, headers=auth(owner))
    assert res.status_code == 400
    assert res.get_json()['field'] == field


def test_criteria_admin_guard(client, make, owner, program):
    reviewer = make.user()
    url = f'/programs/{program.id}/review-criteria'
    assert client.get(url, headers=auth(reviewer)).status_code == 200
    res = client.post(url, json={"name": "Sneaky"}, headers=auth(reviewer))
    assert res.status_code == 403
    assert res.get_json()['code'] == 'HTTP_403'
    assert client.post(url, json={"name": "Anon"}).status_code == 401
    assert client.post('/programs/9999/review-criteria', json={"name": "x"}, headers=auth(owner)).status_code == 404

    admin = make.user(role='admin')
    assert client.post(url, json={"name": "By admin"}, headers=auth(admin)).status_code == 201


def test_disabled_criteria_cannot_be_scored(client, make, owner, program):
    keep = make.criterion(program, weight=50)
    drop = make.criterion(program, weight=50)
    reviewer = make.user()
    assignment = make.assignment(make.application(program), reviewer)
    client.delete(f'/programs/{program.id}/review-criteria/{drop.id}', headers=auth(owner))

    res = client.post(f'/reviews/{assignment.id}/scores', json={"scores": [{"criteria_id": drop.id, "raw_score": 5}]},
                      headers=auth(reviewer))
    assert res.status_code == 400
    res = client.post(f'/reviews/{assignment.id}/scores', json={"scores": [{"criteria_id": keep.id, "raw_score": 5}]},
                      headers=auth(reviewer))
    assert res.get_json()['status'] == 'completed'


def test_assignments_are_idempotent(client, make, owner, program):
    reviewer = make.user()
    apps = [make.application(program), make.application(program)]
    payload = {"application_ids": [a.id for a in apps], "reviewer_id": reviewer.id,
               "deadline": "2026-12-01T17:00:00+02:00"}
    url = f'/programs/{program.id}/review-assignments'

    first = client.post(url, json=payload, headers=auth(owner))
    assert first.status_code == 201
    created = first.get_json()['assignments']
    assert [a['status'] for a in created] == ['not_started', 'not_started']
    assert created[0]['deadline'] == '2026-12-01T15:00:00'
    assert created[0]['assigned_by'] == owner.id

    again = client.post(url, json=payload, headers=auth(owner))
    assert [a['id'] for a in again.get_json()['assignments']] == [a['id'] for a in created]
    assert ReviewAssignment.query.count() == 2


def test_assignment_validation(client, make, owner, program):
    reviewer = make.user()
    foreign_app = make.application(make.program())
    url = f'/programs/{program.id}/review-assignments'

    res = client.post(url, json={"application_ids": [foreign_app.id], "reviewer_id": reviewer.id}, headers=auth(owner))
    assert res.status_code == 400
    assert res.get_json()['field'] == 'application_ids'

    mine = make.application(program)
    res = client.post(url, json={"application_ids": [mine.id], "reviewer_id": 9999}, headers=auth(owner))
    assert res.status_code == 400
    assert res.get_json()['field'] == 'reviewer_id'

    res = client.post(url, json={"application_ids": [], "reviewer_id": reviewer.id}, headers=auth(owner))
    assert res.status_code == 400


def test_review_stats_and_rankings(client, make, owner, program):
    c = make.criterion(program, weight=100)
    r1, r2 = make.user(full_name='Ada'), make.user(full_name='Bo')
    strong, weak, unseen = (make.application(program, applicant_name=n) for n in ('Strong', 'Weak', 'Unseen'))
    for application, reviewer, raw in ((strong, r1, 9), (strong, r2, 7), (weak, r1, 3)):
        a = make.assignment(application, reviewer)
        client.post(f'/reviews/{a.id}/scores', json={"scores": [{"criteria_id": c.id, "raw_score": raw}]},
                    headers=auth(reviewer))
    make.assignment(unseen, r2)

    res = client.get(f'/programs/{program.id}/review-stats', headers=auth(owner))
    assert res.status_code == 200
    data = res.get_json()['data']
    assert data['overview']['total_applications'] == 3
    assert data['overview']['applications_reviewed'] == 2
    assert data['overview']['reviews_completed'] == 3
    assert data['overview']['reviews_pending'] == 1
    assert data['overview']['total_reviewers'] == 2
    assert data['overview']['average_score'] == pytest.approx(55.0)

    ranks = [(r['applicant_name'], r['average_score'], r['review_count'], r['rank']) for r in data['rankings']]
    assert ranks == [('Strong', 80.0, 2, 1), ('Weak', 30.0, 1, 2), ('Unseen', None, 0, 3)]

    workload = {w['reviewer']['full_name']: w for w in data['reviewerWorkload']}
    assert workload['Ada']['completed'] == 2
    assert workload['Bo']['total_assigned'] == 2
    assert workload['Bo']['not_started'] == 1


def test_recompute_runs_inline_without_redis(client, make, owner, program):
    c = make.criterion(program, weight=100)
    reviewer = make.user()
    application = make.application(program)
    a = make.assignment(application, reviewer)
    client.post(f'/reviews/{a.id}/scores', json={"scores": [{"criteria_id": c.id, "raw_score": 6}]},
                headers=auth(reviewer))

    stale = db.session.get(Application, application.id)
    stale.score_avg = None
    db.session.get(ReviewAssignment, a.id).status = 'not_started'
    db.session.commit()

    res = client.post(f'/programs/{program.id}/recompute', headers=auth(owner))
    assert res.status_code == 200
    assert res.get_json()['data'] == {"applications": 1, "statuses_changed": 1, "applications_scored": 1}
    assert db.session.get(Application, application.id).score_avg == pytest.approx(60.0)
    assert db.session.get(ReviewAssignment, a.id).status == 'completed'


def test_list_program_assignments(client, make, owner, program):
    ada, bo = make.user(full_name='Ada'), make.user(full_name='Bo')
    first, second = make.application(program, applicant_name='First'), make.application(program)
    a1 = make.assignment(first, ada)
    a2 = make.assignment(first, bo)
    a3 = make.assignment(second, bo)
    make.assignment(make.application(make.program()), ada)
    make.review(a1, overall_score=7)

    body = client.get(f'/programs/{program.id}/review-assignments', headers=auth(owner)).get_json()
    assert [a['id'] for a in body['assignments']] == [a1.id, a2.id, a3.id]
    row = body['assignments'][0]
    assert row['application']['applicant_name'] == 'First'
    assert row['reviewer'] == {"id": ada.id, "full_name": 'Ada', "email": ada.email}
    assert row['review'] == {"overall_score": 7}
    assert body['assignments'][1]['review'] is None
    assigned = {app['id']: app['assigned_reviewers'] for app in body['applications']}
    assert assigned == {first.id: [ada.id, bo.id], second.id: [bo.id]}

    # reviewers only see their own assignments and no application list
    body = client.get(f'/programs/{program.id}/review-assignments', headers=auth(bo)).get_json()
    assert [a['id'] for a in body['assignments']] == [a2.id, a3.id]
    assert body['applications'] == []

    assert client.get('/programs/9999/review-assignments', headers=auth(owner)).status_code == 404


def test_remove_assignment(client, make, owner, program):
    c = make.criterion(program, weight=100)
    reviewer, other = make.user(), make.user()
    application = make.application(program)
    gone = make.assignment(application, reviewer)
    kept = make.assignment(application, other)
    for a, user, raw in ((gone, reviewer, 2), (kept, other, 8)):
        client.post(f'/reviews/{a.id}/scores', json={"scores": [{"criteria_id": c.id, "raw_score": raw}]},
                    headers=auth(user))
    assert db.session.get(Application, application.id).score_avg == pytest.approx(50.0)
    gone_id = gone.id

    url = f'/programs/{program.id}/review-assignments/{gone_id}'
    assert client.delete(url, headers=auth(other)).status_code == 403
    res = client.delete(url, headers=auth(owner))
    assert res.status_code == 200
    assert res.get_json() == {"message": "Assignment removed successfully"}

    db.session.expire_all()
    assert db.session.get(ReviewAssignment, gone_id) is None
    assert Review.query.filter_by(assignment_id=gone_id).count() == 0
    assert ReviewScore.query.count() == 1
    assert db.session.get(Application, application.id).score_avg == pytest.approx(80.0)

    assert client.delete(url, headers=auth(owner)).status_code == 404
    foreign = make.assignment(make.application(make.program()), reviewer)
    res = client.delete(f'/programs/{program.id}/review-assignments/{foreign.id}', headers=auth(owner))
    assert res.status_code == 404
