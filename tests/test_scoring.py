import os
import sys
from types import SimpleNamespace

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from reviewdesk.services.scoring import (
    compute_overall_score, to_legacy_scale, js_round, normalize_raw_score,
    weighted_score, rubric_level_score, has_any_score, scores_by_criteria,
)


def crit(id, weight, max_score=10, min_score=0, **kw):
    return SimpleNamespace(id=id, weight=weight, max_score=max_score, min_score=min_score, **kw)


def score(criteria_id, raw, is_na=False):
    return SimpleNamespace(criteria_id=criteria_id, raw_score=raw, is_na=is_na)


def test_weighted_aggregate():
    criteria = [crit(1, 40), crit(2, 60)]
    scores = scores_by_criteria([score(1, 8), score(2, 6)])
    assert compute_overall_score(criteria, scores) == pytest.approx(68.0)


def test_partial_scoring_uses_scored_weights_only():
    criteria = [crit(1, 40), crit(2, 60)]
    scores = scores_by_criteria([score(1, 10)])
    assert compute_overall_score(criteria, scores) == pytest.approx(100.0)


def test_na_and_unscored_are_skipped():
    criteria = [crit(1, 50), crit(2, 50)]
    scores = scores_by_criteria([score(1, 5), score(2, 9, is_na=True)])
    assert compute_overall_score(criteria, scores) == pytest.approx(50.0)


def test_zero_weights_give_zero():
    criteria = [crit(1, 0), crit(2, 0)]
    scores = scores_by_criteria([score(1, 10), score(2, 10)])
    assert compute_overall_score(criteria, scores) == 0.0


def test_criterion_without_max_is_skipped():
    criteria = [crit(1, 50, max_score=0), crit(2, 50)]
    scores = scores_by_criteria([score(1, 3), score(2, 5)])
    assert compute_overall_score(criteria, scores) == pytest.approx(50.0)


def test_nothing_scored():
    assert compute_overall_score([crit(1, 100)], {}) == 0.0
    assert not has_any_score([score(1, None), score(2, 4, is_na=True)])
    assert has_any_score([score(1, 0)])


@pytest.mark.parametrize("percentage,expected", [
    (0, 1), (100, 5), (50, 3), (12.5, 2), (62.5, 4), (82, 4), (-50, 1), (140, 5),
])
def test_legacy_scale(percentage, expected):
    assert to_legacy_scale(percentage) == expected


def test_js_round_half_up():
    assert js_round(2.5) == 3
    assert js_round(2.4999) == 2
    assert js_round(-0.5) == 0


def test_normalize_and_weight():
    c = crit(1, 40, min_score=1, max_score=5)
    assert normalize_raw_score(3, c) == pytest.approx(50.0)
    assert normalize_raw_score(None, c) is None
    assert normalize_raw_score(3, crit(2, 40, min_score=5, max_score=5)) is None
    assert weighted_score(50.0, 40) == pytest.approx(20.0)
    assert weighted_score(None, 40) is None


def test_rubric_levels_spread_over_range():
    c = crit(1, 25, min_score=0, max_score=10, rubric_levels=['poor', 'fair', 'good', 'excellent'])
    assert [rubric_level_score(c, lvl) for lvl in c.rubric_levels] == [0, 3, 7, 10]
    single = crit(2, 25, min_score=0, max_score=4, rubric_levels=['pass'])
    assert rubric_level_score(single, 'pass') == 4
