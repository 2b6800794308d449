import pytest
from opponent_radar.assessment.base import BaseRule, RuleResult


def test_rule_result_creation():
    r = RuleResult(name="Test", points=22, reason="very new account + high rating")
    assert r.points == 22
    assert r.fired is True


def test_rule_result_points_never_negative():
    r = RuleResult(name="T", points=-10)
    assert r.points == 0
    assert r.fired is False


def test_base_rule_cannot_instantiate():
    with pytest.raises(TypeError):
        BaseRule()
