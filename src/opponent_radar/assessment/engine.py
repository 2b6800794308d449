"""Risk model: sums the points of all rules into a bounded score."""
from __future__ import annotations

from datetime import datetime, timezone

from opponent_radar.aggregator import accuracy_threshold
from opponent_radar.assessment.base import BaseRule, RuleResult
from opponent_radar.assessment.rules import (
    AccountAgeRule,
    AccuracyRule,
    OverallWinRateRule,
    RecentWinRateRule,
)
from opponent_radar.config import RiskConfig
from opponent_radar.models import Metrics, RiskAssessment

ALL_RULES: list[BaseRule] = [
    AccountAgeRule(),
    OverallWinRateRule(),
    RecentWinRateRule(),
    AccuracyRule(),
]

MIN_SCORE = 0
MAX_SCORE = 100


def _clamp(value: float) -> int:
    return round(max(MIN_SCORE, min(MAX_SCORE, value)))


class RiskModel:
    """Runs every rule and aggregates the fired ones.

    Rules are independent: their points are added, never multiplied, and
    the reasons keep rule order.
    """

    def __init__(self, rules: list[BaseRule] | None = None):
        self.rules = rules or ALL_RULES

    def evaluate(self, metrics: Metrics, config: RiskConfig) -> list[RuleResult]:
        return [rule.evaluate(metrics, config) for rule in self.rules]

    def score(
        self,
        metrics: Metrics,
        config: RiskConfig,
        identity: str | None = None,
        now: datetime | None = None,
    ) -> RiskAssessment:
        fired = [r for r in self.evaluate(metrics, config) if r.fired]
        return RiskAssessment(
            identity=identity,
            score=_clamp(sum(r.points for r in fired)),
            reasons=tuple(r.reason for r in fired if r.reason),
            accuracy_threshold_used=accuracy_threshold(metrics.rating, config),
            computed_at=now or datetime.now(timezone.utc),
            metrics=metrics,
        )


_DEFAULT_MODEL = RiskModel()


def score(
    metrics: Metrics,
    config: RiskConfig | None = None,
    identity: str | None = None,
    now: datetime | None = None,
) -> RiskAssessment:
    """Score *metrics* with the default rule set."""
    return _DEFAULT_MODEL.score(metrics, config or RiskConfig(), identity=identity, now=now)
