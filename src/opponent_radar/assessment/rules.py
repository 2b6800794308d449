"""The four scoring dimensions.

Each rule fires at most one of its tiers.  Win-rate and accuracy rules are
gated by a minimum sample size; below the gate they contribute nothing no
matter how extreme the rate is.
"""
from __future__ import annotations

from opponent_radar.aggregator import accuracy_threshold
from opponent_radar.assessment.base import BaseRule, RuleResult
from opponent_radar.config import RiskConfig
from opponent_radar.models import Metrics


def _pct(value: float) -> str:
    return f"{value:g}%"


class AccountAgeRule(BaseRule):
    name = "Account Age"
    description = "Young account combined with a high rating"

    # (max age in days, min rating, points, reason)
    TIERS = (
        (30, 1600, 22, "very new account + high rating"),
        (90, 1500, 14, "new account + elevated rating"),
        (180, 1700, 8, "young account + high rating"),
    )

    def evaluate(self, metrics: Metrics, config: RiskConfig) -> RuleResult:
        if metrics.account_age_days is None:
            return self._none()
        for max_age, min_rating, points, reason in self.TIERS:
            if metrics.account_age_days < max_age and metrics.rating >= min_rating:
                return self._fire(points, reason)
        return self._none()


class OverallWinRateRule(BaseRule):
    name = "Overall Win Rate"
    description = "Lifetime win rate in the primary pool"

    def evaluate(self, metrics: Metrics, config: RiskConfig) -> RuleResult:
        if metrics.overall_games < config.MIN_GAMES_FOR_OVERALL:
            return self._none()
        if metrics.overall_winrate >= config.HIGH_WINRATE:
            return self._fire(28, f"overall winrate > {_pct(config.HIGH_WINRATE)}")
        if metrics.overall_winrate >= config.SUSPICIOUS_WINRATE:
            return self._fire(12, f"overall winrate > {_pct(config.SUSPICIOUS_WINRATE)}")
        return self._none()


class RecentWinRateRule(BaseRule):
    name = "Recent Win Rate"
    description = "Win rate over the last 30 days"

    MARGIN = 5

    def evaluate(self, metrics: Metrics, config: RiskConfig) -> RuleResult:
        if metrics.recent_games < config.MIN_GAMES_FOR_RECENT:
            return self._none()
        if metrics.recent_winrate >= config.HIGH_WINRATE + self.MARGIN:
            return self._fire(24, "recent 30d winrate very high")
        if metrics.recent_winrate >= config.SUSPICIOUS_WINRATE + self.MARGIN:
            return self._fire(10, "recent 30d winrate elevated")
        return self._none()


class AccuracyRule(BaseRule):
    name = "High Accuracy Share"
    description = "Share of analysed games above the rating-tiered accuracy threshold"

    def evaluate(self, metrics: Metrics, config: RiskConfig) -> RuleResult:
        if metrics.high_acc_games < config.MIN_GAMES_FOR_ACCURACY:
            return self._none()
        threshold = _pct(accuracy_threshold(metrics.rating, config))
        if metrics.high_acc_pct >= config.HIGH_ACC_SEVERE_PCT:
            return self._fire(22, f"many games above {threshold} accuracy")
        if metrics.high_acc_pct >= config.HIGH_ACC_NOTABLE_PCT:
            return self._fire(10, f"notable share above {threshold} accuracy")
        return self._none()
