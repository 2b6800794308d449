from opponent_radar.assessment.base import BaseRule, RuleResult
from opponent_radar.assessment.engine import ALL_RULES, RiskModel, score

__all__ = ["BaseRule", "RuleResult", "ALL_RULES", "RiskModel", "score"]
