"""Base class and result dataclass for risk rules."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from opponent_radar.config import RiskConfig
from opponent_radar.models import Metrics


@dataclass
class RuleResult:
    """Points contributed by a single rule."""

    name: str
    points: int
    reason: str | None = None

    def __post_init__(self):
        self.points = max(0, self.points)

    @property
    def fired(self) -> bool:
        return self.points > 0


class BaseRule(ABC):
    """Abstract base for all risk rules.

    A rule looks at one dimension of the metrics and either fires with a
    fixed number of points and a reason, or contributes nothing.
    """

    name: str = ""
    description: str = ""

    @abstractmethod
    def evaluate(self, metrics: Metrics, config: RiskConfig) -> RuleResult:
        ...

    def _none(self) -> RuleResult:
        return RuleResult(name=self.name, points=0)

    def _fire(self, points: int, reason: str) -> RuleResult:
        return RuleResult(name=self.name, points=points, reason=reason)
