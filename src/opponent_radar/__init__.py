"""Opponent Risk Radar: opponent resolution and explainable risk scoring."""

from opponent_radar.aggregator import aggregate, classify_result
from opponent_radar.assessment.engine import RiskModel, score
from opponent_radar.cache import ResultCache
from opponent_radar.chesscom_client import (
    ChessComAPIError,
    ChessComClient,
    ChessComNotFoundError,
    ChessComRateLimitError,
)
from opponent_radar.config import RadarSettings, RiskConfig
from opponent_radar.identity import normalize, normalize_all
from opponent_radar.models import Metrics, RiskAssessment
from opponent_radar.pipeline import (
    NoUsableDataError,
    OpponentRadar,
    PageObservation,
    ScanOutcome,
)
from opponent_radar.resolver import infer_self, resolve, resolve_sources
from opponent_radar.session import SessionContext

__version__ = "0.1.0"

__all__ = [
    "aggregate",
    "classify_result",
    "RiskModel",
    "score",
    "ResultCache",
    "ChessComAPIError",
    "ChessComClient",
    "ChessComNotFoundError",
    "ChessComRateLimitError",
    "RadarSettings",
    "RiskConfig",
    "normalize",
    "normalize_all",
    "Metrics",
    "RiskAssessment",
    "NoUsableDataError",
    "OpponentRadar",
    "PageObservation",
    "ScanOutcome",
    "infer_self",
    "resolve",
    "resolve_sources",
    "SessionContext",
]
