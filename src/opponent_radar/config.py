"""Configuration for the Opponent Risk Radar.

Scoring thresholds and runtime settings are ``pydantic-settings`` models,
overridable via ``RADAR_*`` environment variables or a ``.env`` file.
Fixed constants (pool order, windows, retry schedule) live at module level.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic_settings import BaseSettings

# ---------------------------------------------------------------------------
# Fixed constants
# ---------------------------------------------------------------------------

# Fallback order for primary pool selection.
POOLS: tuple[str, ...] = ("chess_rapid", "chess_blitz", "chess_bullet", "chess_daily")
DEFAULT_POOL = "chess_rapid"
DEFAULT_RATING = 1200

RECENT_WINDOW_DAYS = 30
SECONDS_PER_DAY = 86_400

# Score bands for display
LEVEL_HIGH = 70
LEVEL_MEDIUM = 40

# ---------------------------------------------------------------------------
# chess.com API
# ---------------------------------------------------------------------------

API_BASE_URL = "https://api.chess.com/pub"
HTTP_TIMEOUT_SECONDS = 10.0
MAX_RETRIES = 3
BACKOFF_SCHEDULE = (1.0, 3.0, 8.0)  # seconds per retry attempt
USER_AGENT = "opponent-radar/0.1"

# ---------------------------------------------------------------------------
# Result cache
# ---------------------------------------------------------------------------

CACHE_TTL_SECONDS = 300  # 5 minutes
CACHE_MAXSIZE = 256

# Options-page keys -> RiskConfig field names
_OPTION_KEYS = {
    "suspiciousWinrate": "SUSPICIOUS_WINRATE",
    "highWinrate": "HIGH_WINRATE",
    "lowRatingAccuracyThreshold": "LOW_RATING_ACCURACY_THRESHOLD",
    "highRatingAccuracyThreshold": "HIGH_RATING_ACCURACY_THRESHOLD",
    "lowRatingCutoff": "LOW_RATING_CUTOFF",
    "minGamesForOverall": "MIN_GAMES_FOR_OVERALL",
    "minGamesForRecent": "MIN_GAMES_FOR_RECENT",
    "minGamesForAccuracy": "MIN_GAMES_FOR_ACCURACY",
    "highAccNotablePct": "HIGH_ACC_NOTABLE_PCT",
    "highAccSeverePct": "HIGH_ACC_SEVERE_PCT",
}


class RiskConfig(BaseSettings):
    """User-tunable scoring thresholds, overridable via RADAR_* env vars."""

    # --- Win rate (percent) ---
    SUSPICIOUS_WINRATE: float = 55
    HIGH_WINRATE: float = 70

    # --- Accuracy (percent), tiered by primary rating ---
    LOW_RATING_ACCURACY_THRESHOLD: float = 80
    HIGH_RATING_ACCURACY_THRESHOLD: float = 90
    LOW_RATING_CUTOFF: float = 1500

    # --- Minimum sample sizes ---
    MIN_GAMES_FOR_OVERALL: int = 50
    MIN_GAMES_FOR_RECENT: int = 20
    MIN_GAMES_FOR_ACCURACY: int = 8

    # --- High-accuracy share (percent of sampled games) ---
    HIGH_ACC_NOTABLE_PCT: float = 35
    HIGH_ACC_SEVERE_PCT: float = 60

    model_config = {
        "env_prefix": "RADAR_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None) -> RiskConfig:
        """Build a config from the options-page mapping (camelCase keys).

        Unknown keys and ``None`` values are ignored so that missing
        entries fall back to their defaults.
        """
        values = {
            _OPTION_KEYS[key]: value
            for key, value in (options or {}).items()
            if key in _OPTION_KEYS and value is not None
        }
        return cls(**values)

    def to_options(self) -> dict[str, float]:
        """Inverse of :meth:`from_options`."""
        return {key: getattr(self, field) for key, field in _OPTION_KEYS.items()}


class RadarSettings(BaseSettings):
    """Runtime settings for the client, cache and CLI."""

    API_BASE_URL: str = API_BASE_URL
    HTTP_TIMEOUT_SECONDS: float = HTTP_TIMEOUT_SECONDS
    CACHE_TTL_SECONDS: int = CACHE_TTL_SECONDS
    CACHE_MAXSIZE: int = CACHE_MAXSIZE
    ARCHIVE_MONTHS: int = 2
    SESSION_FILE: str = "~/.opponent_radar/session.json"
    LOG_FORMAT: str = "console"

    model_config = {
        "env_prefix": "RADAR_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }
