"""Pydantic models for chess.com API payloads and internal results.

Every consumed key of the public API is optional: payloads are loosely
typed, and a missing or malformed field means "no data" rather than an
error.  Field names follow the API's snake_case.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from opponent_radar.config import LEVEL_HIGH, LEVEL_MEDIUM, POOLS

logger = logging.getLogger(__name__)


def _to_float(value: Any) -> float | None:
    """Accept numbers and numeric strings; everything else is ``None``."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


# ---------------------------------------------------------------------------
# Profile: GET /pub/player/{username}
# ---------------------------------------------------------------------------

class PlayerProfile(BaseModel):
    """Subset of the player profile used for account age."""

    model_config = ConfigDict(extra="ignore")

    username: str | None = None
    joined: int | None = None
    last_online: int | None = None
    status: str | None = None


# ---------------------------------------------------------------------------
# Stats: GET /pub/player/{username}/stats
# ---------------------------------------------------------------------------

class PoolRating(BaseModel):
    model_config = ConfigDict(extra="ignore")

    rating: int | None = None
    date: int | None = None


class PoolRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    win: int = 0
    loss: int = 0
    draw: int = 0

    @field_validator("win", "loss", "draw", mode="before")
    @classmethod
    def _none_is_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @property
    def total(self) -> int:
        return self.win + self.loss + self.draw


class PoolEntry(BaseModel):
    """Rating and lifetime record for one pool (``chess_blitz`` etc.)."""

    model_config = ConfigDict(extra="ignore")

    last: PoolRating | None = None
    best: PoolRating | None = None
    record: PoolRecord | None = None

    @property
    def rating(self) -> int | None:
        return self.last.rating if self.last else None


def parse_pool_stats(payload: Any) -> dict[str, PoolEntry]:
    """Extract the known pools from a stats payload, skipping bad entries."""
    if not isinstance(payload, dict):
        return {}
    pools: dict[str, PoolEntry] = {}
    for pool in POOLS:
        raw = payload.get(pool)
        if not isinstance(raw, dict):
            continue
        try:
            pools[pool] = PoolEntry.model_validate(raw)
        except ValidationError:
            logger.debug("Dropping malformed stats entry pool=%s", pool)
    return pools


# ---------------------------------------------------------------------------
# Monthly archives: GET /pub/player/{username}/games/{yyyy}/{mm}
# ---------------------------------------------------------------------------

class GamePlayer(BaseModel):
    model_config = ConfigDict(extra="ignore")

    username: str | None = None
    rating: int | None = None
    result: str | None = None


class GameAccuracies(BaseModel):
    """Accuracy per side; the API sends numbers, older payloads strings."""

    model_config = ConfigDict(extra="ignore")

    white: float | None = None
    black: float | None = None

    @field_validator("white", "black", mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> float | None:
        return _to_float(value)


@dataclass(frozen=True)
class PlayerGame:
    """One archived game seen from a single player's side."""

    end_time: int
    side: str  # "white" | "black"
    result: str | None
    accuracy: float | None


class ArchivedGame(BaseModel):
    """A single entry of a monthly archive's ``games`` list."""

    model_config = ConfigDict(extra="ignore")

    url: str | None = None
    end_time: int | None = None
    time_class: str | None = None
    rules: str | None = None
    white: GamePlayer | None = None
    black: GamePlayer | None = None
    accuracies: GameAccuracies | None = None

    def perspective(self, identity: str) -> PlayerGame | None:
        """Project the game onto *identity*'s side, or ``None`` if they did not play."""
        for side in ("white", "black"):
            player: GamePlayer | None = getattr(self, side)
            if player and player.username and player.username.lower() == identity:
                accuracy = getattr(self.accuracies, side) if self.accuracies else None
                return PlayerGame(
                    end_time=self.end_time or 0,
                    side=side,
                    result=player.result,
                    accuracy=accuracy,
                )
        return None


def parse_games(payload: Any) -> list[ArchivedGame]:
    """Validate the ``games`` list of an archive payload, skipping bad rows."""
    if not isinstance(payload, dict):
        return []
    games: list[ArchivedGame] = []
    for raw in payload.get("games") or []:
        try:
            games.append(ArchivedGame.model_validate(raw))
        except ValidationError:
            logger.debug("Dropping malformed archived game")
    return games


# ---------------------------------------------------------------------------
# Derived metrics and assessment
# ---------------------------------------------------------------------------

class Metrics(BaseModel):
    """Aggregated inputs of the risk model for one identity."""

    account_age_days: int | None
    primary_pool: str | None
    rating: int
    overall_games: int
    overall_winrate: float
    recent_games: int
    recent_wins: int = 0
    recent_draws: int = 0
    recent_losses: int = 0
    recent_winrate: float
    high_acc_games: int
    high_acc_pct: float
    accuracy_threshold: float


class RiskAssessment(BaseModel):
    """Outbound result: bounded score plus the reasons behind it.

    ``score`` is ``None`` only for an error result, which keeps a failed
    assessment distinct from a legitimate zero.
    """

    model_config = ConfigDict(frozen=True)

    identity: str | None = None
    score: int | None = None
    reasons: tuple[str, ...] = ()
    accuracy_threshold_used: float | None = None
    computed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metrics: Metrics | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.score is not None

    @property
    def level(self) -> str | None:
        if self.score is None:
            return None
        if self.score >= LEVEL_HIGH:
            return "high"
        if self.score >= LEVEL_MEDIUM:
            return "medium"
        return "low"

    @classmethod
    def failure(cls, identity: str | None, message: str) -> RiskAssessment:
        return cls(identity=identity, error=message)
