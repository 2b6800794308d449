"""Shared pytest fixtures and builders for the radar test suite."""

from __future__ import annotations

import os
from typing import Any

import pytest

from opponent_radar.config import RiskConfig
from opponent_radar.models import ArchivedGame, Metrics

# 2026-10-19T00:00:00Z
NOW = 1_792_368_000.0
DAY = 86_400


def make_metrics(**overrides: Any) -> Metrics:
    """Metrics that fire no rule unless overridden."""
    defaults: dict[str, Any] = dict(
        account_age_days=1000,
        primary_pool="chess_blitz",
        rating=1400,
        overall_games=0,
        overall_winrate=0.0,
        recent_games=0,
        recent_winrate=0.0,
        high_acc_games=0,
        high_acc_pct=0.0,
        accuracy_threshold=80.0,
    )
    defaults.update(overrides)
    return Metrics(**defaults)


def make_game(
    me: str = "suspect",
    opponent: str = "someone",
    side: str = "white",
    result: str = "win",
    days_ago: float = 1,
    accuracy: Any = None,
    now: float = NOW,
) -> dict[str, Any]:
    """Raw archive entry for a game *me* played on *side*."""
    other = "black" if side == "white" else "white"
    other_result = "checkmated" if result == "win" else "win"
    game: dict[str, Any] = {
        "url": "https://www.chess.com/game/live/1",
        "end_time": int(now - days_ago * DAY),
        "time_class": "blitz",
        "rules": "chess",
        side: {"username": me, "rating": 1500, "result": result},
        other: {"username": opponent, "rating": 1500, "result": other_result},
    }
    if accuracy is not None:
        game["accuracies"] = {side: accuracy, other: 70.0}
    return game


def make_games(**kwargs: Any) -> list[ArchivedGame]:
    return [ArchivedGame.model_validate(make_game(**kwargs))]


def stats_payload(**pools: tuple[int, int, int, int]) -> dict[str, Any]:
    """Stats payload from ``pool=(rating, win, loss, draw)`` keywords."""
    payload: dict[str, Any] = {"fide": 0, "tactics": {"highest": {"rating": 2000}}}
    for pool, (rating, win, loss, draw) in pools.items():
        payload[pool] = {
            "last": {"rating": rating, "date": int(NOW), "rd": 50},
            "record": {"win": win, "loss": loss, "draw": draw},
        }
    return payload


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = NOW) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def config() -> RiskConfig:
    return RiskConfig()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep RADAR_* variables from the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.startswith("RADAR_"):
            monkeypatch.delenv(key)
