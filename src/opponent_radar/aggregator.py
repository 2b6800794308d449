"""Metric aggregation from fetched profile, stats and archived games.

Pure functions only: the fetched payloads are handed in, nothing here
touches the network.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping

from opponent_radar.config import (
    DEFAULT_POOL,
    DEFAULT_RATING,
    POOLS,
    RECENT_WINDOW_DAYS,
    SECONDS_PER_DAY,
    RiskConfig,
)
from opponent_radar.models import ArchivedGame, Metrics, PlayerProfile, PoolEntry

_DRAW_RESULTS = frozenset({
    "agreed",
    "stalemate",
    "repetition",
    "insufficient",
    "timevsinsufficient",
    "50move",
    "draw",
})
_LOSS_RESULTS = frozenset({"checkmated", "timeout", "resigned", "abandoned", "lose"})


def classify_result(result: str | None) -> str:
    """Map a chess.com result code to win / draw / loss / other."""
    if not result:
        return "other"
    if result == "win":
        return "win"
    if result in _DRAW_RESULTS:
        return "draw"
    if result in _LOSS_RESULTS:
        return "loss"
    return "other"


def choose_primary_pool(
    pool_stats: Mapping[str, PoolEntry],
    preferred_pool: str | None = None,
) -> tuple[str | None, int]:
    """Return ``(pool, rating)`` used as the player's primary rating.

    The preferred pool wins when it has a rating.  Otherwise the highest
    rating above the default across :data:`POOLS`; ``(None, 1200)`` when
    nothing beats the default.
    """
    if preferred_pool:
        entry = pool_stats.get(preferred_pool)
        if entry is not None and entry.rating:
            return preferred_pool, entry.rating

    best_pool: str | None = None
    best_rating = DEFAULT_RATING
    for pool in POOLS:
        entry = pool_stats.get(pool)
        rating = entry.rating if entry is not None else None
        if rating and rating > best_rating:
            best_pool, best_rating = pool, rating
    return best_pool, best_rating


def accuracy_threshold(rating: float, config: RiskConfig) -> float:
    """Accuracy a game must reach to count as high-accuracy at *rating*."""
    if rating < config.LOW_RATING_CUTOFF:
        return config.LOW_RATING_ACCURACY_THRESHOLD
    return config.HIGH_RATING_ACCURACY_THRESHOLD


def _overall(pool_stats: Mapping[str, PoolEntry], pool: str) -> tuple[int, float]:
    entry = pool_stats.get(pool)
    record = entry.record if entry is not None else None
    if record is None or record.total == 0:
        return 0, 0.0
    return record.total, record.win / record.total * 100


def aggregate(
    profile: PlayerProfile | None,
    pool_stats: Mapping[str, PoolEntry],
    preferred_pool: str | None,
    games: Iterable[ArchivedGame],
    identity: str,
    now: float,
    config: RiskConfig,
) -> Metrics:
    """Derive the risk-model inputs for *identity* as of *now* (epoch seconds)."""
    account_age_days: int | None = None
    if profile is not None and profile.joined:
        account_age_days = max(0, math.floor((now - profile.joined) / SECONDS_PER_DAY))

    pool, rating = choose_primary_pool(pool_stats, preferred_pool)
    overall_games, overall_winrate = _overall(pool_stats, pool or preferred_pool or DEFAULT_POOL)

    since = now - RECENT_WINDOW_DAYS * SECONDS_PER_DAY
    outcomes = {"win": 0, "draw": 0, "loss": 0, "other": 0}
    accuracies: list[float] = []
    for game in games:
        played = game.perspective(identity)
        if played is None:
            continue
        if played.end_time >= since:
            outcomes[classify_result(played.result)] += 1
        if played.accuracy is not None and not math.isnan(played.accuracy):
            accuracies.append(played.accuracy)

    recent_games = sum(outcomes.values())
    recent_winrate = outcomes["win"] / recent_games * 100 if recent_games else 0.0

    threshold = accuracy_threshold(rating, config)
    high_acc_games = len(accuracies)
    high_count = sum(1 for a in accuracies if a >= threshold)
    high_acc_pct = high_count / high_acc_games * 100 if high_acc_games else 0.0

    return Metrics(
        account_age_days=account_age_days,
        primary_pool=pool,
        rating=rating,
        overall_games=overall_games,
        overall_winrate=overall_winrate,
        recent_games=recent_games,
        recent_wins=outcomes["win"],
        recent_draws=outcomes["draw"],
        recent_losses=outcomes["loss"],
        recent_winrate=recent_winrate,
        high_acc_games=high_acc_games,
        high_acc_pct=high_acc_pct,
        accuracy_threshold=threshold,
    )
