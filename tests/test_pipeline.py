"""End-to-end tests for the resolve-then-score pipeline with a fake client."""

from __future__ import annotations

import asyncio

from opponent_radar.cache import ResultCache
from opponent_radar.chesscom_client import ChessComAPIError, ChessComNotFoundError
from opponent_radar.config import RadarSettings
from opponent_radar.models import ArchivedGame, PlayerProfile, parse_pool_stats
from opponent_radar.pipeline import (
    ASSESSED,
    ERROR,
    SELF,
    STALE,
    UNRESOLVED,
    OpponentRadar,
    PageObservation,
)
from opponent_radar.session import SessionContext
from tests.conftest import DAY, NOW, make_game, stats_payload


class FakeClient:
    """Stands in for ChessComClient; records every call."""

    def __init__(self, fail: tuple[str, ...] = (), gate: asyncio.Event | None = None) -> None:
        self.fail = set(fail)
        self.gate = gate
        self.calls: list[tuple[str, str]] = []
        self.closed = False
        self.profile = PlayerProfile(joined=int(NOW - 10 * DAY))
        self.stats = stats_payload(chess_blitz=(1800, 80, 15, 5), chess_bullet=(1300, 10, 10, 0))
        self.games = [make_game(days_ago=1) for _ in range(25)]

    def _maybe_fail(self, resource: str) -> None:
        if "all" in self.fail or resource in self.fail:
            raise ChessComAPIError(status_code=503, detail=f"{resource} down")

    async def fetch_profile(self, username: str) -> PlayerProfile:
        self.calls.append(("profile", username))
        if self.gate is not None:
            await self.gate.wait()
        self._maybe_fail("profile")
        return self.profile

    async def fetch_stats(self, username: str):
        self.calls.append(("stats", username))
        self._maybe_fail("stats")
        return parse_pool_stats(self.stats)

    async def fetch_recent_games(self, username: str, months: int = 2):
        self.calls.append(("games", username))
        self._maybe_fail("games")
        return [ArchivedGame.model_validate(g) for g in self.games]

    async def close(self) -> None:
        self.closed = True

    def count(self, resource: str) -> int:
        return sum(1 for r, _ in self.calls if r == resource)


def _radar(client: FakeClient, clock, session: SessionContext | None = None) -> OpponentRadar:
    return OpponentRadar(client, cache=ResultCache(timer=clock), session=session, clock=clock)


def _page(*sources: list[str], **kwargs) -> PageObservation:
    return PageObservation(sources=list(sources), **kwargs)


# ---------------------------------------------------------------------------
# compute / assess
# ---------------------------------------------------------------------------


class TestAssess:
    async def test_full_data_scores_every_dimension(self, clock):
        radar = _radar(FakeClient(), clock)
        assessment = await radar.assess("Suspect")

        assert assessment.ok
        assert assessment.identity == "suspect"
        # very new + high rating (22), overall > 70% (28), recent very high (24)
        assert assessment.score == 74
        assert assessment.reasons == (
            "very new account + high rating",
            "overall winrate > 70%",
            "recent 30d winrate very high",
        )
        assert assessment.accuracy_threshold_used == 90
        assert assessment.computed_at.timestamp() == NOW

    async def test_preferred_pool_drives_rating(self, clock):
        radar = _radar(FakeClient(), clock)
        assessment = await radar.assess("suspect", preferred_pool="chess_bullet")
        assert assessment.metrics.primary_pool == "chess_bullet"
        assert assessment.metrics.rating == 1300
        assert assessment.accuracy_threshold_used == 80

    async def test_missing_profile_degrades(self, clock):
        radar = _radar(FakeClient(fail=("profile",)), clock)
        assessment = await radar.assess("suspect")
        assert assessment.ok
        assert assessment.metrics.account_age_days is None
        assert "very new account + high rating" not in assessment.reasons

    async def test_missing_games_degrades(self, clock):
        radar = _radar(FakeClient(fail=("games",)), clock)
        assessment = await radar.assess("suspect")
        assert assessment.ok
        assert assessment.metrics.recent_games == 0
        assert assessment.score == 50

    async def test_no_usable_data(self, clock):
        radar = _radar(FakeClient(fail=("all",)), clock)
        assessment = await radar.assess("suspect")
        assert not assessment.ok
        assert assessment.score is None
        assert assessment.error == "no data available for @suspect"

    async def test_unexpected_error_becomes_failure(self, clock):
        client = FakeClient()

        async def broken(username: str) -> PlayerProfile:
            raise RuntimeError("boom")

        client.fetch_profile = broken
        assessment = await _radar(client, clock).assess("suspect")
        assert assessment.score is None
        assert assessment.error == "could not analyze @suspect yet"

    async def test_invalid_identity(self, clock):
        client = FakeClient()
        assessment = await _radar(client, clock).assess("guest")
        assert assessment.identity is None
        assert not assessment.ok
        assert client.calls == []

    async def test_cached_within_ttl(self, clock):
        client = FakeClient()
        radar = _radar(client, clock)
        first = await radar.assess("suspect")
        clock.advance(120)
        second = await radar.assess("@SUSPECT")
        assert second is first
        assert client.count("profile") == 1

    async def test_refetch_after_ttl(self, clock):
        client = FakeClient()
        radar = _radar(client, clock)
        await radar.assess("suspect")
        clock.advance(301)
        await radar.assess("suspect")
        assert client.count("profile") == 2

    async def test_failures_are_not_cached(self, clock):
        client = FakeClient(fail=("all",))
        radar = _radar(client, clock)
        assert not (await radar.assess("suspect")).ok

        client.fail.clear()
        assert (await radar.assess("suspect")).ok

    async def test_force_refreshes(self, clock):
        client = FakeClient()
        radar = _radar(client, clock)
        await radar.assess("suspect")
        await radar.assess("suspect", force=True)
        assert client.count("profile") == 2

    async def test_not_found_is_a_fetch_failure(self, clock):
        client = FakeClient()

        async def missing(username: str) -> PlayerProfile:
            raise ChessComNotFoundError()

        client.fetch_profile = missing
        assessment = await _radar(client, clock).assess("suspect")
        assert assessment.ok
        assert assessment.metrics.account_age_days is None


# ---------------------------------------------------------------------------
# scan
# ---------------------------------------------------------------------------


class TestScan:
    async def test_ambiguous_is_unresolved(self, clock):
        client = FakeClient()
        outcome = await _radar(client, clock).scan(_page(["alpha", "beta"]))
        assert outcome.status == UNRESOLVED
        assert outcome.message == "cannot determine opponent yet"
        assert not outcome.renderable
        assert client.calls == []

    async def test_self_hint_resolves(self, clock):
        radar = _radar(FakeClient(), clock)
        outcome = await radar.scan(_page(["Me_Here", "Suspect"], self_hint="@me_here"))
        assert outcome.status == ASSESSED
        assert outcome.opponent == "suspect"
        assert outcome.renderable
        assert radar.session.sticky_opponent == "suspect"
        assert radar.session.current_target == "suspect"

    async def test_override_beats_hint(self, clock):
        radar = _radar(FakeClient(), clock, session=SessionContext(self_override="suspect"))
        outcome = await radar.scan(_page(["me_here", "suspect"], self_hint="me_here"))
        assert outcome.opponent == "me_here"

    async def test_sticky_breaks_ties(self, clock):
        radar = _radar(FakeClient(), clock, session=SessionContext(sticky_opponent="beta"))
        outcome = await radar.scan(_page(["alpha", "beta"]))
        assert outcome.opponent == "beta"

    async def test_sources_in_priority_order(self, clock):
        radar = _radar(FakeClient(), clock)
        outcome = await radar.scan(_page(["alpha", "beta"], ["player", "suspect"]))
        assert outcome.opponent == "suspect"

    async def test_profile_links_infer_self(self, clock):
        radar = _radar(FakeClient(), clock)
        outcome = await radar.scan(_page(["me_here", "suspect"], profile_linked=["/me_here", "me_here"]))
        assert outcome.opponent == "suspect"
        assert radar.session.inferred_self == "me_here"

    async def test_only_own_account_on_board_is_unresolved(self, clock):
        client = FakeClient()
        radar = _radar(client, clock)
        outcome = await radar.scan(_page(["me_here"], profile_linked=["me_here"]))
        assert outcome.status == UNRESOLVED
        assert radar.session.inferred_self == "me_here"
        assert client.calls == []

    async def test_own_profile_page_detected_from_links(self, clock):
        client = FakeClient()
        radar = _radar(client, clock)
        outcome = await radar.scan(_page(["me_here"], profile_linked=["me_here"], path="/member/me_here"))
        assert outcome.status == SELF
        assert client.calls == []

    async def test_path_fallback(self, clock):
        radar = _radar(FakeClient(), clock)
        outcome = await radar.scan(_page(path="/member/Suspect"))
        assert outcome.status == ASSESSED
        assert outcome.opponent == "suspect"

    async def test_own_profile_is_self(self, clock):
        client = FakeClient()
        radar = _radar(client, clock, session=SessionContext(self_override="me_here"))
        outcome = await radar.scan(_page(path="/member/me_here"))
        assert outcome.status == SELF
        assert outcome.message == "detected your own username (@me_here)"
        assert client.calls == []

    async def test_page_text_sets_pool(self, clock):
        radar = _radar(FakeClient(), clock)
        outcome = await radar.scan(_page(["suspect"], page_text="Bullet 1+0 Rated"))
        assert outcome.assessment.metrics.primary_pool == "chess_bullet"

    async def test_error_outcome_carries_assessment(self, clock):
        radar = _radar(FakeClient(fail=("all",)), clock)
        outcome = await radar.scan(_page(["suspect"]))
        assert outcome.status == ERROR
        assert outcome.assessment.score is None
        assert outcome.message == "no data available for @suspect"

    async def test_result_for_departed_opponent_is_discarded(self, clock):
        gate = asyncio.Event()
        radar = _radar(FakeClient(gate=gate), clock)

        task = asyncio.create_task(radar.scan(_page(["suspect"])))
        await asyncio.sleep(0)
        radar.session.begin("next_one")
        gate.set()
        outcome = await task

        assert outcome.status == STALE
        assert outcome.assessment is None
        # the computed result is still cached for later
        assert radar.cache.get("suspect") is not None

    async def test_switching_back_discards_the_first_run(self, clock):
        gate = asyncio.Event()
        client = FakeClient(gate=gate)
        radar = _radar(client, clock)

        first = asyncio.create_task(radar.scan(_page(["suspect"])))
        await asyncio.sleep(0)
        other = asyncio.create_task(radar.scan(_page(["other_one"])))
        await asyncio.sleep(0)
        again = asyncio.create_task(radar.scan(_page(["suspect"])))
        await asyncio.sleep(0)
        gate.set()
        outcomes = await asyncio.gather(first, other, again)

        assert [o.status for o in outcomes] == [STALE, STALE, ASSESSED]
        assert outcomes[2].opponent == "suspect"
        assert client.count("profile") == 2

    async def test_cancelled_scan_does_not_break_shared_assessment(self, clock):
        gate = asyncio.Event()
        client = FakeClient(gate=gate)
        radar = _radar(client, clock)

        leader = asyncio.create_task(radar.assess("suspect"))
        await asyncio.sleep(0)
        joiner = asyncio.create_task(radar.assess("suspect"))
        await asyncio.sleep(0)
        leader.cancel()
        await asyncio.sleep(0)
        gate.set()

        assessment = await joiner
        assert assessment.ok
        assert assessment.score == 74
        assert leader.cancelled()
        assert client.count("profile") == 1

    async def test_scan_never_raises(self, clock):
        radar = _radar(FakeClient(), clock)
        radar.session = None  # type: ignore[assignment]
        outcome = await radar.scan(_page(["suspect"]))
        assert outcome.status == ERROR
        assert outcome.message == "scan failed"


# ---------------------------------------------------------------------------
# manual analysis and lifecycle
# ---------------------------------------------------------------------------


class TestManual:
    async def test_manual_forces_refresh(self, clock):
        client = FakeClient()
        radar = _radar(client, clock)
        await radar.analyze_manual("suspect")
        outcome = await radar.analyze_manual("suspect")
        assert outcome.status == ASSESSED
        assert client.count("profile") == 2

    async def test_manual_invalid(self, clock):
        outcome = await _radar(FakeClient(), clock).analyze_manual("no")
        assert outcome.status == ERROR
        assert outcome.message == "not a valid username: 'no'"

    async def test_manual_self(self, clock):
        radar = _radar(FakeClient(), clock, session=SessionContext(self_override="me_here"))
        outcome = await radar.analyze_manual("@Me_Here")
        assert outcome.status == SELF


class TestLifecycle:
    async def test_context_manager_closes_client(self, clock):
        client = FakeClient()
        async with _radar(client, clock):
            pass
        assert client.closed

    async def test_from_settings(self, tmp_path):
        path = tmp_path / "session.json"
        SessionContext(self_override="me_here").save(path)
        settings = RadarSettings(SESSION_FILE=str(path), CACHE_TTL_SECONDS=60, ARCHIVE_MONTHS=1)

        async with OpponentRadar.from_settings(settings) as radar:
            assert radar.session.self_override == "me_here"
            assert radar.cache.ttl == 60
            assert radar.archive_months == 1
