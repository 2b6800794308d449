"""Resolve-then-score pipeline.

The page collaborator hands in a :class:`PageObservation` on every scan
(periodic tick or page change).  The pipeline resolves the opponent,
serves the assessment from the result cache or computes it from freshly
fetched data, and hands back a :class:`ScanOutcome`.

Nothing in here raises into the caller: every failure becomes an error
outcome or an error :class:`RiskAssessment`.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog
from pydantic import ValidationError

from opponent_radar.aggregator import aggregate
from opponent_radar.assessment.engine import RiskModel
from opponent_radar.cache import ResultCache
from opponent_radar.chesscom_client import ChessComAPIError, ChessComClient
from opponent_radar.config import RadarSettings, RiskConfig
from opponent_radar.identity import identity_from_path, normalize, normalize_all
from opponent_radar.models import ArchivedGame, PlayerProfile, PoolEntry, RiskAssessment
from opponent_radar.pools import infer_pool
from opponent_radar.resolver import resolve_sources
from opponent_radar.session import SessionContext

log = structlog.get_logger()

ASSESSED = "assessed"
UNRESOLVED = "unresolved"
SELF = "self"
STALE = "stale"
ERROR = "error"

_FETCH_ERRORS = (ChessComAPIError, ValidationError)


class NoUsableDataError(Exception):
    """Raised when every remote sub-resource failed for an identity."""

    def __init__(self, identity: str) -> None:
        self.identity = identity
        super().__init__(f"no data available for @{identity}")


@dataclass
class PageObservation:
    """What the page collaborator saw during one scan.

    ``sources`` are raw candidate strings grouped by where they were found,
    highest priority first (top player zone, bottom zone, both zones,
    embedded metadata).
    """

    sources: list[list[str]] = field(default_factory=list)
    self_hint: str | None = None
    profile_linked: list[str] = field(default_factory=list)
    page_text: str | None = None
    path: str | None = None

    @property
    def preferred_pool(self) -> str | None:
        return infer_pool(self.page_text, self.path)


@dataclass
class ScanOutcome:
    """Result of one scan, ready to render."""

    status: str
    opponent: str | None = None
    assessment: RiskAssessment | None = None
    message: str | None = None

    @property
    def renderable(self) -> bool:
        return self.status == ASSESSED


class OpponentRadar:
    """Owns the client, cache, thresholds and session of one page session."""

    def __init__(
        self,
        client: ChessComClient,
        cache: ResultCache | None = None,
        config: RiskConfig | None = None,
        session: SessionContext | None = None,
        model: RiskModel | None = None,
        archive_months: int = 2,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.cache = cache or ResultCache()
        self.config = config or RiskConfig()
        self.session = session or SessionContext()
        self.model = model or RiskModel()
        self.archive_months = archive_months
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: RadarSettings | None = None) -> OpponentRadar:
        settings = settings or RadarSettings()
        return cls(
            client=ChessComClient(
                base_url=settings.API_BASE_URL,
                timeout=settings.HTTP_TIMEOUT_SECONDS,
            ),
            cache=ResultCache(ttl=settings.CACHE_TTL_SECONDS, maxsize=settings.CACHE_MAXSIZE),
            session=SessionContext.load(settings.SESSION_FILE),
            archive_months=settings.ARCHIVE_MONTHS,
        )

    async def __aenter__(self) -> OpponentRadar:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.client.close()

    # ------------------------------------------------------------------
    # Fetch + aggregate + score
    # ------------------------------------------------------------------

    async def _fetch_profile(self, identity: str) -> PlayerProfile | None:
        try:
            return await self.client.fetch_profile(identity)
        except _FETCH_ERRORS as exc:
            log.warning("profile_unavailable", identity=identity, error=str(exc))
            return None

    async def _fetch_stats(self, identity: str) -> dict[str, PoolEntry] | None:
        try:
            return await self.client.fetch_stats(identity)
        except _FETCH_ERRORS as exc:
            log.warning("stats_unavailable", identity=identity, error=str(exc))
            return None

    async def _fetch_games(self, identity: str) -> list[ArchivedGame] | None:
        try:
            return await self.client.fetch_recent_games(identity, months=self.archive_months)
        except _FETCH_ERRORS as exc:
            log.warning("games_unavailable", identity=identity, error=str(exc))
            return None

    async def compute(self, identity: str, preferred_pool: str | None = None) -> RiskAssessment:
        """Fetch everything for *identity* and score it.

        Each failed sub-resource degrades to empty.  Raises
        :class:`NoUsableDataError` when all three failed.
        """
        profile = await self._fetch_profile(identity)
        stats = await self._fetch_stats(identity)
        games = await self._fetch_games(identity)
        if profile is None and stats is None and games is None:
            raise NoUsableDataError(identity)

        now = self._clock()
        metrics = aggregate(
            profile,
            stats or {},
            preferred_pool,
            games or [],
            identity,
            now,
            self.config,
        )
        assessment = self.model.score(
            metrics,
            self.config,
            identity=identity,
            now=datetime.fromtimestamp(now, tz=timezone.utc),
        )
        log.info(
            "assessment_computed",
            identity=identity,
            score=assessment.score,
            reasons=list(assessment.reasons),
            pool=metrics.primary_pool,
        )
        return assessment

    # ------------------------------------------------------------------
    # Boundary methods
    # ------------------------------------------------------------------

    async def assess(
        self,
        raw_identity: str,
        preferred_pool: str | None = None,
        force: bool = False,
    ) -> RiskAssessment:
        """Cached assessment of *raw_identity*; failures become error results."""
        identity = normalize(raw_identity)
        if identity is None:
            return RiskAssessment.failure(None, f"not a valid username: {raw_identity!r}")
        try:
            return await self.cache.get_or_compute(
                identity,
                lambda: self.compute(identity, preferred_pool),
                force=force,
            )
        except NoUsableDataError as exc:
            log.warning("assessment_no_data", identity=identity)
            return RiskAssessment.failure(identity, str(exc))
        except Exception:
            log.exception("assessment_failed", identity=identity)
            return RiskAssessment.failure(identity, f"could not analyze @{identity} yet")

    async def _assess_target(
        self,
        opponent: str,
        preferred_pool: str | None,
        force: bool,
    ) -> ScanOutcome:
        self.session.record_resolution(opponent)
        token = self.session.begin(opponent)
        assessment = await self.assess(opponent, preferred_pool, force=force)
        if not self.session.is_current(opponent, token):
            log.info("assessment_discarded", identity=opponent, current=self.session.current_target)
            return ScanOutcome(STALE, opponent, message="opponent changed during analysis")
        if not assessment.ok:
            return ScanOutcome(ERROR, opponent, assessment, message=assessment.error)
        return ScanOutcome(ASSESSED, opponent, assessment)

    async def scan(self, observation: PageObservation, force: bool = False) -> ScanOutcome:
        """Resolve the opponent on the page and assess them."""
        try:
            own = self.session.effective_self(normalize(observation.self_hint))
            opponent, inferred = resolve_sources(
                [normalize_all(source) for source in observation.sources],
                self_identity=own,
                sticky=self.session.sticky_opponent,
                profile_linked=normalize_all(observation.profile_linked),
            )
            if inferred is not None:
                self.session.inferred_self = inferred
                own = inferred
            if opponent is None:
                opponent = identity_from_path(observation.path)
            if opponent is None:
                log.debug("opponent_unresolved", self_identity=own)
                return ScanOutcome(UNRESOLVED, message="cannot determine opponent yet")
            if own is not None and opponent == own:
                return ScanOutcome(SELF, opponent, message=f"detected your own username (@{opponent})")
            return await self._assess_target(opponent, observation.preferred_pool, force)
        except Exception:
            log.exception("scan_failed")
            return ScanOutcome(ERROR, message="scan failed")

    async def analyze_manual(
        self,
        raw_identity: str,
        preferred_pool: str | None = None,
        force: bool = True,
    ) -> ScanOutcome:
        """Assess a username typed in by the user, bypassing resolution."""
        try:
            opponent = normalize(raw_identity)
            if opponent is None:
                return ScanOutcome(ERROR, message=f"not a valid username: {raw_identity!r}")
            if opponent == self.session.effective_self():
                return ScanOutcome(SELF, opponent, message=f"detected your own username (@{opponent})")
            return await self._assess_target(opponent, preferred_pool, force)
        except Exception:
            log.exception("manual_analysis_failed")
            return ScanOutcome(ERROR, message="analysis failed")
