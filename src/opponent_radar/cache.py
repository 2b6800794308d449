"""In-memory TTL cache of risk assessments, keyed by identity."""
from __future__ import annotations

import asyncio
import functools
import itertools
import logging
import time
from collections.abc import Awaitable, Callable

from cachetools import TTLCache

from opponent_radar.config import CACHE_MAXSIZE, CACHE_TTL_SECONDS
from opponent_radar.models import RiskAssessment

logger = logging.getLogger(__name__)

ComputeFn = Callable[[], Awaitable[RiskAssessment]]


class ResultCache:
    """TTL cache wrapping ``cachetools.TTLCache`` with single-flight computes.

    Expiry is lazy: stale entries are ignored on lookup and overwritten on
    the next write; there is no background eviction.

    Every computation started for a key takes a monotonically increasing
    request token.  Only the computation holding the latest token may write
    the entry, so a slow earlier request never overwrites a newer result.
    """

    def __init__(
        self,
        ttl: float = CACHE_TTL_SECONDS,
        maxsize: int = CACHE_MAXSIZE,
        timer: Callable[[], float] = time.time,
    ) -> None:
        self.ttl = ttl
        self._cache: TTLCache[str, RiskAssessment] = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._pending: dict[str, asyncio.Future[RiskAssessment]] = {}
        self._tokens = itertools.count(1)
        self._latest: dict[str, int] = {}

    def get(self, key: str) -> RiskAssessment | None:
        """Return the live entry for *key*, or ``None`` on miss or expiry."""
        return self._cache.get(key)

    def set(self, key: str, value: RiskAssessment) -> None:
        self._cache[key] = value

    def invalidate(self, key: str) -> None:
        """Remove a specific key from the cache."""
        self._cache.pop(key, None)

    def clear(self) -> None:
        self._cache.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    async def get_or_compute(
        self,
        key: str,
        compute_fn: ComputeFn,
        force: bool = False,
    ) -> RiskAssessment:
        """Get from cache or call *compute_fn*, coalescing concurrent requests.

        With *force* the lookup and any pending computation are bypassed,
        but the fresh result is still written through.
        """
        if not force:
            cached = self.get(key)
            if cached is not None:
                logger.debug("Cache hit key=%s", key)
                return cached
            pending = self._pending.get(key)
            if pending is not None:
                logger.debug("Joining in-flight computation key=%s", key)
                return await asyncio.shield(pending)

        token = next(self._tokens)
        self._latest[key] = token
        task: asyncio.Future[RiskAssessment] = asyncio.ensure_future(compute_fn())
        self._pending[key] = task
        task.add_done_callback(functools.partial(self._settle, key, token))
        # The task belongs to the cache: cancelling one caller leaves it
        # running for everyone else waiting on it.
        return await asyncio.shield(task)

    def _settle(self, key: str, token: int, task: asyncio.Future[RiskAssessment]) -> None:
        """Write a finished computation through, unless it was superseded."""
        if self._pending.get(key) is task:
            del self._pending[key]
        if task.cancelled():
            logger.info("Computation cancelled key=%s token=%d", key, token)
        elif task.exception() is not None:
            logger.warning("Computation failed key=%s error=%s", key, task.exception())
        elif self._latest.get(key) == token:
            self.set(key, task.result())
        else:
            logger.info("Discarding superseded result key=%s token=%d", key, token)
        if self._latest.get(key) == token and key not in self._pending:
            del self._latest[key]
