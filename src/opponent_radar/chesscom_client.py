"""Async client for the chess.com published-data API.

Wraps the three read-only resources the radar needs (profile, per-pool
stats, monthly game archives) with retry logic and scheduled backoff for
429/5xx errors.  The API is unauthenticated.

Usage::

    async with ChessComClient() as client:
        profile = await client.fetch_profile("hikaru")
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from opponent_radar.config import (
    API_BASE_URL,
    BACKOFF_SCHEDULE,
    HTTP_TIMEOUT_SECONDS,
    MAX_RETRIES,
    USER_AGENT,
)
from opponent_radar.models import (
    ArchivedGame,
    PlayerProfile,
    PoolEntry,
    parse_games,
    parse_pool_stats,
)

logger = logging.getLogger(__name__)

# Status codes that should never be retried.
_NO_RETRY_CLIENT_ERRORS = frozenset({400, 401, 403, 404, 410, 422})


# ---------------------------------------------------------------------------
# Custom exceptions
# ---------------------------------------------------------------------------


class ChessComAPIError(Exception):
    """Raised when the chess.com API returns an unusable response."""

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"chess.com API error {status_code}: {detail}")


class ChessComNotFoundError(ChessComAPIError):
    """Raised on 404: unknown player or archive."""

    def __init__(self, detail: str = "Not found") -> None:
        super().__init__(status_code=404, detail=detail)


class ChessComRateLimitError(ChessComAPIError):
    """Raised when rate limit is exceeded and all retries are exhausted."""

    def __init__(self, detail: str = "Rate limit exceeded") -> None:
        super().__init__(status_code=429, detail=detail)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _parse_retry_after(response: httpx.Response, fallback: float) -> float:
    """Extract a ``Retry-After`` value from the response headers."""
    raw = response.headers.get("Retry-After")
    if raw is None:
        return fallback
    try:
        return max(0.0, float(raw))
    except (ValueError, TypeError):
        return fallback


def recent_archive_urls(archives: list[str], months: int) -> list[str]:
    """The last *months* archive URLs; the API lists them oldest first."""
    if months <= 0:
        return []
    return archives[-months:]


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class ChessComClient:
    """Async wrapper around the chess.com player endpoints.

    Parameters
    ----------
    base_url:
        API base URL, ``https://api.chess.com/pub`` by default.
    timeout:
        Per-request timeout in seconds.  Every fetch is bounded; a timeout
        counts as a network error and is retried.
    transport:
        Optional httpx transport, used by tests to serve canned responses.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or API_BASE_URL).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            limits=httpx.Limits(max_connections=5, max_keepalive_connections=2),
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Context-manager protocol
    # ------------------------------------------------------------------

    async def __aenter__(self) -> ChessComClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Core request with retry
    # ------------------------------------------------------------------

    async def _get(self, url: str) -> dict[str, Any]:
        """Send a retried GET to *url* (relative to the base or absolute).

        Returns
        -------
        dict
            Parsed JSON object.

        Raises
        ------
        ChessComNotFoundError
            On 404 (no retry).
        ChessComRateLimitError
            On 429 after all retries exhausted.
        ChessComAPIError
            On other client errors, malformed bodies, or server/network
            errors after retries exhausted.
        """
        last_exc: Exception | None = None

        for attempt in range(MAX_RETRIES):
            backoff = (
                BACKOFF_SCHEDULE[attempt]
                if attempt < len(BACKOFF_SCHEDULE)
                else BACKOFF_SCHEDULE[-1]
            )

            logger.debug("chess.com request attempt=%d url=%s", attempt + 1, url)

            try:
                response = await self._client.get(url)
            except httpx.HTTPError as exc:
                last_exc = exc
                logger.warning(
                    "chess.com network error attempt=%d url=%s error=%s",
                    attempt + 1,
                    url,
                    exc,
                )
                if attempt < MAX_RETRIES - 1:
                    await asyncio.sleep(backoff)
                continue

            status = response.status_code

            # --- success ---
            if 200 <= status < 300:
                try:
                    body = response.json()
                except ValueError as exc:
                    raise ChessComAPIError(status_code=status, detail=f"invalid JSON from {url}") from exc
                if not isinstance(body, dict):
                    raise ChessComAPIError(status_code=status, detail=f"unexpected payload from {url}")
                return body

            if status == 404:
                raise ChessComNotFoundError(detail=url)

            # --- other non-retryable client errors ---
            if status in _NO_RETRY_CLIENT_ERRORS:
                logger.error("chess.com client error status=%d url=%s", status, url)
                raise ChessComAPIError(status_code=status, detail=response.text)

            # --- rate limit (429): wait and retry ---
            if status == 429:
                retry_after = _parse_retry_after(response, fallback=backoff)
                logger.warning(
                    "chess.com rate limit hit attempt=%d url=%s retry_after=%.1fs",
                    attempt + 1,
                    url,
                    retry_after,
                )
                last_exc = ChessComRateLimitError(detail=f"429 on attempt {attempt + 1} for {url}")
                if attempt < MAX_RETRIES - 1:
                    await asyncio.sleep(retry_after)
                continue

            # --- server errors (5xx): retry with backoff ---
            if status >= 500:
                logger.warning(
                    "chess.com server error status=%d attempt=%d url=%s",
                    status,
                    attempt + 1,
                    url,
                )
                last_exc = ChessComAPIError(status_code=status, detail=response.text)
                if attempt < MAX_RETRIES - 1:
                    await asyncio.sleep(backoff)
                continue

            raise ChessComAPIError(status_code=status, detail=response.text)

        # All retries exhausted.
        if isinstance(last_exc, ChessComAPIError):
            raise last_exc
        raise ChessComAPIError(
            status_code=0,
            detail=f"All {MAX_RETRIES} attempts failed for {url}: {last_exc}",
        )

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def fetch_profile(self, username: str) -> PlayerProfile:
        """GET ``/player/{username}``."""
        data = await self._get(f"/player/{username}")
        return PlayerProfile.model_validate(data)

    async def fetch_stats(self, username: str) -> dict[str, PoolEntry]:
        """GET ``/player/{username}/stats``, reduced to the known pools."""
        data = await self._get(f"/player/{username}/stats")
        return parse_pool_stats(data)

    async def fetch_archives(self, username: str) -> list[str]:
        """GET ``/player/{username}/games/archives``: monthly archive URLs, oldest first."""
        data = await self._get(f"/player/{username}/games/archives")
        archives = data.get("archives") or []
        return [url for url in archives if isinstance(url, str)]

    async def fetch_archive(self, url: str) -> list[ArchivedGame]:
        """GET one monthly archive by its absolute URL."""
        data = await self._get(url)
        return parse_games(data)

    async def fetch_recent_games(self, username: str, months: int = 2) -> list[ArchivedGame]:
        """Games from the last *months* monthly archives.

        The archive list itself must be fetchable; a single month that
        fails degrades to no games for that month.
        """
        archives = await self.fetch_archives(username)
        games: list[ArchivedGame] = []
        for url in recent_archive_urls(archives, months):
            try:
                games.extend(await self.fetch_archive(url))
            except ChessComAPIError as exc:
                logger.warning("Skipping archive url=%s error=%s", url, exc)
        return games
