"""Identity normalisation.

An identity is a chess.com username in canonical form: lowercase, trimmed,
without a leading ``@``, matching ``[a-z0-9_-]{3,20}``.  Anything else
scraped off a page is noise and is dropped here.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

_IDENTITY_RE = re.compile(r"[a-z0-9_-]{3,20}")

# Generic UI words that pass the pattern but are never usernames.
BLOCKED_TOKENS = frozenset({
    "game",
    "play",
    "chess",
    "live",
    "move",
    "time",
    "white",
    "black",
    "player",
    "user",
    "guest",
    "anon",
})

_MEMBER_PATH_RE = re.compile(r"/member/([A-Za-z0-9_-]{3,20})(?:/|$)")


def normalize(raw: object) -> str | None:
    """Return the canonical identity for *raw*, or ``None`` if it is not one."""
    if not isinstance(raw, str):
        return None
    value = raw.strip()
    if value.startswith("@"):
        value = value[1:]
    value = value.lower()
    if not _IDENTITY_RE.fullmatch(value):
        return None
    if value in BLOCKED_TOKENS:
        return None
    return value


def normalize_all(raws: Iterable[object] | None) -> list[str]:
    """Normalise *raws* into a candidate set, keeping first-seen order."""
    seen: dict[str, None] = {}
    for raw in raws or ():
        identity = normalize(raw)
        if identity is not None:
            seen.setdefault(identity, None)
    return list(seen)


def identity_from_path(path: str | None) -> str | None:
    """Identity named by a member URL path (``/member/hikaru`` -> ``hikaru``)."""
    match = _MEMBER_PATH_RE.search(path or "")
    if match is None:
        return None
    return normalize(match.group(1))
