"""Opponent resolution from ambiguous candidate sets.

All functions here are pure.  ``None`` means *unresolved*: the caller
should report "cannot determine opponent yet" rather than guess.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence


def _dedupe(candidates: Iterable[str] | None) -> list[str]:
    return list(dict.fromkeys(c for c in (candidates or ()) if c))


def resolve(
    candidates: Iterable[str] | None,
    self_identity: str | None = None,
    sticky: str | None = None,
) -> str | None:
    """Pick the opponent out of *candidates*.

    Decision table, in order:

    1. No candidates -> unresolved.
    2. Self known: drop self.  One left -> it.  Several left -> the sticky
       opponent if present, else the first in first-seen order.  None left
       -> unresolved.
    3. Self unknown: a single candidate -> it.  Several -> the sticky
       opponent if present, else unresolved.
    """
    unique = _dedupe(candidates)
    if not unique:
        return None

    if self_identity:
        non_self = [c for c in unique if c != self_identity]
        if len(non_self) == 1:
            return non_self[0]
        if len(non_self) > 1:
            if sticky and sticky in non_self:
                return sticky
            return non_self[0]
        return None

    if len(unique) == 1:
        return unique[0]
    if sticky and sticky in unique:
        return sticky
    return None


def infer_self(
    candidates: Iterable[str] | None,
    profile_linked: Iterable[str] | None,
) -> str | None:
    """Infer the local user from own-profile links.

    Only an intersection of exactly one identity counts; anything else is
    too ambiguous to treat as self.
    """
    linked = set(profile_linked or ())
    if not linked:
        return None
    overlap = [c for c in _dedupe(candidates) if c in linked]
    if len(overlap) == 1:
        return overlap[0]
    return None


def resolve_sources(
    sources: Sequence[Iterable[str]],
    self_identity: str | None = None,
    sticky: str | None = None,
    profile_linked: Iterable[str] | None = None,
) -> tuple[str | None, str | None]:
    """Resolve over candidate sources in priority order.

    Returns ``(opponent, inferred_self)``.  The first source that resolves
    wins.  When self is unknown, each source is first checked against the
    own-profile links; a self inferred there is applied to that source and
    every later one, so a board showing only the user never resolves to
    the user.  ``inferred_self`` is reported even when nothing resolves.
    """
    linked = list(profile_linked or ())
    own = self_identity
    inferred: str | None = None
    for source in sources:
        candidates = _dedupe(source)
        if not own and linked:
            inferred = infer_self(candidates, linked)
            own = inferred
        opponent = resolve(candidates, own, sticky)
        if opponent is not None:
            return opponent, inferred
    return None, inferred
