"""Game-speed pool hint from page text."""

from __future__ import annotations

import re

_BULLET_RE = re.compile(r"(?<![\w+])(1\+0|1 min|bullet|2\+1|2 min)(?![\w+])")
_BLITZ_RE = re.compile(r"(?<![\w+])(3\+0|3\+2|5\+0|5\+3|blitz|5 min|3 min)(?![\w+])")
_RAPID_RE = re.compile(r"(?<![\w+])(10\+0|10\+5|15\+10|rapid|10 min|15 min)(?![\w+])")


def infer_pool(page_text: str | None, path: str | None = None) -> str | None:
    """Guess the pool of the game on screen; advisory only.

    Checked fastest first, so a page mentioning both "bullet" and "blitz"
    is treated as bullet.
    """
    text = (page_text or "").lower()
    if _BULLET_RE.search(text):
        return "chess_bullet"
    if _BLITZ_RE.search(text):
        return "chess_blitz"
    if _RAPID_RE.search(text):
        return "chess_rapid"
    if path and "/game/daily" in path:
        return "chess_daily"
    return None
