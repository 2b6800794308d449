"""Session-scoped state threaded through the pipeline.

Holds the local user's identity, the sticky opponent and the current
target.  Nothing here is module-level: each page session owns one
:class:`SessionContext`.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from opponent_radar.identity import normalize

logger = logging.getLogger(__name__)


@dataclass
class SessionContext:
    """Mutable per-session state, written only by the pipeline."""

    self_override: str | None = None
    inferred_self: str | None = None
    sticky_opponent: str | None = None
    current_target: str | None = None
    generation: int = 0

    def effective_self(self, observed: str | None = None) -> str | None:
        """The explicit override beats the page's self hint, which beats inference."""
        return self.self_override or observed or self.inferred_self

    def set_self_override(self, raw: str | None) -> bool:
        """Set (or clear with ``None``) the user's own identity.

        Returns ``False`` and leaves the override alone when *raw* is not a
        valid identity.
        """
        if raw is None:
            self.self_override = None
            return True
        identity = normalize(raw)
        if identity is None:
            return False
        self.self_override = identity
        return True

    def record_resolution(self, opponent: str) -> None:
        self.sticky_opponent = opponent

    def begin(self, target: str) -> int:
        """Mark *target* as the identity the page is currently showing.

        Returns the generation token of this run; every call supersedes the
        tokens handed out before it, even for the same target.
        """
        self.generation += 1
        self.current_target = target
        return self.generation

    def is_current(self, target: str, token: int) -> bool:
        return self.current_target == target and self.generation == token

    # -- persistence ----------------------------------------------------------

    def save(self, path: str | os.PathLike[str]) -> None:
        """Atomically persist the self override to *path*."""
        target = Path(path).expanduser()
        target.parent.mkdir(parents=True, exist_ok=True)
        data = {"self_override": self.self_override}
        fd, tmp_path = tempfile.mkstemp(dir=target.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f)
            os.replace(tmp_path, target)
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    @classmethod
    def load(cls, path: str | os.PathLike[str]) -> SessionContext:
        """Load a session from *path*; missing or corrupt files give an empty one."""
        source = Path(path).expanduser()
        session = cls()
        if not source.exists():
            return session
        try:
            data = json.loads(source.read_text())
        except (OSError, ValueError):
            logger.warning("Session file unreadable, starting fresh path=%s", source, exc_info=True)
            return session
        if isinstance(data, dict):
            session.self_override = normalize(data.get("self_override"))
        return session
