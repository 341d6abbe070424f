from __future__ import annotations

from uuid import UUID

from llmc.errors import AmbiguousSessionError, InvalidArgumentError, NotFoundError
from llmc.sessions.models import Session
from llmc.sessions.store import SessionStore

LATEST = "latest"
MIN_PREFIX_LENGTH = 4

_FULL_ID_LENGTH = 36
_DASH_POSITIONS = (8, 13, 18, 23)


def is_full_id(value: str) -> bool:
    """True only for the canonical 8-4-4-4-12 hex form; anything else is treated as a prefix."""
    if len(value) != _FULL_ID_LENGTH:
        return False
    dashes = tuple(i for i, ch in enumerate(value) if ch == "-")
    if dashes != _DASH_POSITIONS:
        return False
    try:
        UUID(value)
    except ValueError:
        return False
    return True


class SessionResolver:
    """Resolve a user-facing identifier to exactly one stored session.

    Accepts ``latest``, a full UUID, or a unique prefix of at least four
    characters. Multiple prefix matches are reported rather than guessed.
    """

    def __init__(self, store: SessionStore):
        self._store = store

    def resolve(self, identifier: str) -> Session:
        value = identifier.strip()
        if value == LATEST:
            return self.latest()

        if is_full_id(value):
            return self._store.load(value)

        if len(value) < MIN_PREFIX_LENGTH:
            raise InvalidArgumentError(
                f"session ID prefix must be at least {MIN_PREFIX_LENGTH} characters (got {len(value)})"
            )

        matches = [s for s in self._store.list_all() if s.id.startswith(value)]
        if not matches:
            raise NotFoundError(
                f"session not found: {value}\n\nRun 'llmc sessions list' to see available sessions."
            )
        if len(matches) > 1:
            raise AmbiguousSessionError(value, matches)
        return matches[0]

    def latest(self) -> Session:
        sessions = self._store.list_all()
        if not sessions:
            raise NotFoundError(
                "no sessions found\n\nCreate a new session with: llmc chat --new-session \"your message\""
            )
        return sessions[0]
