from __future__ import annotations

import json
from pathlib import Path

from loguru import logger

from llmc.errors import CorruptSessionError, NotFoundError
from llmc.sessions.models import Session

_SUFFIX = ".json"


class SessionStore:
    """File-per-session persistence.

    Each session lives in ``<root>/<id>.json``. Writes are plain overwrites with
    no locking: with two concurrent writers for the same id, the last one wins.
    """

    def __init__(self, root: str | Path):
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, session_id: str) -> Path:
        return self._root / f"{session_id}{_SUFFIX}"

    def persist(self, session: Session) -> Path:
        self._ensure_root()
        path = self.path_for(session.id)
        data = json.dumps(session.to_dict(), indent=2, ensure_ascii=False)
        path.write_text(data + "\n", encoding="utf-8")
        logger.debug(f"Persisted session {session.id} ({session.message_count} messages) to {path}")
        return path

    def load(self, session_id: str) -> Session:
        path = self.path_for(session_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise NotFoundError(
                f"session not found: {session_id}\n\nRun 'llmc sessions list' to see available sessions."
            ) from None
        except OSError as ex:
            raise CorruptSessionError(f"failed to read session file {path}: {ex}") from ex

        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("session record is not a JSON object")
            session = Session.from_dict(data)
        except (ValueError, KeyError, TypeError, AttributeError) as ex:
            raise CorruptSessionError(
                f"failed to parse session file {path}: {ex}\n\nThe session file may be corrupted."
            ) from ex

        # Stored id must match the file name.
        if session.id != session_id:
            raise CorruptSessionError(
                f"session file {path} holds session {session.id}; the file name and stored id must match"
            )
        return session

    def delete(self, session_id: str) -> None:
        path = self.path_for(session_id)
        try:
            path.unlink()
        except FileNotFoundError:
            raise NotFoundError(f"session not found: {session_id}") from None
        logger.debug(f"Deleted session file {path}")

    def list_all(self) -> list[Session]:
        """Return every readable session, most recently updated first.

        Corrupt or unreadable files are skipped. Ties on ``updated_at`` are broken
        by ``created_at`` (newest first) and then by id in ascending order.
        """
        self._ensure_root()
        sessions: list[Session] = []
        for path in sorted(self._root.glob(f"*{_SUFFIX}")):
            if not path.is_file():
                continue
            try:
                sessions.append(self.load(path.stem))
            except (CorruptSessionError, NotFoundError) as ex:
                logger.warning(f"Skipping unreadable session file {path.name}: {ex}")
        sessions.sort(key=lambda s: s.id)
        sessions.sort(key=lambda s: (s.updated_at, s.created_at), reverse=True)
        return sessions

    def _ensure_root(self) -> None:
        self._root.mkdir(parents=True, exist_ok=True)
