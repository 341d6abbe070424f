from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from llmc.sessions.models import Session


class ThresholdGuard:
    """Warn before continuing a long session. A threshold of 0 disables the check."""

    def __init__(self, threshold: int):
        self._threshold = max(0, threshold)

    @property
    def threshold(self) -> int:
        return self._threshold

    def is_tripped(self, session: Session) -> bool:
        return self._threshold > 0 and session.message_count >= self._threshold

    def warning_lines(self, session: Session) -> list[str]:
        return [
            "",
            f"Warning: Session {session.short_id} has {session.message_count} messages "
            f"(threshold: {self._threshold}).",
            "Long sessions may impact performance and token usage.",
            "",
            "Options:",
            "  1. Continue anyway with --ignore-threshold flag",
            f"  2. Summarize session: llmc sessions summarize {session.short_id}",
            "  3. Start a new session: llmc chat --new-session",
            "",
        ]

    def confirm_continue(
        self,
        session: Session,
        *,
        ignore_threshold: bool,
        ask: Callable[[str], bool],
        emit: Callable[[str], None],
    ) -> bool:
        if not self.is_tripped(session):
            return True
        if ignore_threshold:
            logger.debug(
                f"Threshold of {self._threshold} reached for session {session.short_id}; overridden"
            )
            return True
        for line in self.warning_lines(session):
            emit(line)
        return ask("Continue with this session?")
