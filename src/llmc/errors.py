from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from llmc.sessions.models import Session


class LlmcError(Exception):
    """Base class for every error reported to the user with a non-zero exit."""


class NotFoundError(LlmcError):
    pass


class InvalidArgumentError(LlmcError):
    pass


class CorruptSessionError(LlmcError):
    pass


class CycleDetectedError(LlmcError):
    pass


class UpstreamError(LlmcError):
    """Failure reported by a conversational provider."""


class AmbiguousSessionError(LlmcError):
    def __init__(self, prefix: str, matches: list[Session]):
        self.prefix = prefix
        self.matches = list(matches)
        super().__init__(self._format())

    def _format(self) -> str:
        lines = [f"Ambiguous session ID {self.prefix!r}. Multiple matches found:"]
        for match in self.matches:
            lines.append(
                f"- {match.short_id} ({match.model}, {match.created_at:%Y-%m-%d}, "
                f"{match.message_count} messages)"
            )
        lines.append("")
        lines.append("Please use a longer prefix or run 'llmc sessions list'.")
        return "\n".join(lines)
