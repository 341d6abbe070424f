from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from llmc.errors import CycleDetectedError, LlmcError
from llmc.sessions.models import Session
from llmc.sessions.resolver import SessionResolver

SUMMARY_PREFIX = "Previous conversation summary:\n\n"


def collect_ancestors(session: Session, resolver: SessionResolver) -> list[Session]:
    """Follow parent links back from ``session``; returns ancestors oldest first.

    A parent that can no longer be resolved ends the walk without error.
    """
    ancestors: list[Session] = []
    visited = {session.id}
    current_id = session.parent_id

    while current_id:
        if current_id in visited:
            raise CycleDetectedError(
                f"circular reference detected in ancestry of session {session.short_id} (at {current_id})"
            )
        visited.add(current_id)

        try:
            parent = resolver.resolve(current_id)
        except LlmcError as ex:
            logger.warning(f"Parent session {current_id} not found, stopping ancestry traversal: {ex}")
            break

        ancestors.insert(0, parent)
        current_id = parent.parent_id

    return ancestors


def _original_messages(session: Session):
    # The first message of a summarized session is the synthetic summary placeholder.
    if session.parent_id and session.messages:
        return session.messages[1:]
    return session.messages


def count_transcript_messages(sessions: Iterable[Session]) -> int:
    return sum(len(_original_messages(s)) for s in sessions)


def build_transcript(sessions: Iterable[Session]) -> str:
    parts: list[str] = []
    number = 1
    for session in sessions:
        for message in _original_messages(session):
            role = "Assistant" if message.role == "assistant" else "User"
            parts.append(f"[Message {number}] {role}: {message.content}\n\n")
            number += 1
    return "".join(parts)
