from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from llmc.errors import InvalidArgumentError
from llmc.provider import ConversationalResponder
from llmc.sessions.ancestry import SUMMARY_PREFIX, build_transcript, collect_ancestors, count_transcript_messages
from llmc.sessions.models import Session
from llmc.sessions.resolver import SessionResolver
from llmc.sessions.store import SessionStore

SUMMARY_PROMPT = """Please summarize the following conversation in 3-5 concise paragraphs.
Focus on:
- Main topics discussed
- Key decisions made
- Current status or next steps

Conversation history:

{transcript}"""


@dataclass(frozen=True)
class SummaryPlan:
    session: Session
    ancestors: list[Session]
    message_count: int
    prompt: str


@dataclass(frozen=True)
class SummaryResult:
    source: Session
    child: Session
    ancestor_count: int
    message_count: int


class Summarizer:
    """Summarize a session (and its ancestry) into a new child session.

    The source session is never modified; the child starts with a single
    ``user`` message carrying the summary and inherits model, system prompt
    and template name.
    """

    def __init__(self, store: SessionStore, resolver: SessionResolver):
        self._store = store
        self._resolver = resolver

    def prepare(self, session: Session) -> SummaryPlan:
        if session.message_count == 0:
            raise InvalidArgumentError(f"session {session.short_id} has no messages to summarize")
        ancestors = collect_ancestors(session, self._resolver)
        chain = [*ancestors, session]
        return SummaryPlan(
            session=session,
            ancestors=ancestors,
            message_count=count_transcript_messages(chain),
            prompt=SUMMARY_PROMPT.format(transcript=build_transcript(chain)),
        )

    async def summarize(self, plan: SummaryPlan, responder: ConversationalResponder) -> SummaryResult:
        source = plan.session
        logger.info(
            f"Summarizing {plan.message_count} messages from session {source.short_id} "
            f"and {len(plan.ancestors)} ancestor session(s)"
        )
        summary = await responder.chat(plan.prompt)

        child = Session.new(
            source.model,
            parent_id=source.id,
            template_name=source.template_name,
            system_prompt=source.system_prompt,
        )
        child.add_message("user", f"{SUMMARY_PREFIX}{summary}")
        self._store.persist(child)
        logger.info(f"Created summary session {child.short_id} (parent: {source.short_id})")
        return SummaryResult(
            source=source,
            child=child,
            ancestor_count=len(plan.ancestors),
            message_count=plan.message_count,
        )
