from llmc.sessions.ancestry import build_transcript, collect_ancestors, count_transcript_messages
from llmc.sessions.models import Message, Session
from llmc.sessions.resolver import SessionResolver
from llmc.sessions.retention import execute_plan, parse_cutoff_date, plan_retention
from llmc.sessions.store import SessionStore
from llmc.sessions.threshold import ThresholdGuard

__all__ = [
    "Message",
    "Session",
    "SessionResolver",
    "SessionStore",
    "ThresholdGuard",
    "build_transcript",
    "collect_ancestors",
    "count_transcript_messages",
    "execute_plan",
    "parse_cutoff_date",
    "plan_retention",
]
