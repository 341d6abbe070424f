from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from loguru import logger

from llmc.errors import InvalidArgumentError, LlmcError
from llmc.sessions.models import Session, utc_now
from llmc.sessions.store import SessionStore

DEFAULT_RETENTION_DAYS = 30

_DATE_FORMATS = ("%Y-%m-%d", "%Y-%m", "%Y")


@dataclass(frozen=True)
class RetentionPlan:
    to_delete: list[Session]
    protected: list[Session]
    untouched: list[Session]
    cutoff: datetime | None = None


@dataclass
class RetentionResult:
    deleted: list[str] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)

    @property
    def deleted_count(self) -> int:
        return len(self.deleted)

    @property
    def failed_count(self) -> int:
        return len(self.failed)


def parse_cutoff_date(value: str) -> datetime:
    """Parse ``YYYY-MM-DD``, ``YYYY-MM`` or ``YYYY`` as the first instant of that period (UTC)."""
    text = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=UTC)
        except ValueError:
            continue
    raise InvalidArgumentError(f"invalid date format: {value} (use YYYY-MM-DD, YYYY-MM, or YYYY)")


def default_cutoff(retention_days: int, now: datetime | None = None) -> datetime:
    if retention_days < 0:
        raise InvalidArgumentError(f"retention days must not be negative (got {retention_days})")
    return (now or utc_now()) - timedelta(days=retention_days)


def plan_retention(
    sessions: list[Session],
    *,
    cutoff: datetime | None = None,
    delete_all: bool = False,
) -> RetentionPlan:
    if not delete_all and cutoff is None:
        raise InvalidArgumentError("a cutoff date is required unless deleting all sessions")

    if delete_all:
        candidates = {s.id: s for s in sessions}
    else:
        candidates = {s.id: s for s in sessions if s.created_at < cutoff}

    # A retained session keeps its direct parent alive for later ancestry walks.
    protected: dict[str, Session] = {}
    for session in sessions:
        if session.id in candidates:
            continue
        parent_id = session.parent_id
        if parent_id and parent_id in candidates and parent_id not in protected:
            protected[parent_id] = candidates[parent_id]

    to_delete = [s for s in sessions if s.id in candidates and s.id not in protected]
    untouched = [s for s in sessions if s.id not in candidates]
    return RetentionPlan(
        to_delete=to_delete,
        protected=[s for s in sessions if s.id in protected],
        untouched=untouched,
        cutoff=None if delete_all else cutoff,
    )


def execute_plan(store: SessionStore, plan: RetentionPlan) -> RetentionResult:
    result = RetentionResult()
    for session in plan.to_delete:
        try:
            store.delete(session.id)
        except (LlmcError, OSError) as ex:
            logger.warning(f"Failed to delete session {session.short_id}: {ex}")
            result.failed.append((session.id, str(ex)))
            continue
        result.deleted.append(session.id)

    logger.info(
        f"Retention cleanup: deleted {result.deleted_count}, failed {result.failed_count}, "
        f"protected {len(plan.protected)}"
    )
    return result
