from __future__ import annotations

from llmc.sessions.models import Session
from llmc.sessions.retention import RetentionPlan

_TABLE_HEADERS = ("ID", "MODEL", "CREATED", "MESSAGES", "NAME")


class SessionController:
    """Formats sessions for the terminal. Pure string building, no I/O."""

    def format_session_table(self, sessions: list[Session]) -> list[str]:
        rows = [_TABLE_HEADERS, tuple("-" * len(h) for h in _TABLE_HEADERS)]
        for s in sessions:
            rows.append((
                s.short_id,
                s.model,
                f"{s.created_at:%Y-%m-%d}",
                str(s.message_count),
                s.name or "-",
            ))
        widths = [max(len(row[i]) for row in rows) for i in range(len(_TABLE_HEADERS))]
        lines = []
        for row in rows:
            cells = [cell.ljust(widths[i]) for i, cell in enumerate(row)]
            lines.append("  ".join(cells).rstrip())
        return lines

    def format_details(self, session: Session) -> list[str]:
        lines = [f"Session: {session.id}"]
        if session.name:
            lines.append(f"Name: {session.name}")
        if session.parent_id:
            lines.append(f"Parent: {session.parent_id}")
        lines.append(f"Model: {session.model}")
        lines.append(f"Created: {session.created_at:%Y-%m-%d %H:%M:%S}")
        lines.append(f"Updated: {session.updated_at:%Y-%m-%d %H:%M:%S}")
        if session.template_name:
            lines.append(f"Template: {session.template_name}")
        if session.system_prompt:
            lines.append(f"System Prompt: {session.system_prompt}")
        lines.append(f"Messages: {session.message_count}")
        return lines

    def format_transcript(self, session: Session) -> list[str]:
        if not session.messages:
            return ["No messages in this session."]
        lines = ["Message History:", "----------------"]
        for i, msg in enumerate(session.messages, start=1):
            label = "Assistant" if msg.role == "assistant" else "You"
            lines.append("")
            lines.append(f"[{i}] {label} ({msg.created_at.isoformat()}):")
            lines.append(msg.content)
        return lines

    def format_info(self, session: Session) -> list[str]:
        lines = [
            "Session Information:",
            f"  ID: {session.short_id}",
            f"  Full ID: {session.id}",
        ]
        if session.name:
            lines.append(f"  Name: {session.name}")
        lines.append(f"  Model: {session.model}")
        lines.append(f"  Messages: {session.message_count}")
        lines.append(f"  Created: {session.created_at:%Y-%m-%d %H:%M:%S}")
        if session.template_name:
            lines.append(f"  Template: {session.template_name}")
        return lines

    def format_protected_notice(self, plan: RetentionPlan) -> list[str]:
        if not plan.protected:
            return []
        lines = ["", "Notice: The following sessions were not deleted (referenced by child sessions):"]
        for s in plan.protected:
            lines.append(f"  - {s.short_id} (created: {s.created_at:%Y-%m-%d})")
        lines.append("")
        return lines
