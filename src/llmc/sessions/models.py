from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

SHORT_ID_LENGTH = 8
ROLES = ("user", "assistant")


def utc_now() -> datetime:
    return datetime.now(UTC)


def parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def parse_model_string(value: str) -> tuple[str, str]:
    """Split a ``provider:model`` binding. Raises ValueError when malformed."""
    provider, sep, model = value.partition(":")
    provider = provider.strip()
    model = model.strip()
    if not sep:
        raise ValueError(
            f"invalid model format: {value} (expected format: provider:model, e.g., openai:gpt-4)"
        )
    if not provider or not model:
        raise ValueError("provider and model cannot be empty")
    return provider, model


@dataclass(frozen=True)
class Message:
    role: str
    content: str
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role,
            "content": self.content,
            "timestamp": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        role = str(data["role"])
        if role not in ROLES:
            raise ValueError(f"unknown message role: {role!r}")
        return cls(
            role=role,
            content=str(data.get("content", "")),
            created_at=parse_timestamp(str(data["timestamp"])),
        )


@dataclass
class Session:
    id: str
    model: str
    created_at: datetime
    updated_at: datetime
    parent_id: str | None = None
    name: str | None = None
    template_name: str | None = None
    system_prompt: str | None = None
    messages: list[Message] = field(default_factory=list)

    @classmethod
    def new(
        cls,
        model: str,
        *,
        parent_id: str | None = None,
        name: str | None = None,
        template_name: str | None = None,
        system_prompt: str | None = None,
    ) -> Session:
        now = utc_now()
        return cls(
            id=str(uuid4()),
            model=model,
            created_at=now,
            updated_at=now,
            parent_id=parent_id or None,
            name=name or None,
            template_name=template_name or None,
            system_prompt=system_prompt or None,
        )

    @property
    def short_id(self) -> str:
        return self.id[:SHORT_ID_LENGTH]

    @property
    def display_name(self) -> str:
        return self.name or self.short_id

    @property
    def message_count(self) -> int:
        return len(self.messages)

    @property
    def provider_name(self) -> str:
        try:
            return parse_model_string(self.model)[0]
        except ValueError:
            return ""

    @property
    def model_name(self) -> str:
        try:
            return parse_model_string(self.model)[1]
        except ValueError:
            return self.model

    def add_message(self, role: str, content: str) -> Message:
        return self.append(Message(role=role, content=content, created_at=utc_now()))

    def append(self, message: Message) -> Message:
        if message.role not in ROLES:
            raise ValueError(f"unknown message role: {message.role!r}")
        self.messages.append(message)
        self.updated_at = max(self.updated_at, message.created_at)
        return message

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "parent_id": self.parent_id or "",
            "name": self.name or "",
            "template_name": self.template_name or "",
            "system_prompt": self.system_prompt or "",
            "model": self.model,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "messages": [m.to_dict() for m in self.messages],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        # Unknown keys are ignored so records written by newer versions still load.
        session_id = str(data["id"]).strip()
        if not session_id:
            raise ValueError("session record has an empty id")
        raw_messages = data.get("messages") or []
        if not isinstance(raw_messages, list):
            raise ValueError("messages must be a list")
        return cls(
            id=session_id,
            model=str(data.get("model", "")),
            created_at=parse_timestamp(str(data["created_at"])),
            updated_at=parse_timestamp(str(data["updated_at"])),
            parent_id=str(data.get("parent_id") or "") or None,
            name=str(data.get("name") or "") or None,
            template_name=str(data.get("template_name") or "") or None,
            system_prompt=str(data.get("system_prompt") or "") or None,
            messages=[Message.from_dict(m) for m in raw_messages],
        )
