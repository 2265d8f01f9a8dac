"""Conversation message types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class Role(str, Enum):
    """Author of a conversation message."""

    USER = "user"
    ASSISTANT = "assistant"

    @property
    def label(self) -> str:
        """Short human-friendly label used in plain-text output."""
        return "You" if self is Role.USER else "AI"


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class Message:
    """A single immutable entry of the conversation log."""

    role: Role
    content: str
    created_at: datetime = field(default_factory=_utc_now)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> Message:
        return cls(role=Role.ASSISTANT, content=content)

    def to_dict(self) -> dict[str, str]:
        """Serialize to the persisted ``{role, content, timestamp}`` shape."""
        return {
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> Message:
        """Rebuild a message from its persisted shape.

        Raises ``ValueError`` when the role, content or timestamp is unusable.
        """
        role = Role(str(payload.get("role", "")).strip().lower())
        content = payload.get("content")
        if not isinstance(content, str):
            raise ValueError("Message content must be a string.")
        raw_timestamp = payload.get("timestamp")
        if not isinstance(raw_timestamp, str):
            raise ValueError("Message timestamp must be an ISO-8601 string.")
        created_at = datetime.fromisoformat(raw_timestamp)
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)
        return cls(role=role, content=content, created_at=created_at)
