"""
Conversation Messages.

A Message is one entry of a conversation transcript. Transcripts are
ordered sequences of messages; order is significant and never changed.

Messages are immutable (frozen). Compaction and other transforms build
new Message objects rather than editing stored ones.

Usage:
    msg = Message.user_text("Test the login form on https://example.com")
    data = msg.to_dict()
    restored = Message.from_dict(data)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any, Literal
from uuid import uuid4

from scout.errors import PartValidationError

from .parts import Part, TextPart, ToolCallPart, part_from_dict, part_to_dict

MessageRole = Literal["user", "assistant", "system"]

_ROLES = ("user", "assistant", "system")


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class Message:
    """
    A single message in a conversation transcript.

    Attributes:
        role: Who produced the message
        parts: Ordered content parts
        id: Unique message identifier
        created_at: When the message was created
        metadata: Extra context (e.g. {"incomplete": True})
    """

    role: MessageRole
    parts: tuple[Part, ...]
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=_utc_now)
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def user_text(cls, text: str, **kwargs: Any) -> Message:
        return cls(role="user", parts=(TextPart(text),), **kwargs)

    @classmethod
    def assistant_text(cls, text: str, **kwargs: Any) -> Message:
        return cls(role="assistant", parts=(TextPart(text),), **kwargs)

    @property
    def text(self) -> str:
        """Concatenated text of all text parts."""
        return "".join(p.text for p in self.parts if isinstance(p, TextPart))

    @property
    def tool_calls(self) -> tuple[ToolCallPart, ...]:
        return tuple(p for p in self.parts if isinstance(p, ToolCallPart))

    @property
    def is_complete(self) -> bool:
        """True when every tool-call part has reached a terminal state."""
        return all(p.is_terminal for p in self.tool_calls)

    @property
    def is_marked_incomplete(self) -> bool:
        return bool(self.metadata.get("incomplete"))

    def with_parts(self, parts: tuple[Part, ...]) -> Message:
        """Copy of this message with different parts (same id and timestamp)."""
        return replace(self, parts=tuple(parts))

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        data: dict[str, Any] = {
            "id": self.id,
            "role": self.role,
            "parts": [part_to_dict(p) for p in self.parts],
            "createdAt": self.created_at.isoformat(),
        }
        if self.metadata:
            data["metadata"] = self.metadata
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        """
        Create Message from its wire form.

        Raises:
            PartValidationError: If the role or any part is invalid,
                or the timestamp is not an ISO 8601 string
        """
        if not isinstance(data, dict):
            raise PartValidationError(f"Message must be an object, got {type(data).__name__}")

        role = data.get("role")
        if role not in _ROLES:
            raise PartValidationError(f"Unknown message role: {role!r}")

        raw_parts = data.get("parts") or []
        if not isinstance(raw_parts, list):
            raise PartValidationError("Message 'parts' must be a list")

        created_raw = data.get("createdAt") or data.get("created_at")
        try:
            created_at = datetime.fromisoformat(created_raw) if created_raw else _utc_now()
        except (TypeError, ValueError) as e:
            raise PartValidationError(f"Invalid message timestamp: {created_raw!r}") from e

        return cls(
            role=role,
            parts=tuple(part_from_dict(p) for p in raw_parts),
            id=data.get("id") or str(uuid4()),
            created_at=created_at,
            metadata=data.get("metadata") or {},
        )
