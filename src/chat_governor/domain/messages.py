"""Conversation messages and the windowing result.

Purpose
-------
Provide immutable representations of the conversation history handed in by the
host application and of the reduced view produced by context windowing.

Contents
--------
* :class:`ContentPart` - one element of structured message content.
* :class:`ConversationMessage` - role plus plain or structured content.
* :class:`WindowResult` - optional summary plus the retained message tail.

System Role
-----------
Domain layer. The governor only reads messages; it never stores them.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

TEXT_PART = "text"


@dataclass(slots=True, frozen=True)
class ContentPart:
    """Typed fragment of structured content (text, image, tool call, ...)."""

    type: str
    text: str | None = None
    data: Mapping[str, Any] | None = None

    @property
    def is_text(self) -> bool:
        """Return ``True`` when the part carries user-visible text."""

        return self.type == TEXT_PART and self.text is not None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ContentPart":
        part_type = str(payload.get("type", ""))
        text = payload.get("text")
        extra = {key: value for key, value in payload.items() if key not in {"type", "text"}}
        return cls(type=part_type, text=text if isinstance(text, str) else None, data=extra or None)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type}
        if self.text is not None:
            data["text"] = self.text
        if self.data:
            data.update(self.data)
        return data


@dataclass(slots=True, frozen=True)
class ConversationMessage:
    """A single turn of the conversation.

    Attributes
    ----------
    role:
        Speaker role (``user``, ``assistant``, ``system``, ``tool``).
    content:
        Either a plain string or an ordered tuple of :class:`ContentPart`.
    position:
        Ordinal position in the caller's store; informational only, order is
        always taken from the sequence itself.
    """

    role: str
    content: str | tuple[ContentPart, ...]
    position: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.content, str):
            object.__setattr__(self, "content", tuple(self.content))

    def text(self) -> str:
        """Return the flattened text content, dropping non-text parts.

        Examples
        --------
        >>> msg = ConversationMessage("user", (ContentPart("text", "Hi "), ContentPart("image"), ContentPart("text", "there")))
        >>> msg.text()
        'Hi there'
        """

        if isinstance(self.content, str):
            return self.content
        return "".join(part.text for part in self.content if part.is_text and part.text is not None)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], *, position: int | None = None) -> "ConversationMessage":
        """Build a message from ``{"role", "content"}`` or ``{"role", "parts"}`` mappings."""

        if "role" not in payload:
            raise ValueError("message payload requires a 'role'")
        raw = payload.get("content", payload.get("parts", ""))
        content: str | tuple[ContentPart, ...]
        if raw is None:
            content = ""
        elif isinstance(raw, str):
            content = raw
        elif isinstance(raw, Sequence):
            content = tuple(ContentPart.from_dict(part) for part in raw if isinstance(part, Mapping))
        else:
            raise ValueError(f"unsupported message content: {type(raw).__name__}")
        pos = payload.get("position", position)
        return cls(role=str(payload["role"]), content=content, position=pos if isinstance(pos, int) else None)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"role": self.role}
        if isinstance(self.content, str):
            data["content"] = self.content
        else:
            data["content"] = [part.to_dict() for part in self.content]
        if self.position is not None:
            data["position"] = self.position
        return data


@dataclass(slots=True, frozen=True)
class WindowResult:
    """Reduced conversation returned by :class:`ContextWindower`.

    ``summary`` is ``None`` when the conversation fit the window, ``""`` when
    summarisation was skipped or failed, and the generated text otherwise.
    """

    summary: str | None
    messages: tuple[ConversationMessage, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "messages", tuple(self.messages))

    @property
    def truncated(self) -> bool:
        """Return ``True`` when older messages were cut from the window."""

        return self.summary is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "messages": [message.to_dict() for message in self.messages],
        }


__all__ = ["ContentPart", "ConversationMessage", "TEXT_PART", "WindowResult"]
