"""Conversation data model for the chat widget.

Messages are immutable once created. The dictionary form produced by
:meth:`Message.to_dict` is the record stored in the persisted log snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Iterable

DEFAULT_LOCALE = "pt-BR"

# Locales whose time-of-day convention is a 12-hour clock
_TWELVE_HOUR_LOCALES = {"en", "en-us"}


class MessageOrigin(str, Enum):
    """Who produced a message."""

    USER = "user"
    AGENT = "agent"


class MessageKind(str, Enum):
    """Content type of a message."""

    TEXT = "text"
    IMAGE = "image"


@dataclass(frozen=True)
class MessageAction:
    """A button attached to an agent message.

    Clicking it re-submits ``action`` as if the user had typed it.

    Attributes:
        label: Text shown on the button.
        action: Text submitted when the button is clicked.
    """

    label: str
    action: str

    def to_dict(self) -> dict[str, str]:
        return {"label": self.label, "action": self.action}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MessageAction:
        """Build an action from ``{label, action}`` or the older ``{text, action}``."""
        label = data.get("label", data.get("text"))
        action = data.get("action")
        if not isinstance(label, str) or not isinstance(action, str):
            raise ValueError(f"invalid action record: {data!r}")
        return cls(label=label, action=action)


def parse_actions(raw: Iterable[Any] | None) -> tuple[MessageAction, ...] | None:
    """Normalize a sequence of action records into a tuple of actions."""
    if raw is None:
        return None
    actions = []
    for item in raw:
        if isinstance(item, MessageAction):
            actions.append(item)
        elif isinstance(item, dict):
            actions.append(MessageAction.from_dict(item))
        else:
            raise ValueError(f"invalid action record: {item!r}")
    return tuple(actions)


def format_time_label(moment: datetime, locale: str = DEFAULT_LOCALE) -> str:
    """Render the time of day the way the viewer's locale writes it."""
    if locale.lower() in _TWELVE_HOUR_LOCALES:
        return moment.strftime("%I:%M %p")
    return moment.strftime("%H:%M")


@dataclass(frozen=True)
class Message:
    """One conversational turn.

    Attributes:
        id: Unique identifier within a log, assigned at creation.
        text: Textual content; empty for image messages.
        timestamp_label: Time of day rendered at creation time.
        origin: Whether the user or the agent produced the message.
        kind: Text or image.
        image_payload: Data URL, present only for image messages.
        actions: Buttons attached to an agent message.
    """

    id: str
    text: str
    timestamp_label: str
    origin: MessageOrigin
    kind: MessageKind = MessageKind.TEXT
    image_payload: str | None = None
    actions: tuple[MessageAction, ...] | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("id is required")
        if self.kind is MessageKind.IMAGE and not self.image_payload:
            raise ValueError("image messages require an image_payload")

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted record."""
        return {
            "id": self.id,
            "text": self.text,
            "timestamp_label": self.timestamp_label,
            "origin": self.origin.value,
            "kind": self.kind.value,
            "image_payload": self.image_payload,
            "actions": (
                [action.to_dict() for action in self.actions]
                if self.actions is not None
                else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        """Rebuild a message from a persisted or host-supplied record.

        Records written by earlier widget versions (``texto``, ``hora``,
        ``origem``, ``tipo``, ``dataUrl``, ``buttons``) are accepted too.
        Messages without an origin are treated as agent messages.

        Raises:
            ValueError: If the record is missing its id or has unknown
                origin/kind values.
        """
        origin = data.get("origin", data.get("origem")) or MessageOrigin.AGENT.value
        origin = {"usuario": "user", "agente": "agent"}.get(origin, origin)

        kind = data.get("kind", data.get("tipo")) or MessageKind.TEXT.value
        kind = {"texto": "text", "imagem": "image"}.get(kind, kind)

        return cls(
            id=data.get("id") or "",
            text=data.get("text", data.get("texto")) or "",
            timestamp_label=data.get("timestamp_label", data.get("hora")) or "",
            origin=MessageOrigin(origin),
            kind=MessageKind(kind),
            image_payload=data.get("image_payload", data.get("dataUrl")),
            actions=parse_actions(data.get("actions", data.get("buttons"))),
        )


@dataclass(frozen=True)
class ResolvedReply:
    """A canned reply found for a user utterance."""

    text: str
    actions: tuple[MessageAction, ...] | None = None
