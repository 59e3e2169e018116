"""Wire framing shared by the widget transport and the relay.

Each WebSocket text frame carries one event as a JSON object::

    {"event": "text_message", "data": "olá"}

There is no message id, sender id or acknowledgement; the relay forwards
frames verbatim.
"""

from __future__ import annotations

import json
from enum import Enum


class RelayEvent(str, Enum):
    """Event names understood by the relay."""

    TEXT_MESSAGE = "text_message"
    """Plain chat text."""

    IMAGE_MESSAGE = "image_message"
    """Image encoded as a data URL."""


class FrameError(ValueError):
    """Raised when a frame cannot be decoded."""


def encode_frame(event: RelayEvent, payload: str) -> str:
    """Serialize an event and its payload into a text frame."""
    return json.dumps({"event": event.value, "data": payload}, ensure_ascii=False)


def decode_frame(raw: str | bytes) -> tuple[RelayEvent, str]:
    """Parse a text frame.

    Raises:
        FrameError: If the frame is not JSON, names an unknown event, or
            carries a non-string payload.
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise FrameError(f"invalid JSON frame: {exc}") from exc

    if not isinstance(data, dict):
        raise FrameError("frame must be a JSON object")

    try:
        event = RelayEvent(data.get("event"))
    except ValueError:
        raise FrameError(f"unknown event: {data.get('event')!r}") from None

    payload = data.get("data")
    if not isinstance(payload, str):
        raise FrameError("frame data must be a string")

    return event, payload
