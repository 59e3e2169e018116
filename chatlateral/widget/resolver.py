"""Canned-response lookup for user utterances."""

from __future__ import annotations

from typing import Any

from chatlateral.widget.models import MessageAction, ResolvedReply, parse_actions

FALLBACK_REPLY = "Desculpe, não entendi sua pergunta."

# Trigger whose actions are attached to the welcome message
GREETING_TRIGGER = "olá"


def normalize(raw: str) -> str:
    """Trim surrounding whitespace and lowercase."""
    return raw.strip().lower()


class ResponseResolver:
    """Exact-match resolver over the custom response mapping.

    Keys are stored normalized, so ``"Horário "`` and ``"horário"`` name the
    same trigger. Values are either a reply string or a structured reply
    ``{"text": str, "actions": [{"label": str, "action": str}, ...]}``.
    """

    def __init__(self, mapping: dict[str, Any] | None = None) -> None:
        self._mapping: dict[str, Any] = {}
        if mapping:
            self.set_responses(mapping)

    @property
    def mapping(self) -> dict[str, Any]:
        """Copy of the current mapping, suitable for persisting."""
        return dict(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def set_responses(self, mapping: dict[str, Any]) -> None:
        """Replace the whole mapping. Later keys win over earlier duplicates."""
        self._mapping = {}
        for trigger, reply in mapping.items():
            self.add_response(trigger, reply)

    def add_response(self, trigger: str, reply: str | dict[str, Any]) -> None:
        """Insert or overwrite one trigger.

        Raises:
            ValueError: If the trigger is blank or the reply is malformed.
        """
        key = normalize(trigger)
        if not key:
            raise ValueError("trigger cannot be empty")
        self._to_reply(reply)
        self._mapping[key] = reply

    def remove_response(self, trigger: str) -> bool:
        """Remove a trigger. Returns True if it existed."""
        return self._mapping.pop(normalize(trigger), None) is not None

    def resolve(self, raw_input: str) -> ResolvedReply | None:
        """Look up the reply for an utterance, or None when nothing matches."""
        key = normalize(raw_input)
        if key not in self._mapping:
            return None
        return self._to_reply(self._mapping[key])

    def greeting_actions(self) -> tuple[MessageAction, ...] | None:
        """Actions of the greeting entry, if it is a structured reply."""
        reply = self.resolve(GREETING_TRIGGER)
        return reply.actions if reply is not None else None

    @staticmethod
    def _to_reply(value: Any) -> ResolvedReply:
        if isinstance(value, str):
            return ResolvedReply(text=value, actions=None)
        if isinstance(value, dict) and isinstance(value.get("text"), str):
            actions = parse_actions(value.get("actions", value.get("buttons")))
            return ResolvedReply(text=value["text"], actions=actions)
        raise ValueError(f"invalid custom response: {value!r}")
