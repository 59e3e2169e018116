"""Conversation log and unread counter.

The store is pure in-memory state. It knows nothing about storage or the
network: collaborators observe it through :meth:`MessageStore.subscribe` and
react to each change (the widget facade persists the log from there).
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterable

from chatlateral.widget.config import DEFAULT_WELCOME_MESSAGE
from chatlateral.widget.models import (
    DEFAULT_LOCALE,
    Message,
    MessageAction,
    MessageKind,
    MessageOrigin,
    format_time_label,
)

if TYPE_CHECKING:
    from chatlateral.widget.resolver import ResponseResolver

logger = logging.getLogger("chatlateral.widget")


class LogChange(str, Enum):
    """Kinds of change a store listener is notified about."""

    APPENDED = "appended"
    LOADED = "loaded"
    CLEARED = "cleared"


StoreListener = Callable[[LogChange, "Message | None"], None]


class MessageStore:
    """Ordered, append-only conversation log plus the unread badge counter.

    The unread counter counts agent messages appended while the widget is
    hidden and drops to zero whenever the widget becomes visible. It is never
    persisted.

    Attributes:
        welcome_message: Text of the agent message injected when an empty
            widget is opened.
        locale: Locale used to render the time label of new messages.
    """

    def __init__(
        self,
        welcome_message: str = DEFAULT_WELCOME_MESSAGE,
        *,
        resolver: ResponseResolver | None = None,
        locale: str = DEFAULT_LOCALE,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.welcome_message = welcome_message
        self.locale = locale
        self._resolver = resolver
        self._clock = clock or datetime.now
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self._messages: list[Message] = []
        self._ids: set[str] = set()
        self._unread = 0
        self._visible = False
        self._listeners: list[StoreListener] = []

    # -- queries ---------------------------------------------------------

    @property
    def messages(self) -> tuple[Message, ...]:
        """Snapshot of the log in insertion order."""
        return tuple(self._messages)

    @property
    def unread_count(self) -> int:
        return self._unread

    @property
    def visible(self) -> bool:
        return self._visible

    def __len__(self) -> int:
        return len(self._messages)

    # -- mutations -------------------------------------------------------

    def append(
        self,
        text: str | None,
        origin: MessageOrigin,
        kind: MessageKind = MessageKind.TEXT,
        image_payload: str | None = None,
        actions: Iterable[MessageAction] | None = None,
    ) -> Message:
        """Create a message stamped with a fresh id and the current time.

        Agent messages appended while the widget is hidden bump the unread
        counter.
        """
        message_id = self._id_factory()
        while message_id in self._ids:
            message_id = self._id_factory()

        message = Message(
            id=message_id,
            text=text or "",
            timestamp_label=format_time_label(self._clock(), self.locale),
            origin=MessageOrigin(origin),
            kind=MessageKind(kind),
            image_payload=image_payload,
            actions=tuple(actions) if actions is not None else None,
        )
        self._messages.append(message)
        self._ids.add(message.id)

        if message.origin is MessageOrigin.AGENT and not self._visible:
            self._unread += 1

        self._notify(LogChange.APPENDED, message)
        return message

    def load(self, messages: Iterable[Message]) -> None:
        """Replace the entire log verbatim. The unread counter is kept.

        Raises:
            ValueError: If two messages share an id.
        """
        loaded = list(messages)
        ids = {message.id for message in loaded}
        if len(ids) != len(loaded):
            raise ValueError("message ids must be unique within a log")

        self._messages = loaded
        self._ids = ids
        self._notify(LogChange.LOADED, None)

    def clear(self) -> None:
        """Empty the log. The unread counter is kept."""
        self._messages = []
        self._ids = set()
        self._notify(LogChange.CLEARED, None)

    def on_visibility_shown(self) -> None:
        """Handle the widget becoming visible.

        An empty log receives the welcome message, carrying the greeting
        entry's buttons when the resolver has one. The unread counter resets.
        """
        self._visible = True
        if not self._messages:
            actions = self._resolver.greeting_actions() if self._resolver else None
            self.append(self.welcome_message, MessageOrigin.AGENT, actions=actions)
        self._unread = 0

    def on_visibility_hidden(self) -> None:
        self._visible = False

    def set_unread(self, count: int) -> None:
        """Override the unread counter, as the host's ``setBadge`` does."""
        if count < 0:
            raise ValueError("unread count cannot be negative")
        self._unread = count

    # -- listeners -------------------------------------------------------

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a change listener. Returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, change: LogChange, message: Message | None) -> None:
        for listener in list(self._listeners):
            try:
                listener(change, message)
            except Exception:
                logger.exception("Store listener failed on %s", change.value)
