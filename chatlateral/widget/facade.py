"""Host-facing control surface of the chat widget.

:class:`ChatWidget` owns the message store, the response resolver and the
persistence and transport adapters of one widget mount. Host pages drive the
widget exclusively through its methods; the module-level :data:`chat_widget`
instance is the single embedding entry point.

Every store mutation is written through to storage by the facade itself (the
store never sees the storage backend), and user messages are published to
the relay when a transport is attached.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable

from chatlateral.config.settings import settings
from chatlateral.protocol import RelayEvent
from chatlateral.widget.attachments import AttachmentError, is_data_url, read_attachment
from chatlateral.widget.commands import CommandFunction, CommandRegistry, parse_command
from chatlateral.widget.config import (
    AgentStatus,
    ButtonLayout,
    ThemeMode,
    WidgetConfig,
    WidgetPosition,
    coerce_option,
)
from chatlateral.widget.models import (
    DEFAULT_LOCALE,
    Message,
    MessageAction,
    MessageKind,
    MessageOrigin,
)
from chatlateral.widget.persistence import FileStorage, KeyValueStorage, PersistenceAdapter
from chatlateral.widget.resolver import FALLBACK_REPLY, ResponseResolver, normalize
from chatlateral.widget.store import LogChange, MessageStore
from chatlateral.widget.transport import RelayTransport

logger = logging.getLogger("chatlateral.widget")

NewMessageCallback = Callable[[Message], None]


@dataclass(frozen=True)
class Dimensions:
    """Size of the open widget panel in pixels."""

    width: int = 360
    height: int = 480

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("width and height must be positive")


@dataclass(frozen=True)
class WidgetState:
    """Snapshot of everything a rendering collaborator needs to paint."""

    visible: bool
    unread_count: int
    chat_title: str
    theme: ThemeMode
    position: WidgetPosition
    dimensions: Dimensions
    locale: str
    agent_status: AgentStatus
    button_layout: ButtonLayout
    predefined_questions: tuple[str, ...]


def _when_mounted(method: Callable[..., Any]) -> Callable[..., Any]:
    """Turn a control call on an unmounted widget into a logged no-op."""

    @functools.wraps(method)
    def wrapper(self: ChatWidget, *args: Any, **kwargs: Any) -> Any:
        if self._store is None:
            logger.debug("Ignoring %s(): widget is not initialized", method.__name__)
            return None
        return method(self, *args, **kwargs)

    return wrapper


class ChatWidget:
    """Facade over one widget mount.

    Example:

        widget = ChatWidget()
        await widget.init({"welcomeMessage": "Oi!", "customResponses": {...}})
        widget.open()
        widget.send_message("Horário")
        await widget.destroy()
    """

    def __init__(self) -> None:
        self._config: WidgetConfig | None = None
        self._store: MessageStore | None = None
        self._resolver: ResponseResolver | None = None
        self._persistence: PersistenceAdapter | None = None
        self._transport: RelayTransport | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._commands = CommandRegistry()
        self._new_message_callbacks: list[NewMessageCallback] = []
        self._pending_commands: set[asyncio.Task[None]] = set()
        self._reset_presentation(WidgetConfig())

    def _reset_presentation(self, config: WidgetConfig) -> None:
        self._theme = config.theme
        self._position = config.position
        self._dimensions = Dimensions()
        self._locale = config.locale
        self._agent_status = AgentStatus.ONLINE
        self._button_layout = ButtonLayout.HORIZONTAL
        self._predefined_questions = list(config.predefined_questions)

    # -- lifecycle -------------------------------------------------------

    @property
    def mounted(self) -> bool:
        return self._store is not None

    @property
    def config(self) -> WidgetConfig | None:
        return self._config

    @property
    def store(self) -> MessageStore | None:
        return self._store

    @property
    def resolver(self) -> ResponseResolver | None:
        return self._resolver

    @property
    def transport(self) -> RelayTransport | None:
        return self._transport

    async def init(
        self,
        config: WidgetConfig | dict[str, Any] | None = None,
        *,
        storage: KeyValueStorage | None = None,
        transport: RelayTransport | None = None,
    ) -> None:
        """Mount the widget. Calling it again while mounted does nothing.

        Persisted custom responses take precedence over the configured ones,
        and a persisted conversation log is restored. When the configuration
        names an endpoint, the transport connects to it.

        Args:
            config: A :class:`WidgetConfig` or the host's option dictionary.
            storage: Storage backend. Defaults to files under
                ``settings.STORAGE_DIR`` scoped to ``config.namespace``.
            transport: Relay transport to use instead of the default one.

        Raises:
            ValueError: If the configuration is invalid.
        """
        if self.mounted:
            return

        if config is None:
            config = WidgetConfig()
        elif isinstance(config, dict):
            config = WidgetConfig.from_dict(config)

        resolver = ResponseResolver(config.custom_responses)
        persistence = PersistenceAdapter(
            storage or FileStorage(settings.STORAGE_DIR, config.namespace)
        )

        stored_responses = persistence.load_responses()
        if stored_responses:
            try:
                resolver.set_responses(stored_responses)
            except ValueError as exc:
                logger.error("Ignoring stored custom responses: %s", exc)
                resolver.set_responses(config.custom_responses)
        persistence.save_responses(resolver.mapping)

        store = MessageStore(
            config.welcome_message,
            resolver=resolver,
            locale=config.locale,
        )
        history = persistence.load_log()
        if history:
            try:
                store.load(history)
            except ValueError as exc:
                logger.error("Ignoring stored chat history: %s", exc)

        self._config = config
        self._resolver = resolver
        self._persistence = persistence
        self._store = store
        self._unsubscribe = store.subscribe(self._on_log_change)
        self._reset_presentation(config)

        if transport is None and config.endpoint:
            transport = RelayTransport(suppress_own_echo=config.suppress_own_echo)
        self._transport = transport
        if transport is not None:
            transport.on_event(self._on_relay_event)
            if config.endpoint:
                await transport.connect(config.endpoint)

        logger.info(
            "Chat widget mounted (namespace=%s, messages=%d, relay=%s)",
            config.namespace,
            len(store),
            config.endpoint or "none",
        )

    async def destroy(self) -> None:
        """Unmount the widget, closing the relay connection."""
        if not self.mounted:
            return

        if self._transport is not None:
            self._transport.on_event(None)
            await self._transport.disconnect()
        for task in list(self._pending_commands):
            task.cancel()
        self._pending_commands.clear()
        if self._unsubscribe is not None:
            self._unsubscribe()

        self._config = None
        self._store = None
        self._resolver = None
        self._persistence = None
        self._transport = None
        self._unsubscribe = None
        self._new_message_callbacks.clear()
        self._reset_presentation(WidgetConfig())
        logger.info("Chat widget destroyed")

    # -- visibility ------------------------------------------------------

    @_when_mounted
    def open(self) -> None:
        if self._store.visible:
            return
        self._store.on_visibility_shown()

    @_when_mounted
    def close(self) -> None:
        if not self._store.visible:
            return
        self._store.on_visibility_hidden()

    def show(self) -> None:
        self.open()

    def hide(self) -> None:
        self.close()

    def toggle(self) -> None:
        """Flip visibility, as clicking the launcher button does."""
        if self.is_open():
            self.close()
        else:
            self.open()

    def is_open(self) -> bool:
        return self._store is not None and self._store.visible

    # -- presentation ----------------------------------------------------

    @_when_mounted
    def toggle_theme(self) -> None:
        self._theme = ThemeMode.LIGHT if self._theme is ThemeMode.DARK else ThemeMode.DARK

    @_when_mounted
    def set_theme(self, mode: ThemeMode | str) -> None:
        self._theme = coerce_option(ThemeMode, mode, "theme")

    @_when_mounted
    def set_badge(self, count: int) -> None:
        self._store.set_unread(count)

    @_when_mounted
    def set_position(self, position: WidgetPosition | str) -> None:
        self._position = coerce_option(WidgetPosition, position, "position")

    @_when_mounted
    def resize(self, width: int, height: int) -> None:
        self._dimensions = Dimensions(width=width, height=height)

    @_when_mounted
    def set_agent_status(self, status: AgentStatus | str) -> None:
        self._agent_status = coerce_option(AgentStatus, status, "agent status")
        logger.info("Agent status set to %s", self._agent_status.value)

    @_when_mounted
    def set_locale(self, locale: str) -> None:
        """Change the locale used for the time labels of new messages."""
        if not locale:
            raise ValueError("locale cannot be empty")
        self._locale = locale
        self._store.locale = locale
        logger.info("Locale set to %s", locale)

    @_when_mounted
    def set_predefined_questions(self, questions: Iterable[str]) -> None:
        questions = list(questions)
        if not all(isinstance(q, str) for q in questions):
            raise ValueError("predefined questions must be strings")
        self._predefined_questions = questions

    @_when_mounted
    def set_button_layout(self, layout: ButtonLayout | str) -> None:
        self._button_layout = coerce_option(ButtonLayout, layout, "button layout")

    @_when_mounted
    def toggle_button_layout(self) -> None:
        if self._button_layout is ButtonLayout.HORIZONTAL:
            self._button_layout = ButtonLayout.VERTICAL
        else:
            self._button_layout = ButtonLayout.HORIZONTAL

    @property
    def state(self) -> WidgetState:
        return WidgetState(
            visible=self.is_open(),
            unread_count=self._store.unread_count if self._store else 0,
            chat_title=self._config.chat_title if self._config else WidgetConfig().chat_title,
            theme=self._theme,
            position=self._position,
            dimensions=self._dimensions,
            locale=self._locale if self._store else DEFAULT_LOCALE,
            agent_status=self._agent_status,
            button_layout=self._button_layout,
            predefined_questions=tuple(self._predefined_questions),
        )

    # -- conversation ----------------------------------------------------

    @property
    def messages(self) -> tuple[Message, ...]:
        return self._store.messages if self._store else ()

    @_when_mounted
    def load_history(self, messages: Iterable[Message | dict[str, Any]]) -> None:
        """Replace the conversation with host-supplied messages.

        Raises:
            ValueError: If a record is malformed or ids repeat.
        """
        self._store.load(
            m if isinstance(m, Message) else Message.from_dict(m) for m in messages
        )

    @_when_mounted
    def clear_history(self) -> None:
        self._store.clear()

    @_when_mounted
    def set_custom_responses(self, mapping: dict[str, Any]) -> None:
        """Replace the canned responses and persist them."""
        self._resolver.set_responses(mapping)
        self._persistence.save_responses(self._resolver.mapping)

    @_when_mounted
    def send_message(self, text: str) -> None:
        """Submit text as if the user typed it.

        Slash commands go to the registered command functions. Anything else
        is normalized, appended as a user message, published to the relay and
        answered from the custom responses (or the fallback reply).
        """
        if not text or not text.strip():
            return

        command = parse_command(text)
        if command is not None:
            self._run_command(text.strip(), *command)
            return

        utterance = normalize(text)
        self._store.append(utterance, MessageOrigin.USER)
        if self._transport is not None:
            self._transport.publish_text(utterance)

        reply = self._resolver.resolve(utterance)
        if reply is None:
            self._store.append(FALLBACK_REPLY, MessageOrigin.AGENT)
        else:
            self._store.append(reply.text, MessageOrigin.AGENT, actions=reply.actions)

    def click_action(self, action: MessageAction | str) -> None:
        """Re-submit an action button's text."""
        self.send_message(action.action if isinstance(action, MessageAction) else action)

    def ask_predefined_question(self, question: str) -> None:
        self.send_message(question)

    @_when_mounted
    def send_image(self, data_url: str) -> Message | None:
        """Append an already-encoded image as a user message and publish it."""
        if not is_data_url(data_url):
            logger.error("Rejected image payload: not a data URL")
            return None
        message = self._store.append(None, MessageOrigin.USER, MessageKind.IMAGE, data_url)
        if self._transport is not None:
            self._transport.publish_image(data_url)
        return message

    @_when_mounted
    def attach_file(self, path: str | Path, mime_type: str | None = None) -> Message | None:
        """Send an image file. Unreadable files are logged and nothing is sent."""
        try:
            data_url = read_attachment(path, mime_type)
        except AttachmentError as exc:
            logger.error("Failed to read attachment: %s", exc)
            return None
        return self.send_image(data_url)

    # -- host hooks ------------------------------------------------------

    def register_command(self, name: str, fn: CommandFunction) -> None:
        self._commands.register(name, fn)

    def on_new_message(self, callback: NewMessageCallback) -> Callable[[], None]:
        """Call ``callback`` with every appended message. Returns an unsubscriber."""
        self._new_message_callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._new_message_callbacks:
                self._new_message_callbacks.remove(callback)

        return unsubscribe

    # -- internals -------------------------------------------------------

    def _on_log_change(self, change: LogChange, message: Message | None) -> None:
        self._persistence.save_log(self._store.messages)
        if change is LogChange.APPENDED and message is not None:
            for callback in list(self._new_message_callbacks):
                try:
                    callback(message)
                except Exception:
                    logger.exception("New-message callback failed")

    def _on_relay_event(self, event: RelayEvent, payload: str) -> None:
        if self._store is None:
            return
        if event is RelayEvent.TEXT_MESSAGE:
            self._store.append(payload, MessageOrigin.AGENT)
        elif is_data_url(payload):
            self._store.append(None, MessageOrigin.AGENT, MessageKind.IMAGE, payload)
        else:
            logger.warning("Ignoring relay image that is not a data URL")

    def _run_command(self, raw: str, name: str, args: list[str]) -> None:
        self._store.append(raw, MessageOrigin.USER)
        try:
            result = self._commands.execute(name, args)
        except Exception:
            logger.exception("Command /%s failed", name)
            return

        if not inspect.isawaitable(result):
            self._store.append(str(result), MessageOrigin.AGENT)
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error("Command /%s is asynchronous but no event loop is running", name)
            close = getattr(result, "close", None)
            if close is not None:
                close()
            return
        task = loop.create_task(self._finish_command(name, result))
        self._pending_commands.add(task)
        task.add_done_callback(self._pending_commands.discard)

    async def _finish_command(self, name: str, pending: Awaitable[str]) -> None:
        try:
            reply = await pending
        except Exception:
            logger.exception("Command /%s failed", name)
            return
        if self._store is not None:
            self._store.append(str(reply), MessageOrigin.AGENT)


# Module-level singleton
chat_widget = ChatWidget()
