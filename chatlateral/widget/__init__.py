"""Embeddable chat widget core.

This package holds the conversation state machine behind the floating chat
widget: the message store, canned-response resolver, persistence and relay
transport adapters, and the control surface the host page drives.

Example usage:

    from chatlateral.widget import InMemoryStorage, chat_widget

    await chat_widget.init(
        {
            "welcomeMessage": "Olá! Como posso ajudar você hoje?",
            "customResponses": {
                "horário": {
                    "text": "Atendemos das 9h às 18h",
                    "actions": [{"label": "Falar com atendente", "action": "atendente"}],
                },
            },
            "endpoint": "ws://localhost:3000/ws",
        },
        storage=InMemoryStorage(),
    )
    chat_widget.open()
    chat_widget.send_message("Horário")
"""

from chatlateral.widget.attachments import AttachmentError, encode_data_url, read_attachment
from chatlateral.widget.commands import CommandRegistry, parse_command
from chatlateral.widget.config import (
    DEFAULT_CHAT_TITLE,
    DEFAULT_WELCOME_MESSAGE,
    AgentStatus,
    ButtonLayout,
    ThemeMode,
    WidgetConfig,
    WidgetPosition,
)
from chatlateral.widget.facade import ChatWidget, Dimensions, WidgetState, chat_widget
from chatlateral.widget.models import (
    Message,
    MessageAction,
    MessageKind,
    MessageOrigin,
    ResolvedReply,
)
from chatlateral.widget.persistence import (
    CHAT_STORAGE_KEY,
    CUSTOM_RESPONSES_STORAGE_KEY,
    FileStorage,
    InMemoryStorage,
    KeyValueStorage,
    PersistenceAdapter,
    StorageError,
)
from chatlateral.widget.resolver import FALLBACK_REPLY, ResponseResolver
from chatlateral.widget.store import LogChange, MessageStore
from chatlateral.widget.transport import RelayTransport

__all__ = [
    # Configuration
    "WidgetConfig",
    "ThemeMode",
    "WidgetPosition",
    "AgentStatus",
    "ButtonLayout",
    "DEFAULT_CHAT_TITLE",
    "DEFAULT_WELCOME_MESSAGE",
    # Data model
    "Message",
    "MessageAction",
    "MessageKind",
    "MessageOrigin",
    "ResolvedReply",
    # Core
    "MessageStore",
    "LogChange",
    "ResponseResolver",
    "FALLBACK_REPLY",
    # Persistence
    "KeyValueStorage",
    "InMemoryStorage",
    "FileStorage",
    "PersistenceAdapter",
    "StorageError",
    "CHAT_STORAGE_KEY",
    "CUSTOM_RESPONSES_STORAGE_KEY",
    # Transport
    "RelayTransport",
    # Attachments and commands
    "AttachmentError",
    "encode_data_url",
    "read_attachment",
    "CommandRegistry",
    "parse_command",
    # Control surface
    "ChatWidget",
    "Dimensions",
    "WidgetState",
    "chat_widget",
]
