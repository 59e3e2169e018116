"""Chat widget configuration.

This module defines the configuration dataclass accepted by the widget's
``init`` entry point, together with the enumerations for the presentation
options the host can choose from.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from chatlateral.config.settings import settings
from chatlateral.widget.models import DEFAULT_LOCALE

DEFAULT_WELCOME_MESSAGE = "Olá! Como posso ajudar você hoje?"
DEFAULT_CHAT_TITLE = "Atendimento Online"


class ThemeMode(str, Enum):
    """Colour scheme of the widget."""

    LIGHT = "light"
    DARK = "dark"


class WidgetPosition(str, Enum):
    """Corner of the viewport the widget is anchored to."""

    BOTTOM_RIGHT = "bottom-right"
    BOTTOM_LEFT = "bottom-left"
    TOP_RIGHT = "top-right"
    TOP_LEFT = "top-left"


class AgentStatus(str, Enum):
    """Availability shown for the agent."""

    ONLINE = "online"
    OFFLINE = "offline"


class ButtonLayout(str, Enum):
    """Arrangement of action buttons under agent messages."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


def coerce_option(enum_cls: type[Enum], value: Any, name: str) -> Any:
    """Convert a raw option value into its enum member or raise ValueError."""
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValueError(f"Invalid {name} {value!r}. Must be one of: {allowed}") from None


@dataclass
class WidgetConfig:
    """Configuration for one widget mount.

    Attributes:
        theme: Initial colour scheme. Defaults to light.
        welcome_message: Agent message shown when an empty widget is opened.
        chat_title: Title displayed in the widget header.
        bot_avatar_url: Optional avatar image for agent messages.
        user_avatar_url: Optional avatar image for user messages.
        predefined_questions: Quick questions offered to the user. Never
            persisted; always sourced from the host.
        custom_responses: Mapping from trigger text to a reply string or a
            ``{"text": ..., "actions": [...]}`` object.
        position: Corner the widget is anchored to.
        endpoint: WebSocket URL of the relay. When unset the widget works
            offline with canned responses only.
        locale: Locale used to render message times.
        namespace: Storage scope for the persisted log and responses. One
            namespace per embedding origin.
        suppress_own_echo: Drop relay echoes of messages this widget sent.
    """

    theme: ThemeMode = ThemeMode.LIGHT
    welcome_message: str = DEFAULT_WELCOME_MESSAGE
    chat_title: str = DEFAULT_CHAT_TITLE
    bot_avatar_url: str | None = None
    user_avatar_url: str | None = None
    predefined_questions: list[str] = field(default_factory=list)
    custom_responses: dict[str, Any] = field(default_factory=dict)
    position: WidgetPosition = WidgetPosition.BOTTOM_RIGHT
    endpoint: str | None = None
    locale: str = DEFAULT_LOCALE
    namespace: str = "default"
    suppress_own_echo: bool = field(default_factory=lambda: settings.SUPPRESS_OWN_ECHO)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self.theme = coerce_option(ThemeMode, self.theme, "theme")
        self.position = coerce_option(WidgetPosition, self.position, "position")
        if not self.namespace:
            raise ValueError("namespace is required")
        if not self.locale:
            raise ValueError("locale is required")
        if self.endpoint is not None and not self.endpoint.startswith(("ws://", "wss://")):
            raise ValueError("endpoint must be a ws:// or wss:// URL")
        if not all(isinstance(q, str) for q in self.predefined_questions):
            raise ValueError("predefined_questions must be strings")

    @classmethod
    def from_dict(cls, options: dict[str, Any]) -> WidgetConfig:
        """Build a configuration from host options.

        Accepts the camelCase keys of the embedding API (``welcomeMessage``,
        ``chatTitle``, ``customResponses`` ...). ``tema`` is accepted as an
        alias of ``theme``. Unknown keys are ignored.
        """
        keys = {
            "theme": "theme",
            "tema": "theme",
            "welcomeMessage": "welcome_message",
            "chatTitle": "chat_title",
            "botAvatarUrl": "bot_avatar_url",
            "userAvatarUrl": "user_avatar_url",
            "predefinedQuestions": "predefined_questions",
            "customResponses": "custom_responses",
            "position": "position",
            "endpoint": "endpoint",
            "socketUrl": "endpoint",
            "locale": "locale",
            "namespace": "namespace",
            "suppressOwnEcho": "suppress_own_echo",
        }
        kwargs: dict[str, Any] = {}
        for key, value in options.items():
            target = keys.get(key)
            if target is not None and value is not None:
                kwargs[target] = value
        # An empty socketUrl means "no relay"
        if not kwargs.get("endpoint"):
            kwargs.pop("endpoint", None)
        return cls(**kwargs)
