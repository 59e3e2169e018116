"""Tests for chatlateral.config.settings."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError


class TestSettings:
    """Test the Settings pydantic-settings class."""

    def _make(self, **kwargs):
        """Create a Settings instance with env isolation."""
        from chatlateral.config.settings import Settings
        return Settings(**kwargs)

    # -- defaults --

    def test_defaults(self):
        s = self._make()
        assert s.RELAY_HOST == "0.0.0.0"
        assert s.RELAY_PORT == 3000
        assert s.RELAY_IMAGES is True
        assert s.MAX_FRAME_BYTES == 5_000_000
        assert s.CORS_ORIGINS == ["*"]
        assert s.STORAGE_DIR == ".chatlateral"
        assert s.SUPPRESS_OWN_ECHO is False
        assert s.LOG_LEVEL == "INFO"

    # -- validators --

    def test_log_level_is_uppercased(self):
        s = self._make(LOG_LEVEL="debug")
        assert s.LOG_LEVEL == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            self._make(LOG_LEVEL="chatty")

    def test_port_must_be_positive(self):
        with pytest.raises(ValidationError):
            self._make(RELAY_PORT=0)

    def test_frame_limit_must_be_positive(self):
        with pytest.raises(ValidationError):
            self._make(MAX_FRAME_BYTES=-1)

    # -- environment --

    def test_env_overrides(self):
        env = {
            "RELAY_PORT": "4000",
            "RELAY_IMAGES": "false",
            "SUPPRESS_OWN_ECHO": "true",
            "STORAGE_DIR": "/tmp/chat",
        }
        with patch.dict(os.environ, env):
            s = self._make()
        assert s.RELAY_PORT == 4000
        assert s.RELAY_IMAGES is False
        assert s.SUPPRESS_OWN_ECHO is True
        assert s.STORAGE_DIR == "/tmp/chat"

    def test_cors_origins_from_env_json(self):
        with patch.dict(os.environ, {"CORS_ORIGINS": '["https://loja.example"]'}):
            s = self._make()
        assert s.CORS_ORIGINS == ["https://loja.example"]

    def test_unknown_env_keys_ignored(self):
        with patch.dict(os.environ, {"NOT_A_SETTING": "x"}):
            s = self._make()
        assert not hasattr(s, "NOT_A_SETTING")

    def test_module_instance(self):
        from chatlateral.config import Settings, settings
        assert isinstance(settings, Settings)


class TestWidgetConfig:
    """Test the widget option parsing that sits on top of the settings."""

    def _make(self, options):
        from chatlateral.widget.config import WidgetConfig
        return WidgetConfig.from_dict(options)

    def test_defaults(self):
        from chatlateral.widget import ThemeMode, WidgetPosition
        c = self._make({})
        assert c.theme is ThemeMode.LIGHT
        assert c.position is WidgetPosition.BOTTOM_RIGHT
        assert c.welcome_message == "Olá! Como posso ajudar você hoje?"
        assert c.chat_title == "Atendimento Online"
        assert c.locale == "pt-BR"
        assert c.endpoint is None
        assert c.namespace == "default"
        assert c.predefined_questions == []
        assert c.custom_responses == {}

    def test_camel_case_keys(self):
        c = self._make({
            "welcomeMessage": "Oi",
            "chatTitle": "Loja",
            "botAvatarUrl": "https://example.com/bot.png",
            "predefinedQuestions": ["A?"],
            "customResponses": {"a": "b"},
            "position": "top-left",
        })
        assert c.welcome_message == "Oi"
        assert c.chat_title == "Loja"
        assert c.bot_avatar_url == "https://example.com/bot.png"
        assert c.predefined_questions == ["A?"]
        assert c.custom_responses == {"a": "b"}
        assert c.position.value == "top-left"

    def test_empty_socket_url_means_offline(self):
        c = self._make({"socketUrl": ""})
        assert c.endpoint is None

    def test_echo_suppression_defaults_to_settings(self):
        from chatlateral.config.settings import settings
        with patch.object(settings, "SUPPRESS_OWN_ECHO", True):
            c = self._make({})
        assert c.suppress_own_echo is True

    @pytest.mark.parametrize(
        "options",
        [
            {"theme": "sepia"},
            {"position": "center"},
            {"endpoint": "http://relay.test"},
            {"namespace": ""},
            {"predefinedQuestions": [1]},
        ],
    )
    def test_invalid_options(self, options):
        with pytest.raises(ValueError):
            self._make(options)
