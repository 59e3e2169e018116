"""Tests for slash commands, image attachments and wire framing."""

import pytest

from chatlateral.protocol import FrameError, RelayEvent, decode_frame, encode_frame
from chatlateral.widget.attachments import (
    AttachmentError,
    encode_data_url,
    is_data_url,
    read_attachment,
)
from chatlateral.widget.commands import CommandRegistry, parse_command, unknown_command_reply

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"


# =============================================================================
# Commands
# =============================================================================

class TestParseCommand:
    """Tests for parse_command()."""

    def test_plain_text_is_not_a_command(self):
        assert parse_command("olá") is None

    def test_name_and_args(self):
        assert parse_command("  /pedido 123 urgente ") == ("pedido", ["123", "urgente"])

    def test_bare_slash_is_not_a_command(self):
        assert parse_command("/") is None


class TestCommandRegistry:
    """Tests for CommandRegistry."""

    def test_execute_registered_command(self):
        registry = CommandRegistry()
        registry.register("eco", lambda args: " ".join(args))

        assert registry.execute("eco", ["a", "b"]) == "a b"

    def test_leading_slash_is_stripped_on_register(self):
        registry = CommandRegistry()
        registry.register("/ajuda", lambda args: "ok")

        assert "ajuda" in registry
        assert registry.names() == ["ajuda"]

    def test_unknown_command_reply(self):
        registry = CommandRegistry()

        assert registry.execute("xyz", []) == "Comando “/xyz” não reconhecido."
        assert unknown_command_reply("xyz") == "Comando “/xyz” não reconhecido."

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            CommandRegistry().register("/", lambda args: "")

    def test_unregister(self):
        registry = CommandRegistry()
        registry.register("a", lambda args: "")

        assert registry.unregister("/a") is True
        assert registry.unregister("a") is False
        assert "a" not in registry


# =============================================================================
# Attachments
# =============================================================================

class TestAttachments:
    """Tests for data URL encoding of image attachments."""

    def test_encode_data_url(self):
        assert encode_data_url(b"abc", "image/png") == "data:image/png;base64,YWJj"

    def test_encode_rejects_non_image(self):
        with pytest.raises(AttachmentError, match="unsupported"):
            encode_data_url(b"abc", "application/pdf")

    def test_encode_rejects_empty(self):
        with pytest.raises(AttachmentError, match="empty"):
            encode_data_url(b"", "image/png")

    def test_read_attachment_guesses_type(self, tmp_path):
        path = tmp_path / "foto.png"
        path.write_bytes(PNG_BYTES)

        data_url = read_attachment(path)

        assert data_url.startswith("data:image/png;base64,")
        assert is_data_url(data_url)

    def test_read_attachment_explicit_type(self, tmp_path):
        path = tmp_path / "sem_extensao"
        path.write_bytes(PNG_BYTES)

        assert read_attachment(path, "image/webp").startswith("data:image/webp;base64,")

    def test_read_missing_file(self, tmp_path):
        with pytest.raises(AttachmentError, match="cannot read"):
            read_attachment(tmp_path / "nada.png")

    def test_read_unknown_type(self, tmp_path):
        path = tmp_path / "arquivo"
        path.write_bytes(b"x")

        with pytest.raises(AttachmentError, match="cannot determine"):
            read_attachment(path)

    def test_is_data_url(self):
        assert is_data_url("data:image/png;base64,AAAA")
        assert not is_data_url("https://example.com/a.png")


# =============================================================================
# Framing
# =============================================================================

class TestFraming:
    """Tests for the JSON event frame."""

    def test_encode_frame(self):
        frame = encode_frame(RelayEvent.TEXT_MESSAGE, "olá")

        assert frame == '{"event": "text_message", "data": "olá"}'

    def test_decode_frame(self):
        frame = encode_frame(RelayEvent.IMAGE_MESSAGE, "data:image/png;base64,AA")

        assert decode_frame(frame) == (RelayEvent.IMAGE_MESSAGE, "data:image/png;base64,AA")

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            "[1, 2]",
            '{"event": "typing", "data": "x"}',
            '{"event": "text_message", "data": 5}',
            '{"event": "text_message"}',
        ],
    )
    def test_decode_rejects_malformed(self, raw):
        with pytest.raises(FrameError):
            decode_frame(raw)

    def test_frame_error_is_value_error(self):
        assert issubclass(FrameError, ValueError)
