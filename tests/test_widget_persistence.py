"""Tests for chat widget persistence.

Tests cover:
- InMemoryStorage and FileStorage backends
- Log and response round-trips through the PersistenceAdapter
- Best-effort behavior on corrupt data and failing backends
"""

import json
from unittest.mock import MagicMock

import pytest

from chatlateral.widget import (
    CHAT_STORAGE_KEY,
    CUSTOM_RESPONSES_STORAGE_KEY,
    FileStorage,
    InMemoryStorage,
    Message,
    MessageAction,
    MessageKind,
    MessageOrigin,
    PersistenceAdapter,
    StorageError,
)


def sample_log() -> list[Message]:
    return [
        Message(id="1", text="Olá", timestamp_label="10:00", origin=MessageOrigin.USER),
        Message(
            id="2",
            text="Oi! Em que posso ajudar?",
            timestamp_label="10:00",
            origin=MessageOrigin.AGENT,
            actions=(MessageAction(label="Horário", action="horário"),),
        ),
        Message(
            id="3",
            text="",
            timestamp_label="10:01",
            origin=MessageOrigin.USER,
            kind=MessageKind.IMAGE,
            image_payload="data:image/png;base64,iVBORw0KGgoAAAANSUhEUg==",
        ),
    ]


# =============================================================================
# Backends
# =============================================================================

class TestInMemoryStorage:
    """Tests for the dictionary-backed storage."""

    def test_get_missing_returns_none(self):
        assert InMemoryStorage().get_item("nada") is None

    def test_set_get_remove(self):
        storage = InMemoryStorage()

        storage.set_item("k", "v")
        assert storage.get_item("k") == "v"
        assert len(storage) == 1

        storage.remove_item("k")
        storage.remove_item("k")
        assert storage.get_item("k") is None


class TestFileStorage:
    """Tests for the file-per-key storage."""

    def test_writes_under_namespace_directory(self, tmp_path):
        storage = FileStorage(tmp_path, "loja")

        storage.set_item(CHAT_STORAGE_KEY, "[]")

        assert (tmp_path / "loja" / "chat-widget-messages.json").read_text() == "[]"
        assert storage.get_item(CHAT_STORAGE_KEY) == "[]"

    def test_namespaces_are_isolated(self, tmp_path):
        FileStorage(tmp_path, "a").set_item("k", "1")

        assert FileStorage(tmp_path, "b").get_item("k") is None

    def test_namespace_is_sanitized(self, tmp_path):
        storage = FileStorage(tmp_path, "../fora")

        storage.set_item("k", "1")

        assert storage.directory.parent == tmp_path
        assert storage.get_item("k") == "1"

    def test_missing_key_returns_none(self, tmp_path):
        assert FileStorage(tmp_path).get_item("nada") is None

    def test_overwrite_leaves_no_temp_file(self, tmp_path):
        storage = FileStorage(tmp_path)

        storage.set_item("k", "1")
        storage.set_item("k", "2")

        assert storage.get_item("k") == "2"
        assert list(storage.directory.glob("*.tmp")) == []

    def test_remove_missing_key_is_ignored(self, tmp_path):
        FileStorage(tmp_path).remove_item("nada")

    def test_empty_namespace_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="namespace"):
            FileStorage(tmp_path, "")

    def test_unwritable_root_raises_storage_error(self, tmp_path):
        blocker = tmp_path / "arquivo"
        blocker.write_text("x")
        storage = FileStorage(blocker, "default")

        with pytest.raises(StorageError, match="cannot write"):
            storage.set_item("k", "v")


# =============================================================================
# PersistenceAdapter
# =============================================================================

class TestPersistenceAdapter:
    """Tests for best-effort log and response persistence."""

    def test_log_round_trip_in_memory(self):
        adapter = PersistenceAdapter(InMemoryStorage())
        log = sample_log()

        adapter.save_log(log)

        assert adapter.load_log() == log

    def test_log_round_trip_on_disk(self, tmp_path):
        log = sample_log()
        PersistenceAdapter(FileStorage(tmp_path)).save_log(log)

        assert PersistenceAdapter(FileStorage(tmp_path)).load_log() == log

    def test_log_is_stored_as_json_array(self):
        storage = InMemoryStorage()

        PersistenceAdapter(storage).save_log(sample_log()[:1])

        records = json.loads(storage.get_item(CHAT_STORAGE_KEY))
        assert records[0]["text"] == "Olá"
        assert records[0]["origin"] == "user"

    def test_missing_log_loads_empty(self):
        assert PersistenceAdapter(InMemoryStorage()).load_log() == []

    def test_corrupt_log_loads_empty(self, caplog):
        storage = InMemoryStorage()
        storage.set_item(CHAT_STORAGE_KEY, "{not json")

        assert PersistenceAdapter(storage).load_log() == []
        assert "Failed to load chat history" in caplog.text

    def test_non_array_log_loads_empty(self):
        storage = InMemoryStorage()
        storage.set_item(CHAT_STORAGE_KEY, '{"id": "1"}')

        assert PersistenceAdapter(storage).load_log() == []

    def test_invalid_record_is_skipped(self, caplog):
        storage = InMemoryStorage()
        storage.set_item(CHAT_STORAGE_KEY, json.dumps([
            {"id": "1", "origin": "robot"},
            {"id": "2", "texto": "Olá", "hora": "10:00", "origem": "usuario"},
            "not a record",
        ]))

        log = PersistenceAdapter(storage).load_log()

        assert [message.id for message in log] == ["2"]
        assert log[0].text == "Olá"
        assert caplog.text.count("Skipping invalid chat record") == 2

    def test_responses_round_trip(self):
        adapter = PersistenceAdapter(InMemoryStorage())
        mapping = {
            "horário": "Atendemos das 9h às 18h",
            "olá": {"text": "Oi", "actions": [{"label": "Preço", "action": "preço"}]},
        }

        adapter.save_responses(mapping)

        assert adapter.load_responses() == mapping

    def test_non_object_responses_load_empty(self):
        storage = InMemoryStorage()
        storage.set_item(CUSTOM_RESPONSES_STORAGE_KEY, "[1, 2]")

        assert PersistenceAdapter(storage).load_responses() == {}

    def test_write_failure_is_logged_not_raised(self, caplog):
        storage = MagicMock()
        storage.set_item.side_effect = StorageError("disk full")

        PersistenceAdapter(storage).save_log(sample_log())

        assert "Failed to save chat history" in caplog.text

    def test_read_failure_loads_empty(self):
        storage = MagicMock()
        storage.get_item.side_effect = StorageError("denied")

        adapter = PersistenceAdapter(storage)

        assert adapter.load_log() == []
        assert adapter.load_responses() == {}

    def test_clear_removes_both_blobs(self):
        storage = InMemoryStorage()
        adapter = PersistenceAdapter(storage)
        adapter.save_log(sample_log())
        adapter.save_responses({"a": "1"})

        adapter.clear()

        assert len(storage) == 0
