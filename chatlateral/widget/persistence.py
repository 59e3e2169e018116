"""Durable storage for the conversation log and the custom responses.

Two independent JSON blobs are kept per widget namespace:

* ``chat-widget-messages``: array of message records.
* ``customResponses``: object mapping triggers to replies.

Storage backends implement :class:`KeyValueStorage`. The
:class:`PersistenceAdapter` on top of them never raises: unreadable data loads
as empty and failed writes are logged.
"""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable

from chatlateral.widget.models import Message

logger = logging.getLogger("chatlateral.widget")

CHAT_STORAGE_KEY = "chat-widget-messages"
CUSTOM_RESPONSES_STORAGE_KEY = "customResponses"

_SAFE_NAME = re.compile(r"[^A-Za-z0-9._-]")


class StorageError(Exception):
    """Raised by storage backends when a read or write fails."""


class KeyValueStorage(ABC):
    """String key-value storage scoped to one widget namespace."""

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete a key. Missing keys are ignored."""


class InMemoryStorage(KeyValueStorage):
    """Dictionary-backed storage for tests and ephemeral widgets."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"<InMemoryStorage keys={sorted(self._items)}>"


class FileStorage(KeyValueStorage):
    """One file per key under ``<root>/<namespace>/``.

    Writes go to a temporary file that is then renamed over the target, so
    readers never observe a partial value.
    """

    def __init__(self, root: str | Path, namespace: str = "default") -> None:
        if not namespace:
            raise ValueError("namespace is required")
        self.root = Path(root)
        self.namespace = namespace
        self.directory = self.root / _SAFE_NAME.sub("_", namespace)

    def _path(self, key: str) -> Path:
        return self.directory / f"{_SAFE_NAME.sub('_', key)}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"cannot read {path}: {exc}") from exc

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(value, encoding="utf-8")
            tmp.replace(path)
        except OSError as exc:
            raise StorageError(f"cannot write {path}: {exc}") from exc

    def remove_item(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"cannot remove {key}: {exc}") from exc

    def __repr__(self) -> str:
        return f"<FileStorage directory={self.directory}>"


class PersistenceAdapter:
    """Best-effort JSON persistence of the log and the response mapping."""

    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage

    @property
    def storage(self) -> KeyValueStorage:
        return self._storage

    def save_log(self, messages: Iterable[Message]) -> None:
        records = [message.to_dict() for message in messages]
        self._write(CHAT_STORAGE_KEY, records, "chat history")

    def load_log(self) -> list[Message]:
        """Read the persisted log.

        Returns an empty list when the blob is missing or unreadable. Records
        that fail to parse are skipped and the rest are kept.
        """
        raw = self._read(CHAT_STORAGE_KEY, "chat history")
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.error("Failed to load chat history: expected a JSON array")
            return []

        messages = []
        for record in raw:
            try:
                messages.append(Message.from_dict(record))
            except (ValueError, TypeError, AttributeError) as exc:
                logger.error("Skipping invalid chat record: %s", exc)
        return messages

    def save_responses(self, mapping: dict[str, Any]) -> None:
        self._write(CUSTOM_RESPONSES_STORAGE_KEY, mapping, "custom responses")

    def load_responses(self) -> dict[str, Any]:
        """Read the persisted mapping. Returns an empty dict on any failure."""
        raw = self._read(CUSTOM_RESPONSES_STORAGE_KEY, "custom responses")
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            logger.error("Failed to load custom responses: expected a JSON object")
            return {}
        return raw

    def clear(self) -> None:
        """Remove both blobs."""
        for key in (CHAT_STORAGE_KEY, CUSTOM_RESPONSES_STORAGE_KEY):
            try:
                self._storage.remove_item(key)
            except StorageError as exc:
                logger.error("Failed to remove %s: %s", key, exc)

    def _write(self, key: str, value: Any, what: str) -> None:
        try:
            self._storage.set_item(key, json.dumps(value, ensure_ascii=False))
        except (StorageError, TypeError, ValueError) as exc:
            logger.error("Failed to save %s: %s", what, exc)

    def _read(self, key: str, what: str) -> Any:
        try:
            text = self._storage.get_item(key)
        except StorageError as exc:
            logger.error("Failed to load %s: %s", what, exc)
            return None
        if text is None:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            logger.error("Failed to load %s: %s", what, exc)
            return None
