"""Persistence for resume history.

History is stored as one JSON-compatible object under a storage key:

    {"history": {"<url>": {"position": 12.5, "timestamp": 1700000000.0}}}

Storages are small key-value stores. JsonFileStorage keeps every key in
one JSON file; MemoryStorage is for tests and embedding.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from uniplay.domain.models import HistoryEntry

logger = logging.getLogger(__name__)


class StateStorage(Protocol):
    """Key-value storage for JSON-compatible values."""

    def get_item(self, key: str) -> Any | None: ...

    def set_item(self, key: str, value: Any) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """In-process storage."""

    def __init__(self, items: dict[str, Any] | None = None) -> None:
        self.items: dict[str, Any] = dict(items or {})

    def get_item(self, key: str) -> Any | None:
        return self.items.get(key)

    def set_item(self, key: str, value: Any) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class JsonFileStorage:
    """Storage backed by a single JSON object file.

    Writes replace the file atomically. A missing file reads as empty.

    Raises:
        OSError: From set_item/remove_item when the file cannot be written.
        ValueError: From get_item when the file is not a JSON object.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def _read(self) -> dict[str, Any]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return data

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def get_item(self, key: str) -> Any | None:
        return self._read().get(key)

    def set_item(self, key: str, value: Any) -> None:
        data = self._read_for_update()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read_for_update()
        if data.pop(key, None) is not None:
            self._write(data)

    def _read_for_update(self) -> dict[str, Any]:
        try:
            return self._read()
        except ValueError as e:
            logger.warning("Replacing unreadable state file %s: %s", self.path, e)
            return {}


class HistoryRecord(BaseModel):
    """Persisted form of a HistoryEntry."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    position: float = Field(ge=0.0)
    timestamp: float


class PersistedState(BaseModel):
    """Top-level object stored under the storage key."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    history: dict[str, HistoryRecord] = Field(default_factory=dict)


def load_history(storage: StateStorage, key: str) -> dict[str, HistoryEntry]:
    """Read history from storage.

    Unreadable or invalid data is logged and treated as empty history.
    """
    try:
        raw = storage.get_item(key)
    except (OSError, ValueError) as e:
        logger.warning("Could not read playback history: %s", e)
        return {}
    if raw is None:
        return {}
    try:
        state = PersistedState.model_validate(raw)
    except ValidationError as e:
        logger.warning("Ignoring invalid playback history: %s", e)
        return {}
    return {
        url: HistoryEntry(position=record.position, timestamp=record.timestamp)
        for url, record in state.history.items()
    }


def save_history(
    storage: StateStorage, key: str, history: Mapping[str, HistoryEntry]
) -> bool:
    """Write history to storage.

    Returns:
        False if the write failed; the failure is logged.
    """
    state = PersistedState(
        history={
            url: HistoryRecord(position=entry.position, timestamp=entry.timestamp)
            for url, entry in history.items()
        }
    )
    try:
        storage.set_item(key, state.model_dump())
    except OSError as e:
        logger.warning("Could not save playback history: %s", e)
        return False
    return True
