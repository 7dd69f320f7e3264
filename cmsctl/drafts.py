"""Client-local cache of unpublished edits.

Drafts are keyed ``"<category>:<id>"`` and never talk to a backend. A
draft is overwritten on every save and cleared when the content
repository publishes the document. Drafts do not expire; only a change
of the stored envelope format discards them.
"""

import json
import os
import tempfile
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ValidationError

from .exceptions import ConfigError
from .models import Category

DRAFT_VERSION = 1


def draft_key(category: Category, doc_id: str) -> str:
    """Storage key for a draft."""
    return f"{Category.parse(category).value}:{doc_id}"


class DraftMetadata(BaseModel):
    """Bookkeeping stored next to a draft body."""

    key: str
    category: Category
    id: str
    timestamp: float
    version: int = DRAFT_VERSION


class DraftStorage(ABC):
    """Key-value store holding serialized draft envelopes."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def keys(self) -> List[str]:
        ...


class MemoryDraftStorage(DraftStorage):
    """In-process storage, lost when the process exits."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data)


class JsonFileDraftStorage(DraftStorage):
    """Storage backed by a single JSON file, rewritten atomically."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Failed to load drafts from {self.path}: {e}")

        if not isinstance(data, dict):
            raise ConfigError(f"Drafts file {self.path} does not contain a JSON object")
        return data

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(temp_name, self.path)
        except OSError as e:
            Path(temp_name).unlink(missing_ok=True)
            raise ConfigError(f"Failed to save drafts to {self.path}: {e}")

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key in data:
                del data[key]
                self._save(data)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._load())


class DraftOverlay:
    """Unpublished edits layered over the published documents."""

    def __init__(
        self,
        storage: Optional[DraftStorage] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        """Initialize the overlay.

        Args:
            storage: Key-value storage; defaults to in-memory
            clock: Time source for draft timestamps
        """
        self.storage = storage or MemoryDraftStorage()
        self._clock = clock or time.time

    def save_draft(self, category: Category, doc_id: str, body: Dict[str, Any]) -> DraftMetadata:
        """Store an edited body, replacing any previous draft."""
        category = Category.parse(category)
        key = draft_key(category, doc_id)
        metadata = DraftMetadata(key=key, category=category, id=doc_id, timestamp=self._clock())
        envelope = {"metadata": metadata.model_dump(mode="json"), "body": body}
        self.storage.set(key, json.dumps(envelope, ensure_ascii=False))
        return metadata

    def _load_envelope(self, key: str) -> Optional[Dict[str, Any]]:
        stored = self.storage.get(key)
        if stored is None:
            return None

        try:
            envelope = json.loads(stored)
            metadata = DraftMetadata.model_validate(envelope["metadata"])
        except (ValueError, KeyError, TypeError, ValidationError):
            # Unreadable envelopes are left in place for inspection
            return None

        if metadata.version != DRAFT_VERSION:
            self.storage.delete(key)
            return None

        return envelope

    def load_draft(self, category: Category, doc_id: str) -> Optional[Dict[str, Any]]:
        """Return the draft body, or None if there is no draft."""
        envelope = self._load_envelope(draft_key(category, doc_id))
        if envelope is None:
            return None
        return envelope.get("body")

    def has_draft(self, category: Category, doc_id: str) -> bool:
        return self._load_envelope(draft_key(category, doc_id)) is not None

    def clear_draft(self, category: Category, doc_id: str) -> None:
        self.storage.delete(draft_key(category, doc_id))

    def list_drafts(self) -> List[DraftMetadata]:
        """Metadata of all readable drafts, most recent first."""
        drafts = []
        for key in self.storage.keys():
            envelope = self._load_envelope(key)
            if envelope is not None:
                drafts.append(DraftMetadata.model_validate(envelope["metadata"]))

        return sorted(drafts, key=lambda metadata: metadata.timestamp, reverse=True)

    def clear_all_drafts(self) -> None:
        for key in self.storage.keys():
            self.storage.delete(key)
