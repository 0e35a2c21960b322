"""
Semantic Ranker - Document Store

The document list is kept in a key-value string store under a fixed key,
serialized as a JSON array of strings. It is read once at startup (falling
back to the built-in planet list when the key is absent or unparsable) and
rewritten on every add/remove.

Patterns Applied:
- Repository Pattern with Protocol typing (InMemoryKeyValueStore for tests)
- Atomic file replace for the JSON file backend

Anti-Patterns Avoided:
- Silent data loss on corrupt storage: logged, defaults used, next write repairs it
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from semantic_ranker.core.config import DEFAULT_DOCUMENTS_KEY
from semantic_ranker.core.exceptions import DocumentNotFoundError
from semantic_ranker.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_DOCUMENTS: tuple[str, ...] = (
    "Mars is known for its reddish surface and is referred to as the 'Red Planet'.",
    "Jupiter is the largest planet in the Solar System and has the Great Red Spot.",
    "Saturn's most striking feature is its vast rings that surround it.",
    "Venus is similar in size to Earth and is known for its dense atmosphere.",
    "Mercury is the closest planet to the Sun and experiences extreme temperature variations.",
    "Mars is often called the Red Planet due to its reddish appearance.",
    "There is a massive volcano called Olympus Mons on the surface of Mars.",
    "The largest volcano in the solar system, Olympus Mons, is located on Mars.",
    "Uranus and Neptune are commonly referred to as ice giants.",
    "Jupiter's moon Europa may harbor an ocean beneath its icy surface.",
)


# =============================================================================
# Key-Value Backends
# =============================================================================


class KeyValueStoreProtocol(Protocol):
    """String key-value store (localStorage-like)."""

    def get_item(self, key: str) -> str | None:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...


class InMemoryKeyValueStore:
    """Dict-backed store for tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value


class JsonFileKeyValueStore:
    """Key-value store persisted as one JSON object in a file.

    Args:
        path: File location; parent directories are created on first write
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("kv_store_read_failed", path=str(self._path), error=str(e))
            return {}
        if not isinstance(data, dict):
            logger.warning("kv_store_not_an_object", path=str(self._path))
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def get_item(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read_all()
        items[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(items, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self._path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise


# =============================================================================
# Document Store
# =============================================================================


def _parse_documents(raw: str) -> list[str] | None:
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return None
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        return None
    return value


class DocumentStore:
    """Ordered list of documents mirrored to a key-value store.

    Usage:
        store = DocumentStore(JsonFileKeyValueStore("./data/documents.json"))
        store.add_document("Mars is red.")
        store.remove_document(0)
    """

    def __init__(
        self,
        backend: KeyValueStoreProtocol,
        key: str = DEFAULT_DOCUMENTS_KEY,
        defaults: Sequence[str] = DEFAULT_DOCUMENTS,
    ) -> None:
        self._backend = backend
        self._key = key
        self._documents = self._load(list(defaults))

    def _load(self, defaults: list[str]) -> list[str]:
        raw = self._backend.get_item(self._key)
        if raw is None:
            logger.info("documents_defaulted", reason="absent", count=len(defaults))
            return defaults

        documents = _parse_documents(raw)
        if documents is None:
            logger.warning("documents_defaulted", reason="unparsable", count=len(defaults))
            return defaults

        logger.info("documents_loaded", count=len(documents))
        return documents

    def _commit(self, updated: list[str]) -> None:
        # Memory follows storage: a failed write leaves the current list intact
        self._backend.set_item(self._key, json.dumps(updated, ensure_ascii=False))
        self._documents = updated

    def list_documents(self) -> list[str]:
        """Return a copy of the current documents."""
        return list(self._documents)

    def add_document(self, text: str) -> list[str]:
        """Append ``text`` (trimmed) and persist.

        Raises:
            ValueError: If text is blank
            OSError: If the backend write fails (the list is unchanged)
        """
        document = text.strip()
        if not document:
            raise ValueError("Document text cannot be empty")
        self._commit([*self._documents, document])
        logger.info("document_added", count=len(self._documents))
        return self.list_documents()

    def remove_document(self, index: int) -> list[str]:
        """Remove the document at ``index`` and persist.

        Raises:
            DocumentNotFoundError: If index is out of range
            OSError: If the backend write fails (the list is unchanged)
        """
        if index < 0 or index >= len(self._documents):
            raise DocumentNotFoundError(index)
        self._commit(self._documents[:index] + self._documents[index + 1 :])
        logger.info("document_removed", index=index, count=len(self._documents))
        return self.list_documents()
