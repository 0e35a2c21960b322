"""
Document Store Tests

- defaults when the key is absent or the value is not a JSON list of strings
- every add/remove rewrites the stored JSON array
- JSON file backend round trip and corrupt-file handling
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from semantic_ranker.core.exceptions import DocumentNotFoundError
from semantic_ranker.storage.document_store import (
    DEFAULT_DOCUMENTS,
    DocumentStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
)

KEY = "embedding_documents"


class TestLoading:
    def test_absent_key_uses_defaults(self) -> None:
        store = DocumentStore(InMemoryKeyValueStore())

        assert store.list_documents() == list(DEFAULT_DOCUMENTS)
        assert len(store.list_documents()) == 10

    @pytest.mark.parametrize(
        "raw",
        ["not json", '{"a": 1}', "[1, 2]", '"just a string"', '["ok", null]'],
    )
    def test_unparsable_value_uses_defaults(self, raw: str) -> None:
        store = DocumentStore(InMemoryKeyValueStore({KEY: raw}))

        assert store.list_documents() == list(DEFAULT_DOCUMENTS)

    def test_stored_list_is_loaded(self) -> None:
        backend = InMemoryKeyValueStore({KEY: json.dumps(["Mars is red.", "Jupiter is big."])})

        store = DocumentStore(backend)

        assert store.list_documents() == ["Mars is red.", "Jupiter is big."]

    def test_stored_empty_list_is_respected(self) -> None:
        store = DocumentStore(InMemoryKeyValueStore({KEY: "[]"}))

        assert store.list_documents() == []

    def test_custom_key_and_defaults(self) -> None:
        backend = InMemoryKeyValueStore({KEY: json.dumps(["ignored"])})

        store = DocumentStore(backend, key="other", defaults=["fallback"])

        assert store.list_documents() == ["fallback"]


class TestMutation:
    def test_add_persists_trimmed_text(self) -> None:
        backend = InMemoryKeyValueStore({KEY: "[]"})
        store = DocumentStore(backend)

        documents = store.add_document("  Saturn has rings.  ")

        assert documents == ["Saturn has rings."]
        assert json.loads(backend.get_item(KEY) or "") == ["Saturn has rings."]

    def test_add_blank_is_rejected(self) -> None:
        backend = InMemoryKeyValueStore({KEY: "[]"})
        store = DocumentStore(backend)

        with pytest.raises(ValueError):
            store.add_document("   ")

        assert backend.get_item(KEY) == "[]"

    def test_remove_persists(self) -> None:
        backend = InMemoryKeyValueStore({KEY: json.dumps(["a", "b", "c"])})
        store = DocumentStore(backend)

        assert store.remove_document(1) == ["a", "c"]
        assert json.loads(backend.get_item(KEY) or "") == ["a", "c"]

    @pytest.mark.parametrize("index", [-1, 3, 100])
    def test_remove_out_of_range(self, index: int) -> None:
        store = DocumentStore(InMemoryKeyValueStore({KEY: json.dumps(["a", "b", "c"])}))

        with pytest.raises(DocumentNotFoundError):
            store.remove_document(index)

        assert store.list_documents() == ["a", "b", "c"]

    def test_list_returns_copy(self) -> None:
        store = DocumentStore(InMemoryKeyValueStore({KEY: json.dumps(["a"])}))

        store.list_documents().append("b")

        assert store.list_documents() == ["a"]

    def test_first_mutation_after_defaults_writes_full_list(self) -> None:
        backend = InMemoryKeyValueStore()
        store = DocumentStore(backend)

        store.add_document("Pluto is a dwarf planet.")

        stored = json.loads(backend.get_item(KEY) or "")
        assert stored == list(DEFAULT_DOCUMENTS) + ["Pluto is a dwarf planet."]


class ReadOnlyKeyValueStore(InMemoryKeyValueStore):
    """Backend whose writes fail once ``fail_writes`` is set."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__(initial)
        self.fail_writes = True

    def set_item(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise OSError(30, "Read-only file system")
        super().set_item(key, value)


class TestWriteFailure:
    def test_failed_add_leaves_list_unchanged(self) -> None:
        store = DocumentStore(ReadOnlyKeyValueStore(), defaults=["a"])

        with pytest.raises(OSError):
            store.add_document("b")

        assert store.list_documents() == ["a"]

    def test_failed_remove_leaves_list_unchanged(self) -> None:
        backend = ReadOnlyKeyValueStore({KEY: json.dumps(["a", "b"])})
        store = DocumentStore(backend)

        with pytest.raises(OSError):
            store.remove_document(0)

        assert store.list_documents() == ["a", "b"]

    def test_next_write_does_not_carry_failed_change(self) -> None:
        backend = ReadOnlyKeyValueStore({KEY: json.dumps(["a"])})
        store = DocumentStore(backend)
        with pytest.raises(OSError):
            store.add_document("lost")

        backend.fail_writes = False
        store.add_document("kept")

        assert json.loads(backend.get_item(KEY) or "") == ["a", "kept"]


class TestJsonFileKeyValueStore:
    def test_round_trip(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "store.json"
        kv = JsonFileKeyValueStore(path)

        kv.set_item(KEY, '["x"]')
        kv.set_item("other", "value")

        reopened = JsonFileKeyValueStore(path)
        assert reopened.get_item(KEY) == '["x"]'
        assert reopened.get_item("other") == "value"

    def test_missing_file(self, tmp_path: Path) -> None:
        assert JsonFileKeyValueStore(tmp_path / "none.json").get_item(KEY) is None

    def test_corrupt_file_reads_as_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        path.write_text("{broken", encoding="utf-8")

        assert JsonFileKeyValueStore(path).get_item(KEY) is None

    def test_documents_survive_restart(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        DocumentStore(JsonFileKeyValueStore(path), defaults=[]).add_document("kept")

        store = DocumentStore(JsonFileKeyValueStore(path))

        assert store.list_documents() == ["kept"]
