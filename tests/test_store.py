from __future__ import annotations

import json
from pathlib import Path

import pytest

from pulsesync.exceptions import StateStoreError
from pulsesync.store import JsonFileStateStore, MemoryStateStore


def test_memory_store_set_all_is_upsert() -> None:
    store = MemoryStateStore({"a": 1, "b": 2})
    store.set_all({"b": 3, "c": 4})
    assert store.get_all() == {"a": 1, "b": 3, "c": 4}


def test_memory_store_returns_copies() -> None:
    store = MemoryStateStore({"completed_books": ["b1"]})
    store.get_all()["completed_books"].append("b2")
    assert store.get_all() == {"completed_books": ["b1"]}


def test_json_store_missing_file_is_empty(tmp_path: Path) -> None:
    assert JsonFileStateStore(tmp_path / "state.json").get_all() == {}


def test_json_store_never_removes_absent_keys(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    store = JsonFileStateStore(path)

    store.set_all({"a": 1, "reviews": {"b1": {"text": "ok"}}})
    store.set_all({"a": 2})

    assert store.get_all() == {"a": 2, "reviews": {"b1": {"text": "ok"}}}
    assert json.loads(path.read_text(encoding="utf-8")) == store.get_all()
    assert not (tmp_path / "state.json.tmp").exists()


def test_json_store_rejects_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(StateStoreError):
        JsonFileStateStore(path).get_all()


def test_json_store_rejects_non_object(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(StateStoreError):
        JsonFileStateStore(path).get_all()


def test_json_store_rejects_unserializable_values(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    store = JsonFileStateStore(path)
    store.set_all({"a": 1})

    with pytest.raises(StateStoreError):
        store.set_all({"b": object()})

    assert store.get_all() == {"a": 1}
