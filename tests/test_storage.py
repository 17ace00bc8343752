"""Unit tests for rechenbot/storage.py."""

from pathlib import Path

import pytest

from rechenbot.storage import FileKeyValueStore, InMemoryKeyValueStore, StoreError


def test_memory_store_get_absent():
    assert InMemoryKeyValueStore().get("chatHistory") is None


def test_memory_store_set_get_delete():
    store = InMemoryKeyValueStore()
    store.set("k", b"[]")
    assert store.get("k") == b"[]"
    store.delete("k")
    assert store.get("k") is None
    store.delete("k")  # absent key is fine


def test_memory_store_fail_writes():
    store = InMemoryKeyValueStore(fail_writes=True)
    with pytest.raises(StoreError) as exc_info:
        store.set("chatHistory", b"[]")
    assert exc_info.value.key == "chatHistory"
    assert "quota" in str(exc_info.value)


def test_file_store_roundtrip(tmp_path: Path) -> None:
    store = FileKeyValueStore(tmp_path / "data")
    assert store.get("chatHistory") is None
    store.set("chatHistory", b'[{"sender": "ai", "text": "Hallo"}]')
    assert (tmp_path / "data" / "chatHistory.json").exists()
    assert store.get("chatHistory") == b'[{"sender": "ai", "text": "Hallo"}]'


def test_file_store_overwrite_leaves_no_temp_files(tmp_path: Path) -> None:
    store = FileKeyValueStore(tmp_path)
    store.set("k", b"one")
    store.set("k", b"two")
    assert store.get("k") == b"two"
    assert [p.name for p in tmp_path.iterdir()] == ["k.json"]


def test_file_store_delete(tmp_path: Path) -> None:
    store = FileKeyValueStore(tmp_path)
    store.set("k", b"x")
    store.delete("k")
    assert store.get("k") is None
    store.delete("k")


def test_file_store_write_failure_raises_store_error(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file in the way", encoding="utf-8")
    store = FileKeyValueStore(blocker)
    with pytest.raises(StoreError):
        store.set("k", b"x")


def test_file_store_read_failure_raises_store_error(tmp_path: Path) -> None:
    (tmp_path / "k.json").mkdir()  # a directory where the record should be
    store = FileKeyValueStore(tmp_path)
    with pytest.raises(StoreError):
        store.get("k")
