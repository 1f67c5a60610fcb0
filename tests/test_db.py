"""Tests for the write-once cache store.

Run: pytest tests/test_db.py -v
"""
from __future__ import annotations

import json
import multiprocessing
import sqlite3
from pathlib import Path

import pytest

from glossword.db import CacheStore, PermanentDelete, TrashDirectory, _connect, init_db
from glossword.pipeline.errors import StoreError
from glossword.pipeline.types import LookupKey, Mode

FILIGREE = LookupKey.create("filigree", Mode.ETYMOLOGY)
LIGHTHOUSE = LookupKey.create("lighthouse", Mode.DEFINITION)


class TestSchema:
    def test_init_db_is_idempotent(self, temp_db_path: Path) -> None:
        init_db(temp_db_path)
        init_db(temp_db_path)
        conn = _connect(temp_db_path)
        try:
            columns = {row[1] for row in conn.execute("PRAGMA table_info(entries)").fetchall()}
        finally:
            conn.close()
        assert columns == {"word", "mode", "text", "created_at_utc"}

    def test_store_does_not_touch_disk_until_used(self, temp_db_path: Path) -> None:
        CacheStore(temp_db_path)
        assert not temp_db_path.exists()

    def test_first_use_creates_parent_directory(self, store: CacheStore, temp_db_path: Path) -> None:
        assert store.get(LIGHTHOUSE) is None
        assert temp_db_path.exists()


class TestGetPut:
    def test_get_miss_returns_none(self, store: CacheStore) -> None:
        assert store.get(LIGHTHOUSE) is None

    def test_put_then_get_round_trip(self, store: CacheStore) -> None:
        assert store.put(FILIGREE, "from Latin filum...") is True
        entry = store.get(FILIGREE)
        assert entry is not None
        assert entry.key == FILIGREE
        assert entry.text == "from Latin filum..."
        assert entry.created_at_utc

    def test_put_same_text_twice_leaves_one_entry(self, store: CacheStore) -> None:
        store.put(FILIGREE, "from Latin filum...")
        assert store.put(FILIGREE, "from Latin filum...") is False
        assert store.list() == [FILIGREE]

    def test_put_never_overwrites_existing_text(self, store: CacheStore) -> None:
        store.put(FILIGREE, "original")
        store.put(FILIGREE, "divergent")
        entry = store.get(FILIGREE)
        assert entry is not None
        assert entry.text == "original"

    def test_modes_are_stored_separately(self, store: CacheStore) -> None:
        store.put(LookupKey.create("forest", Mode.DEFINITION), "a dense growth of trees")
        store.put(LookupKey.create("forest", Mode.ETYMOLOGY), "late 13c.")
        assert store.get(LookupKey.create("Forest", Mode.ETYMOLOGY)).text == "late 13c."
        assert store.get(LookupKey.create("forest", Mode.DEFINITION)).text == "a dense growth of trees"

    def test_persists_across_instances(self, temp_db_path: Path) -> None:
        CacheStore(temp_db_path).put(LIGHTHOUSE, "a tower")
        entry = CacheStore(temp_db_path).get(LIGHTHOUSE)
        assert entry is not None
        assert entry.text == "a tower"

    def test_unicode_text_round_trips(self, store: CacheStore) -> None:
        text = "isth·mus\n\nn. pl. isth·mi (-mī′)\n“loin band”\n"
        store.put(LookupKey.create("isthmus", Mode.DEFINITION), text)
        assert store.get(LookupKey.create("isthmus", Mode.DEFINITION)).text == text


class TestList:
    def test_empty(self, store: CacheStore) -> None:
        assert store.list() == []

    def test_ordered_by_creation(self, store: CacheStore) -> None:
        keys = [
            LookupKey.create("zebra", Mode.DEFINITION),
            LookupKey.create("apple", Mode.ETYMOLOGY),
            LookupKey.create("mango", Mode.DEFINITION),
        ]
        for key in keys:
            store.put(key, f"text for {key.word}")
        assert store.list() == keys


class TestClear:
    def test_clear_single_key(self, store: CacheStore) -> None:
        store.put(LIGHTHOUSE, "a tower")
        store.put(FILIGREE, "from Latin filum...")
        assert store.clear(LIGHTHOUSE) == 1
        assert store.get(LIGHTHOUSE) is None
        assert store.list() == [FILIGREE]

    def test_clear_missing_key_removes_nothing(self, store: CacheStore) -> None:
        store.put(FILIGREE, "from Latin filum...")
        assert store.clear(LIGHTHOUSE) == 0
        assert store.list() == [FILIGREE]

    def test_clear_all(self, store: CacheStore) -> None:
        store.put(LIGHTHOUSE, "a tower")
        store.put(FILIGREE, "from Latin filum...")
        assert store.clear() == 2
        assert store.list() == []

    def test_cleared_key_can_be_cached_again(self, store: CacheStore) -> None:
        store.put(LIGHTHOUSE, "old")
        store.clear(LIGHTHOUSE)
        assert store.put(LIGHTHOUSE, "new") is True
        assert store.get(LIGHTHOUSE).text == "new"

    def test_permanent_delete_keeps_no_copy(self, tmp_path: Path, temp_db_path: Path) -> None:
        store = CacheStore(temp_db_path, deletion=PermanentDelete())
        store.put(LIGHTHOUSE, "a tower")
        store.clear()
        assert not (tmp_path / "trash").exists()

    def test_trash_keeps_recoverable_copy(self, trash_store: CacheStore, tmp_path: Path) -> None:
        trash_store.put(LIGHTHOUSE, "a tower")
        trash_store.put(FILIGREE, "from Latin filum...")
        trash_store.clear()

        files = list((tmp_path / "trash").glob("entries-*.json"))
        assert len(files) == 1
        payload = json.loads(files[0].read_text(encoding="utf-8"))
        assert [e["word"] for e in payload["entries"]] == ["lighthouse", "filigree"]
        assert payload["entries"][1] == {
            "word": "filigree",
            "mode": "etymology",
            "text": "from Latin filum...",
            "created_at_utc": payload["entries"][1]["created_at_utc"],
        }

    def test_nothing_to_clear_writes_no_trash_file(self, trash_store: CacheStore, tmp_path: Path) -> None:
        assert trash_store.clear() == 0
        assert not (tmp_path / "trash").exists()

    def test_failed_discard_keeps_rows(self, temp_db_path: Path) -> None:
        class FailingStrategy:
            def discard(self, entries):
                raise OSError("trash directory is read-only")

        store = CacheStore(temp_db_path, deletion=FailingStrategy())
        store.put(LIGHTHOUSE, "a tower")
        with pytest.raises(StoreError):
            store.clear()
        assert store.get(LIGHTHOUSE) is not None


class TestRestore:
    def test_restore_from_trash(self, trash_store: CacheStore, tmp_path: Path) -> None:
        trash_store.put(LIGHTHOUSE, "a tower")
        trash_store.clear()
        trash_file = next((tmp_path / "trash").glob("entries-*.json"))

        assert trash_store.restore(trash_file) == 1
        assert trash_store.get(LIGHTHOUSE).text == "a tower"

    def test_restore_does_not_overwrite_newer_entry(self, trash_store: CacheStore, tmp_path: Path) -> None:
        trash_store.put(LIGHTHOUSE, "old text")
        trash_store.clear()
        trash_store.put(LIGHTHOUSE, "new text")
        trash_file = next((tmp_path / "trash").glob("entries-*.json"))

        assert trash_store.restore(trash_file) == 0
        assert trash_store.get(LIGHTHOUSE).text == "new text"

    def test_restore_rejects_invalid_file(self, store: CacheStore, tmp_path: Path) -> None:
        bogus = tmp_path / "bogus.json"
        bogus.write_text('{"not_entries": []}', encoding="utf-8")
        with pytest.raises(StoreError, match="Invalid trash file"):
            store.restore(bogus)


class TestStoreErrors:
    def test_corrupt_file_raises_store_error(self, temp_db_path: Path) -> None:
        temp_db_path.parent.mkdir(parents=True, exist_ok=True)
        temp_db_path.write_bytes(b"this is not a sqlite database" * 200)
        store = CacheStore(temp_db_path)
        with pytest.raises(StoreError):
            store.get(LIGHTHOUSE)
        with pytest.raises(StoreError):
            store.put(LIGHTHOUSE, "a tower")

    def test_store_error_chains_sqlite_error(self, temp_db_path: Path) -> None:
        temp_db_path.parent.mkdir(parents=True, exist_ok=True)
        temp_db_path.write_bytes(b"garbage" * 1000)
        with pytest.raises(StoreError) as exc_info:
            CacheStore(temp_db_path).list()
        assert isinstance(exc_info.value.__cause__, sqlite3.Error)


def test_trash_directory_returns_written_path(tmp_path: Path, store: CacheStore) -> None:
    store.put(LIGHTHOUSE, "a tower")
    entry = store.get(LIGHTHOUSE)
    path = TrashDirectory(tmp_path / "trash").discard([entry])
    assert path is not None
    assert path.exists()
    assert path.suffix == ".json"
    assert TrashDirectory(tmp_path / "trash").discard([]) is None


def _put_and_get(args: tuple[str, int, int]) -> tuple[int, bool]:
    """Worker for the cross-process test; runs in a spawned interpreter."""
    db_path, worker_id, rounds = args
    store = CacheStore(Path(db_path))
    shared_won = store.put(LookupKey.create("lighthouse", Mode.DEFINITION), f"worker {worker_id}")
    hits = 0
    for i in range(rounds):
        key = LookupKey.create(f"word {worker_id} {i}", Mode.DEFINITION)
        store.put(key, f"text {worker_id} {i}")
        entry = store.get(key)
        if entry is not None and entry.text == f"text {worker_id} {i}":
            hits += 1
    return hits, shared_won


class TestConcurrentProcesses:
    WORKERS = 6
    ROUNDS = 25

    def test_interleaved_writers_and_readers(self, temp_db_path: Path) -> None:
        ctx = multiprocessing.get_context("spawn")
        jobs = [(str(temp_db_path), worker_id, self.ROUNDS) for worker_id in range(self.WORKERS)]
        with ctx.Pool(self.WORKERS) as pool:
            results = pool.map(_put_and_get, jobs)

        assert [hits for hits, _ in results] == [self.ROUNDS] * self.WORKERS
        # Write-once holds under contention: exactly one worker stored the shared key
        assert sum(won for _, won in results) == 1

        store = CacheStore(temp_db_path)
        assert len(store.list()) == self.WORKERS * self.ROUNDS + 1
        assert store.get(LIGHTHOUSE).text.startswith("worker ")
