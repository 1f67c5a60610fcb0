"""
Write-once SQLite cache of resolved lookups.

One row per (word, mode). Rows are never updated: a second ``put`` for the
same key is a no-op, so a cached answer always reflects the first successful
fetch. Clearing hands the removed rows to a deletion strategy first, which by
default keeps them in a recoverable trash file.

Every operation opens its own short-lived connection; SQLite's file locking
provides safety across concurrently running invocations.
"""
from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from glossword.pipeline.errors import StoreError
from glossword.pipeline.types import CacheEntry, LookupKey, Mode

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    return datetime.now(UTC).replace(microsecond=0).isoformat()


def _connect(db_path: Path) -> sqlite3.Connection:
    """Create a database connection with proper configuration.

    Sets a generous busy timeout so that a writer in another process makes
    us wait rather than fail, and IMMEDIATE isolation so that an insert takes
    the write lock at BEGIN.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(
        str(db_path),
        timeout=30.0,
        isolation_level="IMMEDIATE",
    )
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def _transaction(db_path: Path) -> Iterator[sqlite3.Connection]:
    conn = _connect(db_path)
    try:
        with conn:
            yield conn
    finally:
        conn.close()


def init_db(db_path: Path) -> None:
    with _transaction(db_path) as conn:
        # WAL lets readers proceed while another process holds the write lock
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS entries (
              word TEXT NOT NULL,
              mode TEXT NOT NULL,
              text TEXT NOT NULL,
              created_at_utc TEXT NOT NULL,
              PRIMARY KEY (word, mode)
            )
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_entries_created_at ON entries(created_at_utc)")


def _row_to_entry(row: sqlite3.Row) -> CacheEntry:
    return CacheEntry(
        key=LookupKey(word=row["word"], mode=Mode(row["mode"])),
        text=row["text"],
        created_at_utc=row["created_at_utc"],
    )


# --- Deletion strategies ---


class DeletionStrategy(Protocol):
    """Decides what happens to cache entries that are being cleared."""

    def discard(self, entries: Sequence[CacheEntry]) -> Path | None:
        ...


class PermanentDelete:
    """Drop cleared entries without keeping a copy."""

    def discard(self, entries: Sequence[CacheEntry]) -> Path | None:
        return None


class TrashDirectory:
    """Keep cleared entries in a JSON file under ``trash_dir``.

    Files written here can be fed back to ``CacheStore.restore``.
    """

    def __init__(self, trash_dir: Path) -> None:
        self.trash_dir = trash_dir

    def discard(self, entries: Sequence[CacheEntry]) -> Path | None:
        if not entries:
            return None
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
        path = self.trash_dir / f"entries-{stamp}-{uuid.uuid4().hex[:8]}.json"
        payload = {
            "deleted_at_utc": utc_now_iso(),
            "entries": [
                {
                    "word": e.key.word,
                    "mode": e.key.mode.value,
                    "text": e.text,
                    "created_at_utc": e.created_at_utc,
                }
                for e in entries
            ],
        }
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
        tmp_path.replace(path)
        logger.info("Moved %d cache entries to %s", len(entries), path)
        return path


# --- Store ---


class CacheStore:
    """
    Persistent mapping from LookupKey to resolved plain text.

    Usage:
        store = CacheStore(settings.db_path, deletion=TrashDirectory(settings.trash_dir))
        key = LookupKey.create("Lighthouse", Mode.DEFINITION)

        entry = store.get(key)
        if entry is None:
            store.put(key, text)

    The schema is created lazily on first use, so constructing a store never
    touches the filesystem.
    """

    def __init__(self, db_path: Path, *, deletion: DeletionStrategy | None = None) -> None:
        self._db_path = db_path
        self._deletion = deletion or PermanentDelete()
        self._initialized = False

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _ensure_schema(self) -> None:
        if self._initialized:
            return
        init_db(self._db_path)
        self._initialized = True

    @contextmanager
    def _session(self, action: str) -> Iterator[sqlite3.Connection]:
        try:
            self._ensure_schema()
            with _transaction(self._db_path) as conn:
                yield conn
        except (sqlite3.Error, OSError) as e:
            raise StoreError(f"Failed to {action} cache at {self._db_path}: {e}") from e

    def get(self, key: LookupKey) -> CacheEntry | None:
        with self._session("read") as conn:
            row = conn.execute(
                "SELECT word, mode, text, created_at_utc FROM entries WHERE word = ? AND mode = ?",
                (key.word, key.mode.value),
            ).fetchone()
        if row is None:
            logger.debug("Cache miss: %s (%s)", key.word, key.mode.value)
            return None
        logger.debug("Cache hit: %s (%s)", key.word, key.mode.value)
        return _row_to_entry(row)

    def put(self, key: LookupKey, text: str) -> bool:
        """Insert ``text`` for ``key`` unless an entry already exists.

        Returns True when a new row was written. An existing row is left
        untouched, whatever its content.
        """
        with self._session("write") as conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO entries (word, mode, text, created_at_utc) VALUES (?, ?, ?, ?)",
                (key.word, key.mode.value, text, utc_now_iso()),
            )
            inserted = cursor.rowcount > 0
        if not inserted:
            logger.debug("Cache already holds %s (%s); keeping existing entry", key.word, key.mode.value)
        return inserted

    def clear(self, key: LookupKey | None = None) -> int:
        """Remove one entry, or every entry when ``key`` is None.

        The removed entries are handed to the deletion strategy before the
        rows are deleted; if that fails, nothing is removed.
        """
        with self._session("clear") as conn:
            if key is None:
                rows = conn.execute(
                    "SELECT word, mode, text, created_at_utc FROM entries ORDER BY created_at_utc, rowid"
                ).fetchall()
            else:
                rows = conn.execute(
                    "SELECT word, mode, text, created_at_utc FROM entries WHERE word = ? AND mode = ?",
                    (key.word, key.mode.value),
                ).fetchall()
            entries = [_row_to_entry(r) for r in rows]
            if not entries:
                return 0
            self._deletion.discard(entries)
            conn.executemany(
                "DELETE FROM entries WHERE word = ? AND mode = ?",
                [(e.key.word, e.key.mode.value) for e in entries],
            )
        logger.info("Cleared %d cache entries", len(entries))
        return len(entries)

    def list(self) -> list[LookupKey]:
        with self._session("list") as conn:
            rows = conn.execute("SELECT word, mode FROM entries ORDER BY created_at_utc, rowid").fetchall()
        return [LookupKey(word=r["word"], mode=Mode(r["mode"])) for r in rows]

    def restore(self, path: Path) -> int:
        """Re-insert entries from a trash file written by ``TrashDirectory``.

        Keys that have been cached again since are left alone. Returns the
        number of entries restored.
        """
        try:
            payload: dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))
            records = [
                (
                    LookupKey.create(item["word"], item["mode"]),
                    str(item["text"]),
                    str(item["created_at_utc"]),
                )
                for item in payload["entries"]
            ]
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise StoreError(f"Invalid trash file {path}: {e}") from e

        restored = 0
        with self._session("restore") as conn:
            for key, text, created_at in records:
                cursor = conn.execute(
                    "INSERT OR IGNORE INTO entries (word, mode, text, created_at_utc) VALUES (?, ?, ?, ?)",
                    (key.word, key.mode.value, text, created_at),
                )
                restored += cursor.rowcount
        logger.info("Restored %d of %d entries from %s", restored, len(records), path)
        return restored
