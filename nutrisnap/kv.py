# -*- coding: utf-8 -*-
"""Persistence port: named key-value slots holding JSON text.

Each domain store owns exactly one slot and rewrites it as a whole
(read-modify-write). Backends: in-memory (tests), one JSON file per key,
or a single SQLite table.
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Protocol

from .config import Settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base class for persistence failures."""


class StorageReadError(StorageError):
    """Slot exists but cannot be read or decoded."""


class StorageWriteError(StorageError):
    """Slot could not be written (disk full, permissions, locked DB...)."""


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileKeyValueStore:
    """One `<key>.json` file per slot under `root`."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def _path(self, key: str) -> Path:
        safe = "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in key)
        return self.root / f"{safe}.json"

    def get(self, key: str) -> Optional[str]:
        fp = self._path(key)
        if not fp.exists():
            return None
        try:
            return fp.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageReadError(f"Cannot read {fp}: {exc}") from exc

    def set(self, key: str, value: str) -> None:
        fp = self._path(key)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            # Write to a sibling temp file, then swap it in so readers never see half a slot.
            fd, tmp = tempfile.mkstemp(prefix=f".{fp.name}.", dir=str(self.root))
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(value)
                os.replace(tmp, fp)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageWriteError(f"Cannot write {fp}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageWriteError(f"Cannot delete slot {key}: {exc}") from exc


class SqliteKeyValueStore:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        with self._conn() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_slots (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def get(self, key: str) -> Optional[str]:
        try:
            with self._conn() as conn:
                row = conn.execute("SELECT value FROM kv_slots WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise StorageReadError(f"Cannot read slot {key}: {exc}") from exc
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        try:
            with self._conn() as conn:
                conn.execute(
                    """
                    INSERT INTO kv_slots (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                    """,
                    (key, value, now),
                )
        except sqlite3.Error as exc:
            raise StorageWriteError(f"Cannot write slot {key}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            with self._conn() as conn:
                conn.execute("DELETE FROM kv_slots WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise StorageWriteError(f"Cannot delete slot {key}: {exc}") from exc


def open_store(cfg: Settings) -> KeyValueStore:
    backend = cfg.storage_backend
    if backend == "memory":
        return MemoryKeyValueStore()
    if backend == "sqlite":
        return SqliteKeyValueStore(cfg.db_path)
    if backend == "file":
        return FileKeyValueStore(cfg.data_root / "slots")
    raise ValueError(f"Unknown storage backend: {backend!r}")


Listener = Callable[[], None]


class JsonSlot:
    """A single named slot with JSON (de)serialization and change listeners.

    Reads never raise: a missing, unreadable or undecodable slot yields
    ``default()``. Writes raise :class:`StorageWriteError` and notify
    listeners only after the value has been stored.
    """

    def __init__(self, store: KeyValueStore, key: str) -> None:
        self.store = store
        self.key = key
        self._listeners: List[Listener] = []

    def read(self, default: Callable[[], Any]) -> Any:
        try:
            raw = self.store.get(self.key)
            if raw is None or not raw.strip():
                return default()
            return json.loads(raw)
        except (StorageReadError, ValueError) as exc:
            logger.warning("Slot %s unreadable, treating as empty: %s", self.key, exc)
            return default()

    def write(self, value: Any) -> None:
        try:
            text = json.dumps(value, ensure_ascii=False)
            self.store.set(self.key, text)
        except StorageWriteError:
            logger.error("Failed to persist slot %s", self.key)
            raise
        except (TypeError, ValueError) as exc:
            raise StorageWriteError(f"Slot {self.key} value is not JSON serializable: {exc}") from exc
        self._notify()

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._listeners):
            try:
                callback()
            except Exception:
                logger.exception("Change listener for slot %s failed", self.key)
