# -*- coding: utf-8 -*-

from __future__ import annotations

import shutil
import tempfile
import unittest
from pathlib import Path

from nutrisnap.config import Settings
from nutrisnap.kv import (
    FileKeyValueStore,
    JsonSlot,
    MemoryKeyValueStore,
    SqliteKeyValueStore,
    StorageReadError,
    StorageWriteError,
    open_store,
)


class BrokenStore:
    def get(self, key: str):
        raise StorageReadError("disk on fire")

    def set(self, key: str, value: str) -> None:
        raise StorageWriteError("quota exceeded")

    def delete(self, key: str) -> None:
        raise StorageWriteError("quota exceeded")


class TestBackends(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="nutrisnap-kv-"))

    def tearDown(self) -> None:
        shutil.rmtree(self._tmp, ignore_errors=True)

    def _roundtrip(self, store) -> None:
        self.assertIsNone(store.get("meals"))
        store.set("meals", "[1, 2]")
        self.assertEqual(store.get("meals"), "[1, 2]")
        store.set("meals", "[]")
        self.assertEqual(store.get("meals"), "[]")
        store.delete("meals")
        self.assertIsNone(store.get("meals"))
        store.delete("meals")

    def test_memory(self) -> None:
        self._roundtrip(MemoryKeyValueStore())

    def test_file(self) -> None:
        store = FileKeyValueStore(self._tmp / "slots")
        self._roundtrip(store)
        store.set("nutrisnap_meals", "[]")
        self.assertTrue((self._tmp / "slots" / "nutrisnap_meals.json").exists())
        self.assertEqual([p.name for p in (self._tmp / "slots").iterdir()], ["nutrisnap_meals.json"])

    def test_sqlite(self) -> None:
        store = SqliteKeyValueStore(self._tmp / "db" / "nutrisnap.db")
        self._roundtrip(store)
        store.set("goals", "{}")
        reopened = SqliteKeyValueStore(self._tmp / "db" / "nutrisnap.db")
        self.assertEqual(reopened.get("goals"), "{}")

    def test_open_store_by_backend(self) -> None:
        cfg = Settings()
        cfg.data_root = self._tmp
        cfg.db_path = self._tmp / "x.db"
        cfg.storage_backend = "memory"
        self.assertIsInstance(open_store(cfg), MemoryKeyValueStore)
        cfg.storage_backend = "file"
        self.assertIsInstance(open_store(cfg), FileKeyValueStore)
        cfg.storage_backend = "sqlite"
        self.assertIsInstance(open_store(cfg), SqliteKeyValueStore)
        cfg.storage_backend = "redis"
        with self.assertRaises(ValueError):
            open_store(cfg)


class TestJsonSlot(unittest.TestCase):
    def test_corrupt_value_reads_as_default(self) -> None:
        slot = JsonSlot(MemoryKeyValueStore({"k": "{not json"}), "k")
        self.assertEqual(slot.read(list), [])

    def test_read_error_reads_as_default(self) -> None:
        slot = JsonSlot(BrokenStore(), "k")
        self.assertEqual(slot.read(dict), {})

    def test_write_error_propagates_without_notifying(self) -> None:
        slot = JsonSlot(BrokenStore(), "k")
        calls = []
        slot.subscribe(lambda: calls.append(1))
        with self.assertRaises(StorageWriteError):
            slot.write([1])
        self.assertEqual(calls, [])

    def test_listeners_and_unsubscribe(self) -> None:
        slot = JsonSlot(MemoryKeyValueStore(), "k")
        calls = []
        unsubscribe = slot.subscribe(lambda: calls.append("a"))
        slot.write({"x": 1})
        unsubscribe()
        slot.write({"x": 2})
        self.assertEqual(calls, ["a"])
        self.assertEqual(slot.read(dict), {"x": 2})

    def test_failing_listener_does_not_break_write(self) -> None:
        slot = JsonSlot(MemoryKeyValueStore(), "k")
        calls = []

        def boom() -> None:
            raise RuntimeError("listener bug")

        slot.subscribe(boom)
        slot.subscribe(lambda: calls.append(1))
        with self.assertLogs("nutrisnap.kv", level="ERROR"):
            slot.write([])
        self.assertEqual(calls, [1])


if __name__ == "__main__":
    unittest.main()
