# -*- coding: utf-8 -*-

from __future__ import annotations

import itertools
import json
import unittest
from datetime import datetime

from nutrisnap.csvio.codec import to_csv
from nutrisnap.csvio.importer import import_meals
from nutrisnap.kv import MemoryKeyValueStore, StorageWriteError
from nutrisnap.meals.models import MealDraft
from nutrisnap.meals.normalize import normalize
from nutrisnap.meals.storage import MealStore


def ms(*args: int) -> int:
    return int(datetime(*args).timestamp() * 1000)


class FlakyStore(MemoryKeyValueStore):
    fail = False

    def set(self, key: str, value: str) -> None:
        if self.fail:
            raise StorageWriteError("quota exceeded")
        super().set(key, value)


class TestImportMeals(unittest.TestCase):
    def setUp(self) -> None:
        self.kv = FlakyStore()
        counter = itertools.count(1)
        self.store = MealStore(self.kv, clock=lambda: ms(2024, 1, 1, 8), id_factory=lambda: f"id-{next(counter)}")

    def _save(self, name: str, calories: float):
        analysis = normalize({"foodName": name, "nutrition": {"calories": calories}})
        return self.store.save_meal(MealDraft(analysis=analysis))

    def test_import_is_additive_and_rekeys_collisions(self) -> None:
        existing = self._save("Porridge", 300)
        exported = to_csv(self.store.get_all_meals())

        result = import_meals(self.store, exported)
        self.assertTrue(result.success)
        self.assertEqual(result.imported, 1)
        self.assertEqual(result.total, 2)

        meals = self.store.get_all_meals()
        self.assertEqual(meals[0].id, existing.id)
        self.assertNotEqual(meals[1].id, existing.id)
        self.assertEqual(meals[1].analysis.food_name, "Porridge")
        self.assertEqual(meals[1].timestamp, existing.timestamp)

    def test_import_into_empty_store_keeps_ids(self) -> None:
        other = MealStore(MemoryKeyValueStore())
        source = [self._save("A", 100), self._save("B", 200)]
        result = import_meals(other, to_csv(source))
        self.assertEqual((result.success, result.imported, result.total), (True, 2, 2))
        self.assertEqual([m.id for m in other.get_all_meals()], [m.id for m in source])

    def test_corrupted_header_fails_and_leaves_store_untouched(self) -> None:
        self._save("Porridge", 300)
        before = self.kv.get("nutrisnap_meals")
        exported = to_csv(self.store.get_all_meals())
        corrupted = exported.replace("calories", "kcal", 1)

        result = import_meals(self.store, corrupted)
        self.assertFalse(result.success)
        self.assertTrue(result.error)
        self.assertEqual(len(self.store.get_all_meals()), 1)
        self.assertEqual(self.kv.get("nutrisnap_meals"), before)
        self.assertEqual(result.model_dump(exclude_none=True), {"success": False, "imported": 0, "total": 0, "error": result.error})

    def test_write_failure_is_reported_not_raised(self) -> None:
        self._save("Porridge", 300)
        exported = to_csv(self.store.get_all_meals())
        self.kv.fail = True
        result = import_meals(self.store, exported)
        self.assertFalse(result.success)
        self.assertIn("quota exceeded", result.error)
        self.kv.fail = False
        self.assertEqual(len(self.store.get_all_meals()), 1)

    def test_import_notifies_once(self) -> None:
        source = [self._save("A", 100), self._save("B", 200)]
        events = []
        self.store.subscribe(lambda: events.append(1))
        import_meals(self.store, to_csv(source))
        self.assertEqual(events, [1])
        self.assertEqual(len(json.loads(self.kv.get("nutrisnap_meals"))), 4)

    def test_skipped_rows_do_not_count(self) -> None:
        source = [self._save("A", 100)]
        lines = to_csv(source).splitlines()
        broken = lines[1].replace("2024-01-01", "not-a-date", 1)
        text = "\n".join([lines[0], lines[1], broken])
        result = import_meals(self.store, text)
        self.assertEqual((result.imported, result.total), (1, 2))

    def test_unrepresentable_date_is_skipped_not_raised(self) -> None:
        source = [self._save("A", 100)]
        lines = to_csv(source).splitlines()
        ancient = lines[1].replace("2024-01-01", "0001-01-01", 1).replace("08:00:00 AM", "12:00:00 AM", 1)
        result = import_meals(self.store, "\n".join([lines[0], ancient, lines[1]]))
        self.assertTrue(result.success)
        self.assertEqual((result.imported, result.total), (1, 2))


if __name__ == "__main__":
    unittest.main()
