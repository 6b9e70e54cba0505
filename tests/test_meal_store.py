# -*- coding: utf-8 -*-

from __future__ import annotations

import itertools
import json
import unittest
from datetime import date, datetime

from nutrisnap.kv import MemoryKeyValueStore, StorageWriteError
from nutrisnap.meals.models import MealDraft, MealType
from nutrisnap.meals.normalize import normalize
from nutrisnap.meals.storage import DAY_MS, MealStore, start_of_day_ms


def ms(*args: int) -> int:
    return int(datetime(*args).timestamp() * 1000)


def draft(name: str = "Toast", calories: float = 100, protein: float = 0) -> MealDraft:
    analysis = normalize(
        {"foodName": name, "nutrition": {"calories": calories, "macronutrients": {"protein": protein}}}
    )
    return MealDraft(type=MealType.manual, user_input={"description": name, "quantity": "1"}, analysis=analysis)


class Clock:
    def __init__(self, value: int) -> None:
        self.value = value

    def __call__(self) -> int:
        return self.value


class ReadOnlyStore(MemoryKeyValueStore):
    def set(self, key: str, value: str) -> None:
        raise StorageWriteError("quota exceeded")


class TestMealStore(unittest.TestCase):
    def setUp(self) -> None:
        self.kv = MemoryKeyValueStore()
        self.clock = Clock(ms(2024, 1, 1, 8, 0))
        counter = itertools.count(1)
        self.store = MealStore(self.kv, clock=self.clock, id_factory=lambda: f"meal-{next(counter)}")

    def test_save_assigns_id_and_timestamp(self) -> None:
        record = self.store.save_meal(draft("Eggs"))
        self.assertEqual(record.id, "meal-1")
        self.assertEqual(record.timestamp, ms(2024, 1, 1, 8, 0))
        self.assertEqual(record.analysis.food_name, "Eggs")
        self.assertEqual(self.store.get_all_meals(), [record])

    def test_persisted_shape_uses_camel_case(self) -> None:
        self.store.save_meal(draft("Eggs"))
        stored = json.loads(self.kv.get("nutrisnap_meals"))
        self.assertEqual(len(stored), 1)
        self.assertIn("geminiAnalysis", stored[0])
        self.assertIn("userInput", stored[0])
        self.assertEqual(stored[0]["geminiAnalysis"]["foodName"], "Eggs")
        self.assertEqual(stored[0]["geminiAnalysis"]["nutrition"]["calories"], {"value": 100.0, "unit": "kcal"})

    def test_get_all_is_idempotent_and_in_append_order(self) -> None:
        self.store.save_meal(draft("A"))
        self.clock.value += 1000
        self.store.save_meal(draft("B"))
        first = self.store.get_all_meals()
        second = self.store.get_all_meals()
        self.assertEqual(first, second)
        self.assertEqual([m.analysis.food_name for m in first], ["A", "B"])

    def test_delete_and_missing_delete_is_noop(self) -> None:
        a = self.store.save_meal(draft("A"))
        b = self.store.save_meal(draft("B"))
        self.assertTrue(self.store.delete_meal(a.id))
        self.assertFalse(self.store.delete_meal("nope"))
        self.assertEqual([m.id for m in self.store.get_all_meals()], [b.id])

    def test_meals_by_date_uses_calendar_day_boundaries(self) -> None:
        day = date(2024, 1, 2)
        start = start_of_day_ms(day)
        for ts in (start - 1, start, start + DAY_MS - 1, start + DAY_MS):
            self.clock.value = ts
            self.store.save_meal(draft(str(ts)))

        found = [m.timestamp for m in self.store.get_meals_by_date(day)]
        self.assertEqual(found, [start, start + DAY_MS - 1])
        # Time of day on the query argument is ignored.
        self.assertEqual(
            [m.timestamp for m in self.store.get_meals_by_date(datetime(2024, 1, 2, 17, 45))],
            found,
        )

    def test_end_to_end_two_meals_same_day(self) -> None:
        self.clock.value = ms(2024, 1, 1, 8, 0)
        self.store.save_meal(draft("A", calories=500, protein=30))
        self.clock.value = ms(2024, 1, 1, 13, 0)
        self.store.save_meal(draft("B", calories=700, protein=20))
        names = [m.analysis.food_name for m in self.store.get_meals_by_date(date(2024, 1, 1))]
        self.assertEqual(names, ["A", "B"])

    def test_corrupt_slot_reads_as_empty(self) -> None:
        for corrupt in ("{broken", '{"not": "a list"}', "42"):
            self.kv.set("nutrisnap_meals", corrupt)
            self.assertEqual(self.store.get_all_meals(), [])
            self.assertEqual(self.store.get_meals_by_date(date(2024, 1, 1)), [])

    def test_invalid_records_are_skipped(self) -> None:
        good = self.store.save_meal(draft("Good"))
        stored = json.loads(self.kv.get("nutrisnap_meals"))
        stored.append({"id": "bad"})
        self.kv.set("nutrisnap_meals", json.dumps(stored))
        self.assertEqual([m.id for m in self.store.get_all_meals()], [good.id])

    def test_write_failure_propagates(self) -> None:
        store = MealStore(ReadOnlyStore())
        with self.assertRaises(StorageWriteError):
            store.save_meal(draft())

    def test_subscribers_notified_on_writes(self) -> None:
        events = []
        self.store.subscribe(lambda: events.append("changed"))
        meal = self.store.save_meal(draft())
        self.store.delete_meal("missing")
        self.store.delete_meal(meal.id)
        self.assertEqual(events, ["changed", "changed"])

    def test_import_records_rekeys_collisions(self) -> None:
        existing = self.store.save_meal(draft("Existing"))
        clash = existing.model_copy(update={"analysis": normalize({"foodName": "Imported"})})
        imported, total = self.store.import_records([clash, clash])
        self.assertEqual((imported, total), (2, 3))
        meals = self.store.get_all_meals()
        ids = [m.id for m in meals]
        self.assertEqual(len(set(ids)), 3)
        self.assertEqual(meals[0].analysis.food_name, "Existing")
        self.assertEqual(meals[0].id, existing.id)


if __name__ == "__main__":
    unittest.main()
