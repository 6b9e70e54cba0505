# -*- coding: utf-8 -*-
"""Meals: persisted meal log (one JSON slot, append-only except deletes)."""

from __future__ import annotations

import logging
import time
from datetime import date, datetime, timedelta
from typing import Any, Callable, Iterable, List, Optional, Tuple, Union
from uuid import uuid4

from pydantic import ValidationError

from ..kv import JsonSlot, KeyValueStore
from .models import MealDraft, MealRecord

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]

DAY_MS = 86_400_000


def now_ms() -> int:
    return int(time.time() * 1000)


def new_meal_id() -> str:
    return str(uuid4())


def as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def start_of_day_ms(day: DateLike) -> int:
    """Local midnight of `day`, in epoch milliseconds."""
    midnight = datetime.combine(as_date(day), datetime.min.time())
    return int(midnight.timestamp() * 1000)


def local_day(timestamp_ms: int) -> date:
    return datetime.fromtimestamp(timestamp_ms / 1000).date()


class MealStore:
    def __init__(
        self,
        store: KeyValueStore,
        key: str = "nutrisnap_meals",
        *,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = new_meal_id,
    ) -> None:
        self.slot = JsonSlot(store, key)
        self._clock = clock
        self._new_id = id_factory

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register `callback` to run after every successful write; returns an unsubscribe function."""
        return self.slot.subscribe(callback)

    def _load_raw(self) -> List[Any]:
        data = self.slot.read(list)
        if not isinstance(data, list):
            logger.warning("Meal slot %s does not hold a list, treating as empty", self.slot.key)
            return []
        return data

    def get_all_meals(self) -> List[MealRecord]:
        meals: List[MealRecord] = []
        for raw in self._load_raw():
            try:
                meals.append(MealRecord.model_validate(raw))
            except ValidationError as exc:
                logger.warning("Skipping invalid stored meal: %s", exc.errors()[:1])
                continue
        return meals

    def _write(self, meals: Iterable[MealRecord]) -> None:
        self.slot.write([m.to_storage() for m in meals])

    def get_meal(self, meal_id: str) -> Optional[MealRecord]:
        for meal in self.get_all_meals():
            if meal.id == meal_id:
                return meal
        return None

    def save_meal(self, draft: MealDraft) -> MealRecord:
        meals = self.get_all_meals()
        record = MealRecord(
            id=self._new_id(),
            timestamp=self._clock(),
            type=draft.type,
            user_input=draft.user_input,
            analysis=draft.analysis,
        )
        meals.append(record)
        self._write(meals)
        return record

    def delete_meal(self, meal_id: str) -> bool:
        """Remove the meal with `meal_id`. Returns False (and writes nothing) if absent."""
        meals = self.get_all_meals()
        kept = [m for m in meals if m.id != meal_id]
        if len(kept) == len(meals):
            return False
        self._write(kept)
        return True

    def get_meals_by_date(self, day: DateLike) -> List[MealRecord]:
        start = start_of_day_ms(day)
        end = start_of_day_ms(as_date(day) + timedelta(days=1))
        return [m for m in self.get_all_meals() if start <= m.timestamp < end]

    def get_meals_in_range(self, start: DateLike, end: DateLike) -> List[MealRecord]:
        """Meals whose local calendar day lies in [start, end], both inclusive."""
        lo = start_of_day_ms(start)
        hi = start_of_day_ms(as_date(end) + timedelta(days=1))
        return [m for m in self.get_all_meals() if lo <= m.timestamp < hi]

    def import_records(self, records: Iterable[MealRecord]) -> Tuple[int, int]:
        """Append `records` in one write, re-keying any id already taken.

        Returns ``(imported, total)``.
        """
        meals = self.get_all_meals()
        taken = {m.id for m in meals}
        incoming: List[MealRecord] = []
        for record in records:
            if not record.id or record.id in taken:
                fresh = self._new_id()
                while fresh in taken:
                    fresh = self._new_id()
                record = record.model_copy(update={"id": fresh})
            taken.add(record.id)
            incoming.append(record)
        if incoming:
            self._write(meals + incoming)
        return len(incoming), len(meals) + len(incoming)
