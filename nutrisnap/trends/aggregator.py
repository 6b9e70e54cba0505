# -*- coding: utf-8 -*-
"""Trends: day-bucketed aggregation over the meal log.

Every query re-reads the meal store; nothing is cached. Buckets are local
calendar days and every day of the requested interval is present, with zeros
for days without meals.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Callable, Dict, List, Tuple

import pandas as pd

from ..meals.models import CORE_UNITS, MealRecord
from ..meals.storage import DateLike, MealStore, as_date
from .models import (
    DailyTotal,
    HeatmapDay,
    HeatmapDetails,
    HeatmapMeal,
    MacroAverages,
    NutrientPoint,
    StackedMacros,
)

KCAL_PER_GRAM = {"protein": 4.0, "carbs": 4.0, "fat": 9.0}
MACRO_FIELDS = ("calories", "protein", "carbs", "fat")
HEATMAP_MONTHS = 6

Extractor = Callable[[MealRecord], float]


def nutrient_value(meal: MealRecord, key: str) -> float:
    """Core fields first, then vitamins, then minerals; unknown keys count as 0."""
    nutrition = meal.analysis.nutrition
    if key in CORE_UNITS:
        return nutrition.core_value(key)
    if key in nutrition.vitamins:
        return nutrition.vitamins[key].value
    if key in nutrition.minerals:
        return nutrition.minerals[key].value
    return 0.0


def _core(key: str) -> Extractor:
    return lambda meal: meal.analysis.nutrition.core_value(key)


def _day_keys(start: date, end: date) -> List[str]:
    return [d.strftime("%Y-%m-%d") for d in pd.date_range(start, end, freq="D")]


def _meal_day(meal: MealRecord) -> str:
    return datetime.fromtimestamp(meal.timestamp / 1000).strftime("%Y-%m-%d")


def _months_back(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) - months
    return date(index // 12, index % 12 + 1, 1)


class TrendAggregator:
    def __init__(self, store: MealStore, *, today: Callable[[], date] = date.today) -> None:
        self.store = store
        self._today = today

    def _daily_frame(self, start: DateLike, end: DateLike, extractors: Dict[str, Extractor]) -> pd.DataFrame:
        """One row per calendar day in [start, end], one column per extractor, summed."""
        start_d, end_d = as_date(start), as_date(end)
        days = _day_keys(start_d, end_d)
        columns = list(extractors)
        if not days:
            return pd.DataFrame(columns=columns, dtype=float)

        meals = self.store.get_meals_in_range(start_d, end_d)
        rows = [
            {"date": _meal_day(meal), **{name: float(fn(meal)) for name, fn in extractors.items()}}
            for meal in meals
        ]
        frame = pd.DataFrame(rows, columns=["date"] + columns)
        frame = frame.astype({name: float for name in columns})
        daily = frame.groupby("date")[columns].sum()
        return daily.reindex(days, fill_value=0.0)

    def daily_totals(self, start: DateLike, end: DateLike) -> List[DailyTotal]:
        daily = self._daily_frame(start, end, {name: _core(name) for name in MACRO_FIELDS})
        return [
            DailyTotal(date=day, **{name: float(row[name]) for name in MACRO_FIELDS})
            for day, row in daily.iterrows()
        ]

    def macro_averages(self, start: DateLike, end: DateLike) -> MacroAverages:
        daily = self._daily_frame(start, end, {name: _core(name) for name in MACRO_FIELDS})
        day_count = len(daily)
        if day_count == 0:
            return MacroAverages()

        totals = {name: float(daily[name].sum()) for name in ("protein", "carbs", "fat")}
        macro_kcal = {name: grams * KCAL_PER_GRAM[name] for name, grams in totals.items()}
        kcal_sum = sum(macro_kcal.values())

        def share(name: str) -> float:
            return macro_kcal[name] / kcal_sum * 100 if kcal_sum else 0.0

        return MacroAverages(
            protein=share("protein"),
            carbs=share("carbs"),
            fat=share("fat"),
            avg_protein=totals["protein"] / day_count,
            avg_carbs=totals["carbs"] / day_count,
            avg_fat=totals["fat"] / day_count,
        )

    def stacked_macros(self, start: DateLike, end: DateLike) -> List[StackedMacros]:
        return [
            StackedMacros(
                date=day.date,
                protein=day.protein * KCAL_PER_GRAM["protein"],
                carbs=day.carbs * KCAL_PER_GRAM["carbs"],
                fat=day.fat * KCAL_PER_GRAM["fat"],
                calories=day.calories,
            )
            for day in self.daily_totals(start, end)
        ]

    def nutrient_trend(self, start: DateLike, end: DateLike, nutrient_key: str) -> List[NutrientPoint]:
        daily = self._daily_frame(start, end, {"value": lambda meal: nutrient_value(meal, nutrient_key)})
        return [NutrientPoint(date=day, value=float(row["value"])) for day, row in daily.iterrows()]

    def heatmap_window(self) -> Tuple[date, date]:
        """First day of the month five months back, through today."""
        today = self._today()
        return _months_back(today, HEATMAP_MONTHS - 1), today

    def heatmap_data(self, metric: str = "calories") -> List[HeatmapDay]:
        start, end = self.heatmap_window()
        details: Dict[str, HeatmapDetails] = {day: HeatmapDetails() for day in _day_keys(start, end)}
        counts: Dict[str, float] = {day: 0.0 for day in details}

        for meal in self.store.get_meals_in_range(start, end):
            day = _meal_day(meal)
            bucket = details.get(day)
            if bucket is None:
                continue
            nutrition = meal.analysis.nutrition
            entry = HeatmapMeal(
                name=meal.analysis.food_name,
                time=datetime.fromtimestamp(meal.timestamp / 1000).strftime("%I:%M %p"),
                **{name: nutrition.core_value(name) for name in MACRO_FIELDS},
            )
            bucket.meals.append(entry)
            for name in MACRO_FIELDS:
                setattr(bucket, name, getattr(bucket, name) + getattr(entry, name))
            counts[day] += nutrient_value(meal, metric or "calories")

        return [HeatmapDay(date=day, count=counts[day], details=details[day]) for day in details]
