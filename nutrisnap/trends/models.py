# -*- coding: utf-8 -*-
"""Trends: Pydantic models."""

from __future__ import annotations

import math
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class DailyTotal(BaseModel):
    date: str = Field(..., description="YYYY-MM-DD")
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0


class StackedMacros(BaseModel):
    """Protein/carbs/fat in kcal-equivalents; calories as logged."""

    date: str
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    calories: float = 0.0


class MacroAverages(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    protein: float = Field(0.0, description="% of macro-calories")
    carbs: float = 0.0
    fat: float = 0.0
    avg_protein: float = Field(0.0, alias="avgProtein")
    avg_carbs: float = Field(0.0, alias="avgCarbs")
    avg_fat: float = Field(0.0, alias="avgFat")


class NutrientPoint(BaseModel):
    date: str
    value: float = 0.0


class HeatmapMeal(BaseModel):
    name: str
    time: str
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0


class HeatmapDetails(BaseModel):
    meals: List[HeatmapMeal] = Field(default_factory=list)
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0


class HeatmapDay(BaseModel):
    date: str
    count: float = 0.0
    details: HeatmapDetails = Field(default_factory=HeatmapDetails)


class MetricRange(BaseModel):
    min: float
    max: float
    color: str
    label: str

    @field_serializer("max", when_used="json")
    def _open_ended_max(self, value: float) -> Optional[float]:
        # JSON has no infinity; the top bucket is sent as max: null.
        return None if math.isinf(value) else value
