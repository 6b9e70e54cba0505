# -*- coding: utf-8 -*-
"""Goals: Pydantic models."""

from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, Field, field_validator

from ..meals.models import CORE_UNITS, MINERAL_UNITS, VITAMIN_UNITS

PERCENT_GOAL_KEYS = ("proteinPct", "carbsPct", "fatPct")

KNOWN_GOAL_KEYS = frozenset(
    list(CORE_UNITS) + list(VITAMIN_UNITS) + list(MINERAL_UNITS) + list(PERCENT_GOAL_KEYS)
)


class DailyGoalsUpdate(BaseModel):
    goals: Dict[str, float] = Field(..., description="Nutrient key -> daily target")

    @field_validator("goals")
    @classmethod
    def _check_goals(cls, value: Dict[str, float]) -> Dict[str, float]:
        for key, target in value.items():
            if key not in KNOWN_GOAL_KEYS:
                raise ValueError(f"Unknown nutrient key: {key}")
            if target < 0:
                raise ValueError(f"Goal for {key} must be >= 0")
            if key in PERCENT_GOAL_KEYS and target > 100:
                raise ValueError(f"{key} must be a percentage (0-100)")
        return value


class DailyGoalsResponse(BaseModel):
    goals: Dict[str, float] = Field(default_factory=dict)
