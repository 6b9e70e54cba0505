# -*- coding: utf-8 -*-
"""Meals: normalize analysis-service payloads into the canonical nutrition schema.

The service answers in (at least) two shapes:

* nested: ``nutrition.macronutrients.{protein, carbohydrates.{total, fiber, sugar},
  fat.{total, saturated}}`` plus ``nutrition.micronutrients.{vitamins, minerals}``
* flat/legacy: ``nutrition.{protein, carbs, fat, fiber, sugar, vitamins, minerals}``

Precedence is the rule table below: paths are tried in order and the first
positive value wins.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple

from .models import (
    CORE_UNITS,
    MINERAL_UNITS,
    VITAMIN_UNITS,
    FoodItem,
    MealAnalysis,
    NutrientAmount,
    NutritionData,
)

Path = Tuple[str, ...]

CORE_RULES: Tuple[Tuple[str, Tuple[Path, ...]], ...] = (
    ("calories", (("calories",), ("energy",), ("kcal",))),
    ("protein", (("macronutrients", "protein"), ("protein",))),
    (
        "carbs",
        (
            ("macronutrients", "carbohydrates", "total"),
            ("macronutrients", "carbohydrates"),
            ("carbs",),
            ("carbohydrates",),
        ),
    ),
    ("fat", (("macronutrients", "fat", "total"), ("macronutrients", "fat"), ("fat",))),
    ("fiber", (("macronutrients", "carbohydrates", "fiber"), ("fiber",))),
    ("sugar", (("macronutrients", "carbohydrates", "sugar"), ("sugar",))),
)

SATURATED_FAT_PATHS: Tuple[Path, ...] = (
    ("macronutrients", "fat", "saturated"),
    ("saturatedFat",),
    ("saturated_fat",),
)

MICRO_RULES: Tuple[Tuple[str, Tuple[Path, ...], Dict[str, str]], ...] = (
    ("vitamins", (("micronutrients", "vitamins"), ("vitamins",)), VITAMIN_UNITS),
    ("minerals", (("micronutrients", "minerals"), ("minerals",)), MINERAL_UNITS),
)

DEFAULT_FOOD_NAME = "Unknown Food"
DEFAULT_QUANTITY = "1 serving"

_NUM_RE = re.compile(r"-?\d+(?:\.\d+)?")


def _coerce_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        m = _NUM_RE.search(s.replace(",", ""))
        if not m:
            return None
        return float(m.group(0))
    return None


def _dig(obj: Any, path: Path) -> Any:
    for key in path:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def coerce_amount(raw: Any, default_unit: str) -> Optional[NutrientAmount]:
    """`{value, unit}` dicts and bare scalars (`350`, `"12g"`) become a NutrientAmount."""
    if isinstance(raw, dict):
        if "value" not in raw:
            return None
        value = _coerce_float(raw.get("value"))
        unit = raw.get("unit")
        if not isinstance(unit, str) or not unit.strip():
            unit = default_unit
    else:
        value = _coerce_float(raw)
        unit = default_unit
    if value is None:
        return None
    return NutrientAmount(value=max(0.0, value), unit=unit.strip())


def _resolve(source: Dict[str, Any], paths: Tuple[Path, ...], unit: str) -> Optional[NutrientAmount]:
    fallback: Optional[NutrientAmount] = None
    for path in paths:
        amount = coerce_amount(_dig(source, path), unit)
        if amount is None:
            continue
        if amount.value > 0:
            return amount
        if fallback is None:
            fallback = amount
    return fallback


def _resolve_micros(source: Dict[str, Any], paths: Tuple[Path, ...], units: Dict[str, str]) -> Dict[str, NutrientAmount]:
    for path in paths:
        block = _dig(source, path)
        if not isinstance(block, dict) or not block:
            continue
        out: Dict[str, NutrientAmount] = {}
        for key, raw in block.items():
            if not isinstance(key, str) or not key:
                continue
            amount = coerce_amount(raw, units.get(key, "mg"))
            if amount is not None:
                out[key] = amount
        if out:
            return out
    return {}


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"{value:g}"
    return str(value).strip()


def normalize_items(items: Any) -> List[FoodItem]:
    if not isinstance(items, list):
        return []
    out: List[FoodItem] = []
    for raw in items:
        if not isinstance(raw, dict):
            continue
        name = _as_text(raw.get("name") or raw.get("food") or raw.get("item"))
        out.append(
            FoodItem(
                name=name or "unknown",
                quantity=_as_text(raw.get("quantity") or raw.get("portion")),
                estimated_weight=_as_text(
                    raw.get("estimatedWeight") or raw.get("estimated_weight") or raw.get("weight")
                ),
            )
        )
    return out


def normalize_nutrition(source: Any) -> NutritionData:
    if not isinstance(source, dict):
        return NutritionData()

    core: Dict[str, NutrientAmount] = {}
    for field, paths in CORE_RULES:
        amount = _resolve(source, paths, CORE_UNITS[field])
        if amount is not None:
            core[field] = amount

    micros = {name: _resolve_micros(source, paths, units) for name, paths, units in MICRO_RULES}

    return NutritionData(
        **core,
        saturated_fat=_resolve(source, SATURATED_FAT_PATHS, "g"),
        vitamins=micros["vitamins"],
        minerals=micros["minerals"],
    )


def normalize(raw: Any) -> MealAnalysis:
    """Best-effort conversion of any analysis payload. Never raises."""
    if not isinstance(raw, dict):
        raw = {}

    nutrition_src = raw.get("nutrition")
    if not isinstance(nutrition_src, dict):
        nutrition_src = raw

    food_name = raw.get("foodName") or raw.get("food_name")
    quantity = raw.get("quantity")
    raw_response = raw.get("rawResponse")

    return MealAnalysis(
        food_name=_as_text(food_name) or DEFAULT_FOOD_NAME,
        quantity=_as_text(quantity) or DEFAULT_QUANTITY,
        items=normalize_items(raw.get("items")),
        nutrition=normalize_nutrition(nutrition_src),
        raw_response=raw_response if isinstance(raw_response, str) else None,
    )
