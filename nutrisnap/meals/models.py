# -*- coding: utf-8 -*-
"""Meals: Pydantic models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

CORE_UNITS: Dict[str, str] = {
    "calories": "kcal",
    "protein": "g",
    "carbs": "g",
    "fat": "g",
    "fiber": "g",
    "sugar": "g",
}

VITAMIN_UNITS: Dict[str, str] = {
    "vitaminA": "mcg",
    "vitaminC": "mg",
    "vitaminD": "mcg",
    "vitaminB6": "mg",
    "vitaminB12": "mcg",
}

MINERAL_UNITS: Dict[str, str] = {
    "sodium": "mg",
    "iron": "mg",
    "calcium": "mg",
    "potassium": "mg",
    "magnesium": "mg",
}


class NutrientAmount(BaseModel):
    value: float = Field(0.0, ge=0)
    unit: str = ""


def _zero(unit: str):
    return lambda: NutrientAmount(value=0.0, unit=unit)


class NutritionData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    calories: NutrientAmount = Field(default_factory=_zero("kcal"))
    protein: NutrientAmount = Field(default_factory=_zero("g"))
    carbs: NutrientAmount = Field(default_factory=_zero("g"))
    fat: NutrientAmount = Field(default_factory=_zero("g"))
    fiber: NutrientAmount = Field(default_factory=_zero("g"))
    sugar: NutrientAmount = Field(default_factory=_zero("g"))
    saturated_fat: Optional[NutrientAmount] = Field(None, alias="saturatedFat")
    vitamins: Dict[str, NutrientAmount] = Field(default_factory=dict)
    minerals: Dict[str, NutrientAmount] = Field(default_factory=dict)

    def core_value(self, key: str) -> float:
        return getattr(self, key).value


class FoodItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    quantity: str = ""
    estimated_weight: str = Field("", alias="estimatedWeight")


class MealAnalysis(BaseModel):
    """The `geminiAnalysis` payload: normalized nutrition plus description."""

    model_config = ConfigDict(populate_by_name=True)

    food_name: str = Field("Unknown Food", alias="foodName")
    quantity: str = "1 serving"
    items: List[FoodItem] = Field(default_factory=list)
    nutrition: NutritionData = Field(default_factory=NutritionData)
    raw_response: Optional[str] = Field(None, alias="rawResponse")


class MealType(str, Enum):
    manual = "manual"
    image = "image"


class MealDraft(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: MealType = MealType.manual
    user_input: Dict[str, Any] = Field(default_factory=dict, alias="userInput")
    analysis: MealAnalysis = Field(default_factory=MealAnalysis, alias="geminiAnalysis")


class MealRecord(MealDraft):
    id: str
    timestamp: int = Field(..., description="Epoch milliseconds")

    def to_storage(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class MealsResponse(BaseModel):
    count: int
    meals: List[MealRecord]


class AnalyzeTextRequest(BaseModel):
    description: str = Field(..., min_length=1, max_length=2000)
    quantity: str = Field("1 serving", max_length=200)


class AnalyzeImageRequest(BaseModel):
    image_mime: str = Field("image/jpeg", pattern=r"^image/(jpeg|jpg|png|heic|webp)$")
    image_base64: str = Field(..., min_length=16, description="Raw base64 or data URL")
