# -*- coding: utf-8 -*-
"""Meals: API endpoints."""

from __future__ import annotations

import base64
import binascii
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ..deps import get_analyzer, get_meal_store
from ..kv import StorageWriteError
from .analysis import (
    AnalysisRetryableError,
    NutritionAnalyzer,
    UnrecognizedFoodError,
    analyze_image,
    analyze_text,
)
from .models import (
    AnalyzeImageRequest,
    AnalyzeTextRequest,
    MealAnalysis,
    MealDraft,
    MealRecord,
    MealsResponse,
)
from .storage import MealStore

router = APIRouter(prefix="/api/meals", tags=["Meals"])


def _decode_image_or_400(image_base64: str, max_bytes: int) -> bytes:
    payload = image_base64.split(",", 1)[1] if image_base64.startswith("data:") else image_base64
    try:
        data = base64.b64decode(payload, validate=True)
    except binascii.Error as exc:
        raise HTTPException(status_code=400, detail=f"Invalid base64 image: {exc}") from exc
    if len(data) > max_bytes:
        raise HTTPException(status_code=400, detail=f"Image too large: {len(data)} bytes > {max_bytes}")
    return data


@router.post("", response_model=MealRecord, summary="Save a reviewed meal")
def create_meal(draft: MealDraft, store: MealStore = Depends(get_meal_store)):
    try:
        return store.save_meal(draft)
    except StorageWriteError as exc:
        raise HTTPException(status_code=507, detail=f"Failed to save meal: {exc}") from exc


@router.get("", response_model=MealsResponse, summary="List all meals in storage order")
def list_meals(store: MealStore = Depends(get_meal_store)):
    meals = store.get_all_meals()
    return MealsResponse(count=len(meals), meals=meals)


@router.get("/by-date", response_model=MealsResponse, summary="Meals logged on one calendar day")
def meals_by_date(
    day: date = Query(..., alias="date", description="YYYY-MM-DD"),
    store: MealStore = Depends(get_meal_store),
):
    meals = store.get_meals_by_date(day)
    return MealsResponse(count=len(meals), meals=meals)


@router.post("/analyze", response_model=MealAnalysis, summary="Estimate nutrition from a text description")
def analyze_description(request: AnalyzeTextRequest, analyzer: NutritionAnalyzer = Depends(get_analyzer)):
    try:
        return analyze_text(analyzer, request.description, request.quantity)
    except UnrecognizedFoodError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except AnalysisRetryableError as exc:
        raise HTTPException(status_code=502, detail=f"Analysis failed, please retry: {exc}") from exc


@router.post("/analyze-image", response_model=MealAnalysis, summary="Estimate nutrition from a meal photo")
def analyze_photo(
    payload: AnalyzeImageRequest,
    request: Request,
    analyzer: NutritionAnalyzer = Depends(get_analyzer),
):
    image_bytes = _decode_image_or_400(payload.image_base64, request.app.state.settings.max_image_bytes)
    try:
        return analyze_image(analyzer, image_bytes)
    except UnrecognizedFoodError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except AnalysisRetryableError as exc:
        raise HTTPException(status_code=502, detail=f"Analysis failed, please retry: {exc}") from exc


@router.get("/{meal_id}", response_model=MealRecord, summary="Get one meal")
def get_meal(meal_id: str, store: MealStore = Depends(get_meal_store)):
    meal = store.get_meal(meal_id)
    if meal is None:
        raise HTTPException(status_code=404, detail="Meal not found")
    return meal


@router.delete("/{meal_id}", summary="Delete a meal (no-op if absent)")
def delete_meal(meal_id: str, store: MealStore = Depends(get_meal_store)):
    try:
        deleted = store.delete_meal(meal_id)
    except StorageWriteError as exc:
        raise HTTPException(status_code=507, detail=f"Failed to delete meal: {exc}") from exc
    return {"id": meal_id, "deleted": deleted}
