# -*- coding: utf-8 -*-
"""FastAPI dependencies: stores and services live on ``app.state``."""

from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, Request

from .goals.storage import GoalStore
from .meals.analysis import NutritionAnalyzer
from .meals.storage import MealStore
from .trends.aggregator import TrendAggregator


def get_meal_store(request: Request) -> MealStore:
    return request.app.state.meal_store


def get_goal_store(request: Request) -> GoalStore:
    return request.app.state.goal_store


def get_trends(request: Request) -> TrendAggregator:
    return request.app.state.trends


def get_analyzer(request: Request) -> NutritionAnalyzer:
    analyzer: Optional[NutritionAnalyzer] = getattr(request.app.state, "analyzer", None)
    if analyzer is None:
        raise HTTPException(status_code=503, detail="Nutrition analysis service is not configured")
    return analyzer
