# -*- coding: utf-8 -*-
"""Trends: API endpoints."""

from __future__ import annotations

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query

from ..deps import get_trends
from .aggregator import TrendAggregator
from .metrics import metric_color, metric_ranges
from .models import DailyTotal, HeatmapDay, MacroAverages, MetricRange, NutrientPoint, StackedMacros

router = APIRouter(prefix="/api/trends", tags=["Trends"])

METRIC_PATTERN = "^(calories|protein|carbs|fat)$"


@router.get("/daily", response_model=List[DailyTotal], summary="Calories and macros per day")
def daily(
    start: date = Query(..., description="YYYY-MM-DD"),
    end: date = Query(..., description="YYYY-MM-DD"),
    trends: TrendAggregator = Depends(get_trends),
):
    return trends.daily_totals(start, end)


@router.get("/macros", response_model=MacroAverages, summary="Macro share of macro-calories and daily averages")
def macros(
    start: date = Query(..., description="YYYY-MM-DD"),
    end: date = Query(..., description="YYYY-MM-DD"),
    trends: TrendAggregator = Depends(get_trends),
):
    return trends.macro_averages(start, end)


@router.get("/stacked", response_model=List[StackedMacros], summary="Macros per day in kcal-equivalents")
def stacked(
    start: date = Query(..., description="YYYY-MM-DD"),
    end: date = Query(..., description="YYYY-MM-DD"),
    trends: TrendAggregator = Depends(get_trends),
):
    return trends.stacked_macros(start, end)


@router.get("/nutrient/{key}", response_model=List[NutrientPoint], summary="Daily sum of any nutrient")
def nutrient(
    key: str,
    start: date = Query(..., description="YYYY-MM-DD"),
    end: date = Query(..., description="YYYY-MM-DD"),
    trends: TrendAggregator = Depends(get_trends),
):
    return trends.nutrient_trend(start, end, key)


@router.get("/heatmap", response_model=List[HeatmapDay], summary="Six-month calendar heatmap")
def heatmap(
    metric: str = Query(default="calories", pattern=METRIC_PATTERN),
    trends: TrendAggregator = Depends(get_trends),
):
    return trends.heatmap_data(metric)


@router.get("/metrics/{metric}", response_model=List[MetricRange], summary="Heatmap buckets for a metric")
def metric_legend(metric: str):
    return metric_ranges(metric)


@router.get("/metrics/{metric}/color", summary="Bucket color for a value")
def metric_value_color(metric: str, value: float = Query(...)):
    return {"metric": metric, "value": value, "color": metric_color(value, metric)}
