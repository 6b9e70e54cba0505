# -*- coding: utf-8 -*-
"""Trends: static heatmap buckets per metric."""

from __future__ import annotations

import math
from typing import Dict, List

from .models import MetricRange

DEFAULT_COLOR = "#ebedf0"

# Buckets are checked in order with inclusive bounds; the first match wins,
# so a value sitting on a shared boundary lands in the lower bucket.
_RANGES: Dict[str, List[MetricRange]] = {
    "calories": [
        MetricRange(min=0, max=0, color=DEFAULT_COLOR, label="No data"),
        MetricRange(min=0, max=500, color="#b7e4c7", label="< 500 kcal"),
        MetricRange(min=500, max=1000, color="#74c69d", label="500-1000 kcal"),
        MetricRange(min=1000, max=2000, color="#40916c", label="1000-2000 kcal"),
        MetricRange(min=2000, max=math.inf, color="#1b4332", label="2000+ kcal"),
    ],
    "protein": [
        MetricRange(min=0, max=0, color=DEFAULT_COLOR, label="No data"),
        MetricRange(min=0, max=50, color="#c7eed8", label="< 50 g"),
        MetricRange(min=50, max=100, color="#7fd1a3", label="50-100 g"),
        MetricRange(min=100, max=150, color="#27ae60", label="100-150 g"),
        MetricRange(min=150, max=math.inf, color="#1e7e46", label="150+ g"),
    ],
    "carbs": [
        MetricRange(min=0, max=0, color=DEFAULT_COLOR, label="No data"),
        MetricRange(min=0, max=100, color="#c6def1", label="< 100 g"),
        MetricRange(min=100, max=200, color="#7fb3dc", label="100-200 g"),
        MetricRange(min=200, max=300, color="#2980b9", label="200-300 g"),
        MetricRange(min=300, max=math.inf, color="#1b5a85", label="300+ g"),
    ],
    "fat": [
        MetricRange(min=0, max=0, color=DEFAULT_COLOR, label="No data"),
        MetricRange(min=0, max=30, color="#f8dcc0", label="< 30 g"),
        MetricRange(min=30, max=60, color="#f0b07a", label="30-60 g"),
        MetricRange(min=60, max=90, color="#e67e22", label="60-90 g"),
        MetricRange(min=90, max=math.inf, color="#a85a14", label="90+ g"),
    ],
}

METRICS = tuple(_RANGES)


def metric_ranges(metric: str = "calories") -> List[MetricRange]:
    return list(_RANGES.get(metric, _RANGES["calories"]))


def metric_color(value: float, metric: str = "calories") -> str:
    for bucket in metric_ranges(metric):
        if bucket.min <= value <= bucket.max:
            return bucket.color
    return DEFAULT_COLOR
