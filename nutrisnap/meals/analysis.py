# -*- coding: utf-8 -*-
"""Meals: port for the remote nutrition-analysis service.

No vendor client ships here; the application is configured with any object
implementing :class:`NutritionAnalyzer` (see ``create_app(analyzer=...)``).
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Protocol

from .models import MealAnalysis
from .normalize import normalize

logger = logging.getLogger(__name__)


class AnalysisError(Exception):
    """Base class for analysis-service failures."""


class AnalysisRetryableError(AnalysisError):
    """Transient failure (network, quota, malformed output). Ask the user to retry."""


class UnrecognizedFoodError(AnalysisError):
    """The service could not identify any food in the description or photo."""


class NutritionAnalyzer(Protocol):
    def analyze_from_text(self, description: str, quantity: str) -> Dict[str, Any]: ...

    def analyze_from_image(self, image_bytes: bytes) -> Dict[str, Any]: ...


def _strip_fences(text: str) -> str:
    cleaned = text.strip()
    cleaned = re.sub(r"^```(?:json)?\s*", "", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"\s*```$", "", cleaned)
    return cleaned.strip()


def parse_analysis_text(text: str) -> Dict[str, Any]:
    """Decode the model's text answer into a payload dict.

    Models occasionally truncate the final closing brace, so a failed parse is
    retried once with ``}`` appended. A payload carrying an ``error`` key is the
    service's structured "not food" answer.
    """
    cleaned = _strip_fences(text or "")
    try:
        data = json.loads(cleaned)
    except ValueError:
        try:
            data = json.loads(cleaned + "}")
        except ValueError as exc:
            raise AnalysisRetryableError(
                "Unable to parse JSON response from the analysis service."
            ) from exc
        logger.info("Recovered truncated analysis response")

    if not isinstance(data, dict):
        raise AnalysisRetryableError("Analysis response is not a JSON object.")
    error = data.get("error")
    if error:
        raise UnrecognizedFoodError(str(error))
    data.setdefault("rawResponse", text)
    return data


def _coerce_payload(payload: Any) -> Dict[str, Any]:
    if isinstance(payload, str):
        return parse_analysis_text(payload)
    if not isinstance(payload, dict):
        raise AnalysisRetryableError(f"Unexpected analysis payload type: {type(payload).__name__}")
    if payload.get("error"):
        raise UnrecognizedFoodError(str(payload["error"]))
    return payload


def analyze_text(analyzer: NutritionAnalyzer, description: str, quantity: str) -> MealAnalysis:
    payload = _coerce_payload(analyzer.analyze_from_text(description, quantity))
    analysis = normalize(payload)
    if not payload.get("quantity"):
        analysis.quantity = quantity or analysis.quantity
    return analysis


def analyze_image(analyzer: NutritionAnalyzer, image_bytes: bytes) -> MealAnalysis:
    return normalize(_coerce_payload(analyzer.analyze_from_image(image_bytes)))
