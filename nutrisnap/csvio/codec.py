# -*- coding: utf-8 -*-
"""CSV export/import of the meal log.

Two header layouts are accepted on import and told apart once, from the
header set: the legacy layout without ``items (json)`` and the current one
with it. Export always writes the current layout.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..meals.models import (
    MINERAL_UNITS,
    VITAMIN_UNITS,
    FoodItem,
    MealAnalysis,
    MealRecord,
    MealType,
    NutrientAmount,
    NutritionData,
)
from ..meals.normalize import normalize_items
from ..meals.storage import new_meal_id

logger = logging.getLogger(__name__)

ITEMS_COLUMN = "items (json)"

# (column, NutritionData attribute, unit)
NUTRIENT_COLUMNS: Tuple[Tuple[str, str, str], ...] = (
    ("calories", "calories", "kcal"),
    ("protein", "protein", "g"),
    ("carbs-total", "carbs", "g"),
    ("carbs-fiber", "fiber", "g"),
    ("carbs-sugar", "sugar", "g"),
    ("fat-total", "fat", "g"),
    ("fat-saturated", "saturated_fat", "g"),
)

LEGACY_COLUMNS: Tuple[str, ...] = (
    ("id", "date", "time", "type", "foodName", "quantity")
    + tuple(col for col, _, _ in NUTRIENT_COLUMNS)
    + tuple(VITAMIN_UNITS)
    + tuple(MINERAL_UNITS)
)
CURRENT_COLUMNS: Tuple[str, ...] = LEGACY_COLUMNS + (ITEMS_COLUMN,)

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%I:%M:%S %p"
_TIME_FORMATS = ("%I:%M:%S %p", "%I:%M %p", "%I:%M:%S%p", "%I:%M%p", "%H:%M:%S", "%H:%M")


class CSVFormatError(ValueError):
    """The file cannot be imported at all (unknown header, unreadable text)."""


class CSVRowError(ValueError):
    """A single row cannot be turned into a meal; the row is skipped."""


class CsvFormat(str, Enum):
    legacy = "legacy"
    current = "current"


# ---------------------------------------------------------------- export


def _quote(text: str) -> str:
    return '"' + (text or "").replace('"', '""') + '"'


def _number(value: Optional[float]) -> str:
    # Zero and missing both export as an empty cell.
    if not value:
        return ""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _id_cell(meal_id: str) -> str:
    if any(ch in meal_id for ch in ',"\r\n'):
        return _quote(meal_id)
    return meal_id


def _amount_value(amount: Optional[NutrientAmount]) -> Optional[float]:
    return amount.value if amount is not None else None


def meal_to_row(meal: MealRecord) -> List[str]:
    when = datetime.fromtimestamp(meal.timestamp / 1000)
    analysis = meal.analysis
    nutrition = analysis.nutrition
    items_json = json.dumps(
        [item.model_dump(by_alias=True) for item in analysis.items], ensure_ascii=False
    )
    row = [
        _id_cell(meal.id),
        when.strftime(DATE_FORMAT),
        when.strftime(TIME_FORMAT),
        meal.type.value,
        _quote(analysis.food_name),
        _quote(analysis.quantity),
    ]
    row += [_number(_amount_value(getattr(nutrition, attr))) for _, attr, _ in NUTRIENT_COLUMNS]
    row += [_number(_amount_value(nutrition.vitamins.get(key))) for key in VITAMIN_UNITS]
    row += [_number(_amount_value(nutrition.minerals.get(key))) for key in MINERAL_UNITS]
    row.append(_quote(items_json))
    return row


def to_csv(meals: Iterable[MealRecord]) -> str:
    lines = [",".join(CURRENT_COLUMNS)]
    for meal in meals:
        lines.append(",".join(meal_to_row(meal)))
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------- import


def detect_format(header: Sequence[str]) -> CsvFormat:
    names = {h.strip() for h in header}
    if len(names) == len(CURRENT_COLUMNS) and names == set(CURRENT_COLUMNS):
        return CsvFormat.current
    if len(names) == len(LEGACY_COLUMNS) and names == set(LEGACY_COLUMNS):
        return CsvFormat.legacy
    missing = sorted(set(LEGACY_COLUMNS) - names)
    unexpected = sorted(names - set(CURRENT_COLUMNS))
    detail = []
    if missing:
        detail.append(f"missing columns: {', '.join(missing)}")
    if unexpected:
        detail.append(f"unexpected columns: {', '.join(unexpected)}")
    raise CSVFormatError(
        "Invalid CSV format: header does not match the meal export layout"
        + (f" ({'; '.join(detail)})" if detail else "")
    )


def _parse_number(value: str) -> float:
    text = (value or "").strip()
    if not text:
        return 0.0
    try:
        number = float(text)
    except ValueError:
        return 0.0
    if number != number or number < 0:  # NaN or negative
        return 0.0
    return number


def parse_timestamp(date_text: str, time_text: str) -> int:
    date_text = (date_text or "").strip()
    time_text = " ".join((time_text or "").strip().upper().split())
    try:
        day = datetime.strptime(date_text, DATE_FORMAT).date()
    except ValueError as exc:
        raise CSVRowError(f"bad date {date_text!r}") from exc
    for fmt in _TIME_FORMATS:
        try:
            clock = datetime.strptime(time_text, fmt).time()
        except ValueError:
            continue
        try:
            return int(datetime.combine(day, clock).timestamp() * 1000)
        except (ValueError, OverflowError, OSError) as exc:
            raise CSVRowError(f"date {date_text!r} is out of range") from exc
    raise CSVRowError(f"bad time {time_text!r}")


def _micros(cells: Mapping[str, str], units: Dict[str, str]) -> Dict[str, NutrientAmount]:
    return {key: NutrientAmount(value=_parse_number(cells.get(key, "")), unit=unit) for key, unit in units.items()}


def _parse_legacy_row(cells: Mapping[str, str]) -> MealRecord:
    timestamp = parse_timestamp(cells.get("date", ""), cells.get("time", ""))

    core: Dict[str, NutrientAmount] = {
        attr: NutrientAmount(value=_parse_number(cells.get(col, "")), unit=unit)
        for col, attr, unit in NUTRIENT_COLUMNS
    }
    nutrition = NutritionData(
        **core,
        vitamins=_micros(cells, VITAMIN_UNITS),
        minerals=_micros(cells, MINERAL_UNITS),
    )

    raw_type = (cells.get("type") or "").strip().lower()
    meal_type = MealType(raw_type) if raw_type in {t.value for t in MealType} else MealType.manual

    return MealRecord(
        id=(cells.get("id") or "").strip() or new_meal_id(),
        timestamp=timestamp,
        type=meal_type,
        user_input={},
        analysis=MealAnalysis(
            food_name=cells.get("foodName", ""),
            quantity=cells.get("quantity", ""),
            nutrition=nutrition,
        ),
    )


def _parse_items(value: str) -> List[FoodItem]:
    text = (value or "").strip()
    if not text:
        return []
    try:
        data = json.loads(text)
    except ValueError as exc:
        logger.warning("Ignoring unparseable items column: %s", exc)
        return []
    return normalize_items(data)


def _parse_current_row(cells: Mapping[str, str]) -> MealRecord:
    record = _parse_legacy_row(cells)
    record.analysis.items = _parse_items(cells.get(ITEMS_COLUMN, ""))
    return record


ROW_PARSERS: Dict[CsvFormat, Callable[[Mapping[str, str]], MealRecord]] = {
    CsvFormat.legacy: _parse_legacy_row,
    CsvFormat.current: _parse_current_row,
}


def _read_rows(text: str) -> List[List[str]]:
    if text is None:
        raise CSVFormatError("No CSV content")
    text = text.lstrip("\ufeff").strip()
    if not text:
        raise CSVFormatError("CSV file is empty")
    try:
        rows = list(csv.reader(io.StringIO(text), skipinitialspace=True))
    except csv.Error as exc:
        raise CSVFormatError(f"Unreadable CSV: {exc}") from exc
    return [row for row in rows if any(cell.strip() for cell in row)]


def parse_csv(text: str) -> List[MealRecord]:
    """Parse exported CSV back into meal records; bad rows are logged and skipped."""
    rows = _read_rows(text)
    header = [h.strip() for h in rows[0]]
    fmt = detect_format(header)
    parse_row = ROW_PARSERS[fmt]

    meals: List[MealRecord] = []
    for line_no, row in enumerate(rows[1:], start=2):
        try:
            if len(row) != len(header):
                raise CSVRowError(f"expected {len(header)} cells, got {len(row)}")
            cells = {name: cell.strip() for name, cell in zip(header, row)}
            meals.append(parse_row(cells))
        except CSVRowError as exc:
            logger.warning("Skipping CSV row %d: %s", line_no, exc)
            continue
    return meals
