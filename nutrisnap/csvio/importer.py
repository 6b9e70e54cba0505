# -*- coding: utf-8 -*-
"""CSV import merge: parse, re-key colliding ids, append in one write."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel

from ..kv import StorageWriteError
from ..meals.storage import MealStore
from .codec import CSVFormatError, parse_csv

logger = logging.getLogger(__name__)


class ImportResult(BaseModel):
    success: bool
    imported: int = 0
    total: int = 0
    error: Optional[str] = None


def import_meals(store: MealStore, text: str) -> ImportResult:
    """Import CSV `text` into `store`. Never raises; failures leave the store untouched."""
    try:
        records = parse_csv(text)
    except CSVFormatError as exc:
        logger.warning("CSV import rejected: %s", exc)
        return ImportResult(success=False, error=str(exc))

    try:
        imported, total = store.import_records(records)
    except StorageWriteError as exc:
        return ImportResult(success=False, error=f"Could not save imported meals: {exc}")

    logger.info("Imported %d meals from CSV (store now holds %d)", imported, total)
    return ImportResult(success=True, imported=imported, total=total)
