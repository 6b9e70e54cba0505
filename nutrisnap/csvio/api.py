# -*- coding: utf-8 -*-
"""CSV export/import endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, Response

from ..deps import get_meal_store
from ..meals.storage import MealStore
from .codec import to_csv
from .importer import ImportResult, import_meals

router = APIRouter(prefix="/api/meals", tags=["CSV"])


@router.get("/export.csv", summary="Download every meal as CSV")
def export_csv(store: MealStore = Depends(get_meal_store)):
    filename = f"nutrisnap-meals-{date.today().isoformat()}.csv"
    return Response(
        content=to_csv(store.get_all_meals()),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import", response_model=ImportResult, summary="Import meals from an exported CSV file")
async def import_csv(request: Request, store: MealStore = Depends(get_meal_store)):
    max_bytes = request.app.state.settings.max_import_mb * 1024 * 1024
    body = await request.body()
    if len(body) > max_bytes:
        raise HTTPException(status_code=413, detail=f"CSV too large: {len(body)} bytes > {max_bytes}")
    try:
        text = body.decode("utf-8-sig")
    except UnicodeDecodeError:
        result = ImportResult(success=False, error="CSV file is not valid UTF-8 text")
    else:
        result = import_meals(store, text)
    if not result.success:
        return JSONResponse(status_code=400, content=result.model_dump())
    return result
