# -*- coding: utf-8 -*-
"""Goals: API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ..deps import get_goal_store
from ..kv import StorageWriteError
from .models import DailyGoalsResponse, DailyGoalsUpdate
from .storage import GoalStore

router = APIRouter(prefix="/api/goals", tags=["Goals"])


@router.get("", response_model=DailyGoalsResponse, summary="Current daily goals")
def read_goals(store: GoalStore = Depends(get_goal_store)):
    return DailyGoalsResponse(goals=store.get_daily_goals())


@router.patch("", response_model=DailyGoalsResponse, summary="Merge new targets into the daily goals")
def update_goals(request: DailyGoalsUpdate, store: GoalStore = Depends(get_goal_store)):
    try:
        goals = store.set_daily_goals(request.goals)
    except StorageWriteError as exc:
        raise HTTPException(status_code=507, detail=f"Failed to save goals: {exc}") from exc
    return DailyGoalsResponse(goals=goals)


@router.delete("/{key}", response_model=DailyGoalsResponse, summary="Remove a single goal")
def delete_goal(key: str, store: GoalStore = Depends(get_goal_store)):
    try:
        goals = store.remove_daily_goal(key)
    except StorageWriteError as exc:
        raise HTTPException(status_code=507, detail=f"Failed to save goals: {exc}") from exc
    return DailyGoalsResponse(goals=goals)
