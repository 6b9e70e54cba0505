# -*- coding: utf-8 -*-
"""
NutriSnap API

Meal log storage, CSV import/export and nutrition trends.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, settings as default_settings
from .csvio.api import router as csv_router
from .goals.api import router as goals_router
from .goals.storage import GoalStore
from .kv import KeyValueStore, open_store
from .meals.analysis import NutritionAnalyzer
from .meals.api import router as meals_router
from .meals.storage import MealStore
from .trends.aggregator import TrendAggregator
from .trends.api import router as trends_router

logger = logging.getLogger(__name__)


def create_app(
    cfg: Optional[Settings] = None,
    *,
    store: Optional[KeyValueStore] = None,
    analyzer: Optional[NutritionAnalyzer] = None,
) -> FastAPI:
    cfg = cfg or default_settings
    kv = store if store is not None else open_store(cfg)

    app = FastAPI(
        title="NutriSnap",
        description="Meal log storage, CSV import/export and nutrition trends",
        version="0.1.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    meal_store = MealStore(kv, cfg.meals_key)
    app.state.settings = cfg
    app.state.meal_store = meal_store
    app.state.goal_store = GoalStore(kv, cfg.goals_key)
    app.state.trends = TrendAggregator(meal_store)
    app.state.analyzer = analyzer

    # CSV routes share the /api/meals prefix and must win over /api/meals/{meal_id}.
    app.include_router(csv_router)
    app.include_router(meals_router)
    app.include_router(goals_router)
    app.include_router(trends_router)

    @app.get("/api/health")
    def health() -> dict:
        return {"status": "ok", "storage": cfg.storage_backend}

    return app


app = create_app()


def run() -> None:
    """Console entry point (used by pyproject [project.scripts])."""
    import uvicorn

    logging.basicConfig(
        level=default_settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    host = os.environ.get("HOST") or default_settings.host
    port_raw = os.environ.get("PORT") or str(default_settings.port)
    try:
        port = int(port_raw)
    except ValueError:
        port = 8000

    logger.info("Starting NutriSnap on %s:%d (storage=%s)", host, port, default_settings.storage_backend)
    uvicorn.run("nutrisnap.api:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    run()
