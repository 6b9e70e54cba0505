from __future__ import annotations

import os
from pathlib import Path
from typing import List


class Settings:
    """Centralized configuration for the meal log backend."""

    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent
        repo_root = base_dir.parent
        data_root_default = repo_root / "data"

        self.data_root: Path = Path(
            os.environ.get("NUTRISNAP_DATA_ROOT") or data_root_default
        ).expanduser()
        # file | sqlite | memory
        self.storage_backend: str = (os.environ.get("NUTRISNAP_STORAGE") or "file").strip().lower()
        self.db_path: Path = Path(
            os.environ.get("NUTRISNAP_DB_PATH") or (self.data_root / "nutrisnap.db")
        ).expanduser()
        self.meals_key: str = os.environ.get("NUTRISNAP_MEALS_KEY") or "nutrisnap_meals"
        self.goals_key: str = os.environ.get("NUTRISNAP_GOALS_KEY") or "nutrisnap_daily_goals"
        self.max_import_mb: int = int(os.environ.get("NUTRISNAP_MAX_IMPORT_MB") or "10")
        self.max_image_bytes: int = int(os.environ.get("NUTRISNAP_MAX_IMAGE_BYTES") or "1500000")
        self.log_level: str = (os.environ.get("NUTRISNAP_LOG_LEVEL") or "INFO").upper()
        self.host: str = os.environ.get("NUTRISNAP_HOST") or "127.0.0.1"
        self.port: int = int(os.environ.get("NUTRISNAP_PORT") or "8000")

        cors = os.environ.get("NUTRISNAP_CORS_ORIGINS", "*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [
                origin.strip() for origin in cors.split(",") if origin.strip()
            ]


settings = Settings()
