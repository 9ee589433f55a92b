# app/core/config.py
from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Service-account JSON used by firebase_admin
    FIREBASE_CREDENTIALS: str = "app/core/firebase_key.json"

    # Prints structured engine diagnostics (see app/services/logger.py)
    PLANNER_DEBUG_MODE: bool = False

    # Empty -> bundled app/data/food_catalog.csv
    FOOD_CATALOG_PATH: str = ""

    # Daily targets used when a generate request carries none
    DEFAULT_CALORIES: float = 1800
    DEFAULT_PROTEIN: float = 80
    DEFAULT_CARBS: float = 220
    DEFAULT_FAT: float = 60

    # Meal composer tuning
    TOP_BAND_FRACTION: float = 0.5
    TOP_BAND_MIN: int = 10
    CALORIE_SHORTFALL: int = 150
    MAX_SLOT_ATTEMPTS: int = 3

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
