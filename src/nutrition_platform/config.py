"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_VISIBLE_KEYS = (
    "calories",
    "protein",
    "carbs",
    "fat",
    "fiber",
    "sugar",
    "omega_3",
    "omega_6",
    "cholesterol",
    "sodium",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_anon_key: str
    targets_path: Path = Path(".nutrition_platform/storage.json")
    preferred_nutrient_keys: str | None = None
    max_default_columns: int = 10
    search_limit: int = 200
    search_debounce_seconds: float = 0.3
    search_ttl_seconds: float = 300
    fetch_retry_attempts: int = 1
    fetch_retry_delay_seconds: float = 0.3
    debug: bool = False
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_preferred_keys(raw: str | None) -> tuple[str, ...]:
    """Parse the preferred default column keys from env."""
    if raw is None:
        return DEFAULT_VISIBLE_KEYS
    keys: list[str] = []
    for chunk in raw.split(","):
        key = chunk.strip()
        if key and key not in keys:
            keys.append(key)
    return tuple(keys) or DEFAULT_VISIBLE_KEYS
