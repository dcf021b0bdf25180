# src/config/settings.py — v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for backend selection, category tuning and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gencache.cache.models import StoreConfig
from gencache.config.categories import DEFAULT_CONFIG, resolve_categories


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Transient tier (per-device) ===
    transient_backend: Literal["sqlite", "redis"] = "sqlite"
    transient_path: Path = Path("~/.gencache/transient.db")
    transient_redis_url: str = ""

    # === Durable tier (shared documents) ===
    durable_backend: Literal["sqlite", "mongodb"] = "sqlite"
    durable_path: Path = Path("~/.gencache/durable.db")
    durable_mongo_url: str = ""
    durable_mongo_database: str = "gencache"
    durable_mongo_collection: str = "content_cache"

    # === Blob tier ===
    blob_backend: Literal["local", "s3"] = "local"
    blob_root: Path = Path("~/.gencache/blobs")
    blob_public_base_url: str = ""
    blob_s3_bucket: str = ""
    blob_s3_prefix: str = "gencache/"
    blob_s3_region: str = ""
    blob_s3_endpoint_url: str = ""
    # auto = probe once at startup; enabled/disabled skip the probe
    blob_persistence: Literal["auto", "enabled", "disabled"] = "auto"

    # === Remote media fetch ===
    media_fetch_timeout: float = 30.0
    media_fetch_api_key: str = ""

    # === Categories ===
    category_overrides: dict[str, StoreConfig] = {}

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate backend/connection consistency."""
        errors: list[str] = []

        if self.transient_backend == "redis" and not self.transient_redis_url:
            errors.append(
                "TRANSIENT_REDIS_URL must be set when TRANSIENT_BACKEND=redis"
            )

        if self.durable_backend == "mongodb" and not self.durable_mongo_url:
            errors.append(
                "DURABLE_MONGO_URL must be set when DURABLE_BACKEND=mongodb"
            )

        if self.blob_backend == "s3" and not self.blob_s3_bucket:
            errors.append("BLOB_S3_BUCKET must be set when BLOB_BACKEND=s3")

        if self.media_fetch_timeout <= 0:
            errors.append("MEDIA_FETCH_TIMEOUT must be > 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def categories(self) -> dict[str, StoreConfig]:
        """Default category table with overrides applied."""
        return resolve_categories(self.category_overrides)

    def category_config(self, category: str) -> StoreConfig:
        """StoreConfig for one category, DEFAULT_CONFIG if unknown."""
        return self.categories.get(category, DEFAULT_CONFIG)


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
