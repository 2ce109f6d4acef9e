"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Storage
    database_url: str = "postgresql+asyncpg://catalog:catalog_dev_password@db:5432/products"
    store_backend: Literal["sql", "memory"] = "sql"

    # Classifier
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-1.5-flash"
    classifier_timeout_seconds: float = 30.0

    # Catalog defaults
    default_unit: str = "Unidad"
    fallback_category_name: str = "Otros"

    # Logging
    log_level: str = "INFO"

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
