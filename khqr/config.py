"""Application configuration utilities."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_API_KEY = "dev-secret-key"


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Root logger level")
    json_logs: bool = Field(default=True, description="Enable JSON formatted logs")


class Settings(BaseSettings):
    """Central settings loaded from environment variables and ``.env``."""

    model_config = SettingsConfigDict(
        env_file=(Path(__file__).resolve().parent.parent / ".env"),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    app_name: str = Field(default="khqr")
    environment: Literal["development", "staging", "production"] = Field(default="development")
    api_key: str = Field(default=DEV_API_KEY, validation_alias=AliasChoices("KHQR_API_KEY", "API_KEY"))
    default_merchant_city: str = Field(default="Phnom Penh", min_length=1)
    merchant_category_code: str = Field(default="5999", pattern=r"^[0-9]{4}$")
    country_code: str = Field(default="KH", pattern=r"^[A-Z]{2}$")
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return memoized application settings."""

    return Settings()


settings = get_settings()
