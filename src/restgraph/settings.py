"""Runtime settings loaded from the environment with pydantic-settings.

Environment variables:
    RESTGRAPH_LOG_LEVEL: Minimum log level (default: INFO)
    RESTGRAPH_LOG_JSON: Force JSON log output (default: false)
    RESTGRAPH_BASE_URL: Override the base URL found in API documents
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class RestGraphSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RESTGRAPH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Minimum log level")
    log_json: bool = Field(default=False, description="Render logs as JSON")
    base_url: Optional[str] = Field(
        default=None,
        description="Base URL used for every endpoint instead of the document's",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper().strip()
        if level not in _LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LEVELS)}")
        return level


@lru_cache
def get_settings() -> RestGraphSettings:
    return RestGraphSettings()
