"""
Engine configuration using Pydantic Settings.
"""

from typing import Any
from functools import lru_cache
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from extkit.utils.versions import is_valid_version


class EngineSettings(BaseSettings):
    """Extension engine settings."""

    model_config = SettingsConfigDict(
        env_prefix="EXTKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Host
    host_version: str = Field(
        default="1.0.0",
        description="Version extensions are checked against",
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json", description="json or text")

    # Loading
    entry_point_group: str = Field(
        default="extkit.extensions",
        description="Entry point group scanned by the loader",
    )
    extensions: dict[str, dict[str, Any]] = Field(
        default_factory=dict,
        description="Per-extension config overrides, keyed by extension name",
    )

    @field_validator("host_version")
    @classmethod
    def validate_host_version(cls, v: str) -> str:
        if not is_valid_version(v):
            raise ValueError("host_version must be dotted-numeric, e.g. 1.2.0")
        return v.strip()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        allowed = {"json", "text"}
        if v not in allowed:
            raise ValueError(f"log_format must be one of {allowed}")
        return v


@lru_cache
def get_settings() -> EngineSettings:
    """Get cached settings instance."""
    return EngineSettings()
