"""
Configuration management using Pydantic Settings.
Supports environment variables and .env files.

The client library itself never reads the environment; these settings are
consumed by the CLI and by logging setup.
"""

from functools import lru_cache
from typing import Literal, Optional
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Azure AI Services
    cv_key: SecretStr = Field(
        default=SecretStr(""),
        description="Azure AI Services key"
    )
    cv_endpoint: str = Field(
        default="",
        description="Azure AI Services Computer Vision endpoint"
    )
    api_version: Literal["3.2", "4.0"] = "4.0"

    # Transport
    request_timeout: Optional[float] = 30.0

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    @field_validator("cv_endpoint", mode="before")
    @classmethod
    def strip_endpoint(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("request_timeout", mode="before")
    @classmethod
    def parse_timeout(cls, v):
        # An empty or non-positive value disables the timeout
        if v in ("", None):
            return None
        if float(v) <= 0:
            return None
        return v


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
