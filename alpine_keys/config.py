"""Alpine keys configuration management.

Configuration sources (in priority order):
1. Environment variables (ALPINE_ prefix)
2. Config file (config.yaml)
3. Defaults
"""

from __future__ import annotations

import unicodedata
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseModel):
    """Database configuration."""

    # SQLite by default; postgresql+asyncpg:// works as well
    url: str = "sqlite+aiosqlite:///./alpine.db"
    echo: bool = False


class ApiKeyConfig(BaseModel):
    """API key format configuration.

    The prefix is part of the key format contract: changing it makes every
    previously issued key fail verification.
    """

    prefix: str = "alpine_"

    # Bounded retries when a freshly generated public id collides
    max_public_id_attempts: int = 5

    @field_validator("prefix")
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        if not v:
            raise ValueError("api_key.prefix must not be empty")
        if any(unicodedata.category(ch) == "Cc" for ch in v):
            raise ValueError("api_key.prefix must not contain control characters")
        return v


class Settings(BaseSettings):
    """Alpine keys application settings."""

    model_config = SettingsConfigDict(
        env_prefix="ALPINE_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    api_key: ApiKeyConfig = Field(default_factory=ApiKeyConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Init kwargs carry the YAML file values, env vars take precedence
        return env_settings, init_settings, dotenv_settings, file_secret_settings


def _load_config_file() -> dict:
    """Load configuration from YAML file if exists.

    Looks for config file in order:
    1. ALPINE_CONFIG_FILE environment variable
    2. ./config.yaml
    3. /etc/alpine/config.yaml
    """
    import os

    config_paths = [
        os.environ.get("ALPINE_CONFIG_FILE"),
        Path("config.yaml"),
        Path("/etc/alpine/config.yaml"),
    ]

    for path in config_paths:
        if path is None:
            continue
        path = Path(path)
        if path.exists():
            with open(path) as f:
                return yaml.safe_load(f) or {}

    return {}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Configuration is loaded from:
    1. YAML config file (if exists)
    2. Environment variables (override)
    3. Defaults
    """
    file_config = _load_config_file()

    # Environment variables override file values via pydantic-settings
    return Settings(**file_config)
