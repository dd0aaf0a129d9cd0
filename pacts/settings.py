"""Pacts configuration using pydantic-settings.

Values come from, in priority order:
1. keyword arguments / a YAML file passed to ``from_yaml``
2. ``PACTS_*`` environment variables (and ``.env``)
3. defaults below
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any

import yaml
from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from pacts.core.archive import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_MAX_ENTRY_BYTES,
    DEFAULT_READ_TIMEOUT,
)
from pacts.exceptions import ConfigurationError

load_dotenv()

DEFAULT_CONFIG_PATH = Path("config") / "pacts.yaml"


class PactsSettings(BaseSettings):
    """Resolver binding, archive sources and logging options."""

    model_config = SettingsConfigDict(
        env_prefix="PACTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Schema binding ---
    schema_root: Path = Field(default=Path("schemas"))
    domain: str = Field(default="bees")
    version: str = Field(default="v1")

    # --- Remote archives ---
    sources: Annotated[list[str], NoDecode] = Field(default_factory=list)
    connect_timeout: float = Field(default=DEFAULT_CONNECT_TIMEOUT, gt=0)
    read_timeout: float = Field(default=DEFAULT_READ_TIMEOUT, gt=0)
    max_entry_bytes: int = Field(default=DEFAULT_MAX_ENTRY_BYTES, gt=0)

    # --- Logging ---
    log_level: str = Field(default="INFO")
    log_file: Path | None = None

    @field_validator("sources", mode="before")
    @classmethod
    def split_sources(cls, v: Any) -> Any:
        """Accept a list, a JSON array string, or a comma-separated string."""
        if v is None:
            return []
        if isinstance(v, str):
            text = v.strip()
            if not text:
                return []
            if text.startswith("["):
                return json.loads(text)
            return [part.strip() for part in text.split(",") if part.strip()]
        return v

    @field_validator("log_level")
    @classmethod
    def normalise_level(cls, v: str) -> str:
        return v.strip().upper()

    @classmethod
    def from_yaml(cls, yaml_path: str | Path = DEFAULT_CONFIG_PATH) -> PactsSettings:
        """Load settings from YAML.

        The file may hold the keys at top level or under a ``pacts:`` section.
        A missing file yields environment/default settings.
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            return cls()

        with open(yaml_path, encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}
        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Expected a mapping in {yaml_path}, got {type(config_data).__name__}")

        if isinstance(config_data.get("pacts"), dict):
            config_data = config_data["pacts"]
        return cls(**config_data)


# Global settings instance
_settings: PactsSettings | None = None


def get_settings() -> PactsSettings:
    """Get or create the process-wide settings instance."""
    global _settings
    if _settings is None:
        _settings = PactsSettings.from_yaml()
    return _settings


def reload_settings(yaml_path: str | Path | None = None) -> PactsSettings:
    """Reload settings from file."""
    global _settings
    _settings = PactsSettings.from_yaml(yaml_path) if yaml_path else PactsSettings.from_yaml()
    return _settings
