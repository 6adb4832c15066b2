"""
Inkwell Configuration
---------------------
Centralized configuration for the Inkwell MCP server.
Loads from defaults, an optional YAML file, and environment variables.
"""

import os
import logging
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from inkwell.core.errors import ConfigError

logger = logging.getLogger("Inkwell.Config")

DEFAULT_DB_PATH = "./data/inkwell.db"
DEFAULT_TEMPLATES_DIR = os.path.join("templates", "voice")


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() not in {"0", "false", "no", "off"}


class DatabaseConfig(BaseModel):
    """Storage backend configuration. Only SQLite is served locally."""
    type: Literal["sqlite", "supabase"] = "sqlite"
    path: Optional[str] = DEFAULT_DB_PATH
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None

    @model_validator(mode="after")
    def _check_backend(self) -> "DatabaseConfig":
        if self.type == "sqlite" and not self.path:
            self.path = DEFAULT_DB_PATH
        if self.type == "supabase" and (not self.supabase_url or not self.supabase_key):
            raise ValueError("Supabase config requires supabase_url and supabase_key")
        return self


class AuthConfig(BaseModel):
    enabled: bool = False
    owner_key: Optional[str] = None


class TagPattern(BaseModel):
    """Regex used by enrichment to auto-tag imported articles."""
    name: str
    category: str
    pattern: str


class InkwellConfig(BaseModel):
    """Root configuration for the Inkwell server."""
    name: str = "Inkwell Newsletter"
    description: str = "Editorial intelligence MCP server"
    watermark: str = "Source: Inkwell MCP"
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    tag_patterns: List[TagPattern] = Field(default_factory=list)
    templates_dir: str = DEFAULT_TEMPLATES_DIR
    track_usage: bool = True

    @classmethod
    def from_env(cls, base: Optional["InkwellConfig"] = None) -> "InkwellConfig":
        """
        Apply environment overrides on top of ``base`` (or the defaults).

        - INKWELL_NAME / INKWELL_DESCRIPTION / INKWELL_WATERMARK
        - INKWELL_DB_PATH: SQLite database file
        - INKWELL_AUTH_ENABLED / INKWELL_OWNER_KEY: owner/public auth
        - INKWELL_TEMPLATES_DIR: voice template directory
        - INKWELL_TRACK_USAGE: record tool calls in usage_stats
        """
        config = base.model_copy(deep=True) if base is not None else cls()

        for env_name, field_name in (
            ("INKWELL_NAME", "name"),
            ("INKWELL_DESCRIPTION", "description"),
            ("INKWELL_WATERMARK", "watermark"),
            ("INKWELL_TEMPLATES_DIR", "templates_dir"),
        ):
            value = os.environ.get(env_name)
            if value:
                setattr(config, field_name, value)

        db_path = os.environ.get("INKWELL_DB_PATH")
        if db_path:
            config.database = DatabaseConfig(type="sqlite", path=db_path)

        config.auth = AuthConfig(
            enabled=_env_flag("INKWELL_AUTH_ENABLED", config.auth.enabled),
            owner_key=os.environ.get("INKWELL_OWNER_KEY") or config.auth.owner_key,
        )
        config.track_usage = _env_flag("INKWELL_TRACK_USAGE", config.track_usage)
        return config

    @classmethod
    def from_yaml(cls, path: str) -> "InkwellConfig":
        """Load configuration from a YAML file."""
        import yaml

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            raise ConfigError(f"Config file not found: {path}")
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid config in {path}: {e}") from e


def load_config(path: Optional[str] = None, **overrides: Any) -> InkwellConfig:
    """
    Resolve the effective configuration.

    Precedence (lowest to highest): defaults, YAML file (``path`` or
    INKWELL_CONFIG), environment variables, explicit ``overrides``.
    """
    config_path = path or os.environ.get("INKWELL_CONFIG")
    base = InkwellConfig.from_yaml(config_path) if config_path else InkwellConfig()
    config = InkwellConfig.from_env(base)

    if overrides:
        data: Dict[str, Any] = config.model_dump()
        for key, value in overrides.items():
            if value is None:
                continue
            if isinstance(value, dict) and isinstance(data.get(key), dict):
                data[key].update(value)
            else:
                data[key] = value
        try:
            config = InkwellConfig(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid config overrides: {e}") from e

    logger.debug("Loaded config for %s (db=%s)", config.name, config.database.path)
    return config
