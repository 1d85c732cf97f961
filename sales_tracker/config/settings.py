"""
Application settings and configuration.

This module provides a centralized configuration management system using Pydantic.
It loads settings from environment variables, .env files, or falls back to defaults.
"""

import os
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator
from dotenv import load_dotenv

# Load environment variables from .env file if present
load_dotenv()

# Base directories
ROOT_DIR = Path(__file__).parent.parent.parent
LOG_DIR = ROOT_DIR / "logs"

STORE_BACKENDS = ("memory", "supabase")


class SupabaseSettings(BaseModel):
    """Supabase (PostgREST) connection settings."""

    url: str = Field(
        default="",
        description="Base URL of the Supabase project"
    )

    anon_key: str = Field(
        default="",
        description="Anonymous API key sent with every request"
    )

    timeout_seconds: float = Field(
        default=10.0,
        description="Total timeout for a single REST request in seconds"
    )

    cascade_deletes: bool = Field(
        default=False,
        description="Whether the sale_items foreign key is declared ON DELETE CASCADE"
    )

    @field_validator("anon_key")
    @classmethod
    def anon_key_should_be_set(cls, v):
        """Warn when no API key is configured."""
        if not v:
            logging.warning("Supabase anon key is not set. Please set SUPABASE_ANON_KEY environment variable.")
        return v

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v):
        """Normalize the project URL so paths can be appended."""
        return v.rstrip("/")


class DashboardSettings(BaseModel):
    """Dashboard behaviour settings."""

    store_backend: str = Field(
        default="memory",
        description="Persistence backend (memory or supabase)"
    )

    top_items_limit: int = Field(
        default=5,
        description="Number of items shown in the top-selling chart"
    )

    @field_validator("store_backend")
    @classmethod
    def validate_store_backend(cls, v):
        """Validate that the backend is known."""
        if v.lower() not in STORE_BACKENDS:
            raise ValueError(f"Store backend must be one of {list(STORE_BACKENDS)}")
        return v.lower()

    @field_validator("top_items_limit")
    @classmethod
    def validate_top_items_limit(cls, v):
        """Validate that at least one item is charted."""
        if v < 1:
            raise ValueError("Top items limit must be at least 1")
        return v


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format"
    )

    file_enabled: bool = Field(
        default=True,
        description="Whether to write logs to a file"
    )

    console_enabled: bool = Field(
        default=True,
        description="Whether to write logs to console"
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate that log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()


class Settings(BaseModel):
    """Main application settings."""

    # Application info
    app_name: str = Field(
        default="Sales Tracker Dashboard",
        description="Application name"
    )

    app_version: str = Field(
        default="0.1.0",
        description="Application version"
    )

    # Sub-configurations
    supabase: SupabaseSettings = Field(default_factory=lambda: SupabaseSettings(
        url=_first_env("SUPABASE_URL", "VITE_SUPABASE_URL"),
        anon_key=_first_env("SUPABASE_ANON_KEY", "VITE_SUPABASE_ANON_KEY"),
        timeout_seconds=float(os.environ.get("SUPABASE_TIMEOUT", "10")),
        cascade_deletes=_parse_bool(os.environ.get("SUPABASE_CASCADE_DELETES", "False"))
    ))

    dashboard: DashboardSettings = Field(default_factory=lambda: DashboardSettings(
        store_backend=os.environ.get("SALES_STORE", "memory"),
        top_items_limit=_parse_optional_int(os.environ.get("TOP_ITEMS_LIMIT")) or 5
    ))

    logging: LoggingSettings = Field(default_factory=lambda: LoggingSettings(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        format=os.environ.get("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
        file_enabled=_parse_bool(os.environ.get("LOG_FILE_ENABLED", "True")),
        console_enabled=_parse_bool(os.environ.get("LOG_CONSOLE_ENABLED", "True"))
    ))

    # Paths
    root_dir: Path = ROOT_DIR
    logs_dir: Path = LOG_DIR

    # Runtime configs
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    def __init__(self, **data: Any):
        """Initialize settings, allowing debug mode to be set from the environment."""
        super().__init__(**data)

        # Allow debug mode override from environment
        self.debug_mode = _parse_bool(os.environ.get("DEBUG_MODE", str(self.debug_mode)))

    @property
    def effective_log_level(self) -> str:
        """Log level after applying debug mode."""
        return "DEBUG" if self.debug_mode else self.logging.level


def _first_env(*names: str) -> str:
    """Return the first non-empty environment variable among names."""
    for name in names:
        value = os.environ.get(name)
        if value:
            return value
    return ""


def _parse_optional_int(value: Optional[str]) -> Optional[int]:
    """Parse string to optional int."""
    if value is None:
        return None
    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def _parse_bool(value: str) -> bool:
    """Parse string to boolean."""
    return value.lower() in ("true", "1", "t", "yes", "y")
