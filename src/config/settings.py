# src/config/settings.py - v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for the dashboard backend: where the run-logs live,
how long parsed snapshots are cached, how the watcher and the streamed
responses behave, and how logging is wired.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Log directory ===
    logs_path: Path = Path("./logs")
    seed_sample_log: bool = True
    summary_log_enabled: bool = True
    state_file_path: Path | None = None

    # === Server ===
    host: str = "0.0.0.0"
    port: int = 3000
    environment: Literal["development", "production", "test"] = "development"
    cors_origins: str = "*"

    # === Cache ===
    cache_ttl_seconds: float = 30.0

    # === Watcher ===
    watch_enabled: bool = True
    watch_debounce_seconds: float = 1.0

    # === Query / streaming ===
    default_page_limit: int = 20
    max_page_limit: int = 10_000
    stream_high_water_mark: int = 64 * 1024

    # === Uploads ===
    upload_max_bytes: int = 50 * 1024 * 1024

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("cache_ttl_seconds", "watch_debounce_seconds")
    @classmethod
    def validate_non_negative(cls, v: float, info) -> float:  # noqa: N805
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v

    @field_validator("stream_high_water_mark", "upload_max_bytes")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:  # noqa: N805
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.default_page_limit < 1:
            errors.append("DEFAULT_PAGE_LIMIT must be >= 1")
        if self.default_page_limit > self.max_page_limit:
            errors.append("DEFAULT_PAGE_LIMIT must be <= MAX_PAGE_LIMIT")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def resolved_logs_path(self) -> Path:
        return self.logs_path.expanduser()


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or the CLI).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
