# src/config/settings.py
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings: where templates
live, where generated notices and the render cache are written, cache
expiry, the fixed company letterhead values and logging.
"""

from __future__ import annotations

from datetime import timedelta
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

    # === Filesystem layout ===
    template_root: Path = Path("templates/noi")
    generated_root: Path = Path("uploads/noi")

    # === Cache ===
    cache_enabled: bool = True
    cache_backend: Literal["file", "none"] = "file"
    cache_ttl_hours: float = 24.0

    # === Rendering ===
    default_format: Literal["word-merge", "fillable-pdf"] = "word-merge"
    output_prefix: str = "NOI"

    # === Company letterhead (fixed merge values) ===
    company_name: str = "Budget Car Rental"
    company_address: str = "456 Corporate Plaza, Suite 300, Business City, CA 94123"
    company_logo: str = "[COMPANY LOGO]"

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("output_prefix")
    @classmethod
    def validate_output_prefix(cls, v: str) -> str:  # noqa: N805
        """Prefix ends up in file names: no path separators allowed."""
        if not v or "/" in v or "\\" in v:
            raise ValueError("output_prefix must be a non-empty file-name fragment")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.cache_ttl_hours <= 0:
            errors.append("CACHE_TTL_HOURS must be > 0")

        if self.template_root.expanduser() == self.generated_root.expanduser():
            errors.append("GENERATED_ROOT must differ from TEMPLATE_ROOT")

        if self.log_retention < 0:
            errors.append("LOG_RETENTION must be >= 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def cache_root(self) -> Path:
        """Fingerprint-keyed cache store directory."""
        return self.generated_root / "cache"

    @property
    def cache_ttl(self) -> timedelta:
        return timedelta(hours=self.cache_ttl_hours)


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-call config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
