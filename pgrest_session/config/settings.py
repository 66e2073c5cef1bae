"""
Configuration management for the session store.

This module provides centralized configuration loading and validation
using Pydantic settings. Values are read from ``SESSION_STORE_*``
environment variables or a ``.env`` file, and can be overridden with
keyword arguments when a store is built programmatically.
"""

import logging
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_BASE_URL = "http://localhost:6000"
DEFAULT_TABLE = "sessions"
DEFAULT_PRUNE_INTERVAL = 60.0


class StoreSettings(BaseSettings):
    """
    Session store settings loaded from environment variables.

    Every field has a default, so an empty environment yields a store that
    talks to a PostgREST instance on localhost:6000 and prunes every minute.
    """

    # Remote endpoint
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Root URL of the PostgREST endpoint"
    )
    headers: Dict[str, str] = Field(
        default_factory=dict,
        description="Extra headers sent with every request (e.g. Authorization)"
    )
    table: str = Field(
        default=DEFAULT_TABLE,
        description="Name of the table holding session rows"
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Per-request timeout in seconds"
    )

    # Expiry
    prune_session_interval: Union[Literal[False], float] = Field(
        default=DEFAULT_PRUNE_INTERVAL,
        description="Seconds between prune passes, or false to disable pruning"
    )
    ttl: Optional[int] = Field(
        default=None,
        ge=1,
        description="Fixed session time-to-live in seconds; overrides cookie maxAge"
    )

    # Read retries
    read_retry_attempts: int = Field(
        default=1,
        ge=1,
        le=10,
        description="Attempts for idempotent reads on transport failure"
    )
    read_retry_delay: float = Field(
        default=0.5,
        ge=0,
        description="Initial delay in seconds between read attempts"
    )

    # Observability
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_prefix="SESSION_STORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate that base_url is an HTTP/HTTPS URL and drop a trailing slash."""
        v = v.strip()
        if not (v.startswith("http://") or v.startswith("https://")):
            raise ValueError("base_url must be a valid HTTP/HTTPS URL")
        return v.rstrip("/")

    @field_validator("table")
    @classmethod
    def validate_table(cls, v: str) -> str:
        v = v.strip().strip("/")
        if not v:
            raise ValueError("table cannot be empty")
        return v

    @field_validator("prune_session_interval", mode="before")
    @classmethod
    def validate_prune_session_interval(cls, v: Any) -> Any:
        """
        Normalize the prune interval.

        ``False`` (or the strings "false"/"off") disables pruning. ``True``,
        ``None`` and ``0`` fall back to the default interval. Negative values
        are rejected.
        """
        if isinstance(v, str):
            lowered = v.strip().lower()
            if lowered in {"false", "off", "no"}:
                return False
            if lowered in {"true", "on", "yes", ""}:
                return DEFAULT_PRUNE_INTERVAL
        if v is False:
            return False
        if v is None or v is True:
            return DEFAULT_PRUNE_INTERVAL
        number = float(v)
        if number < 0:
            raise ValueError("prune_session_interval must be positive or false")
        return number or DEFAULT_PRUNE_INTERVAL

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.strip().upper()
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(sorted(valid_levels))}")
        return v

    @property
    def pruning_enabled(self) -> bool:
        return self.prune_session_interval is not False

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level, logging.INFO)


class ConfigurationError(Exception):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None,
                 invalid_fields: Optional[dict] = None):
        self.message = message
        self.missing_fields = missing_fields or []
        self.invalid_fields = invalid_fields or {}
        super().__init__(self.format_error_message())

    def format_error_message(self) -> str:
        """Format a descriptive error message listing all issues."""
        parts = [self.message]

        if self.missing_fields:
            parts.append(f"\nMissing required fields: {', '.join(self.missing_fields)}")

        if self.invalid_fields:
            invalid_parts = [f"  - {field}: {error}" for field, error in self.invalid_fields.items()]
            parts.append("\nInvalid field values:\n" + "\n".join(invalid_parts))

        return "".join(parts)


def create_settings(**overrides: Any) -> StoreSettings:
    """
    Build validated settings from the environment plus explicit overrides.

    Args:
        **overrides: Field values that take precedence over the environment.

    Returns:
        StoreSettings: The validated settings.

    Raises:
        ConfigurationError: If any value is missing or invalid.
    """
    try:
        return StoreSettings(**overrides)
    except ValidationError as e:
        missing_fields = []
        invalid_fields = {}

        for error in e.errors():
            field_name = ".".join(str(loc) for loc in error.get("loc", []))
            if error.get("type") == "missing":
                missing_fields.append(field_name)
            else:
                invalid_fields[field_name] = error.get("msg", str(error))

        raise ConfigurationError(
            "Failed to load session store configuration",
            missing_fields=missing_fields,
            invalid_fields=invalid_fields
        ) from e


# Global settings cache
_settings_cache: Optional[StoreSettings] = None


def get_settings() -> StoreSettings:
    """
    Get the store settings singleton.

    Settings are loaded from the environment once and cached for
    subsequent calls.

    Raises:
        ConfigurationError: If the environment holds invalid values.
    """
    global _settings_cache

    if _settings_cache is None:
        _settings_cache = create_settings()

    return _settings_cache


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    This is primarily useful for testing to allow reloading settings
    with different environment variables.
    """
    global _settings_cache
    _settings_cache = None
