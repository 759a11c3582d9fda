"""Core configuration - centralized config for the rumormill package.

All environment-based configuration should flow through this module.
This provides a single source of truth and consistent defaults.

Usage:
    from rumormill.core.config import get_config
    config = get_config()

    # Access settings
    difficulty = config.pow_difficulty
    log_level = config.log_level
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigException

_DEFAULT_IDENTITY_PATH = Path.home() / ".rumormill" / "identity.json"


class CoreSettings(BaseSettings):
    """Core configuration settings for rumormill.

    Settings can be configured via environment variables with the
    RUMORMILL_ prefix, or a local ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="RUMORMILL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # STORE SETTINGS
    # ==========================================================================

    store_url: str = Field(
        default="",
        description="Record store endpoint URL (PostgREST-compatible)",
    )
    store_key: str = Field(
        default="",
        description="Record store access credential",
    )
    store_timeout: float = Field(
        default=10.0,
        description="Store request timeout in seconds",
    )

    # ==========================================================================
    # IDENTITY SETTINGS
    # ==========================================================================

    identity_path: Path = Field(
        default=_DEFAULT_IDENTITY_PATH,
        description="Where the local pseudonymous identity is persisted",
    )

    # ==========================================================================
    # ANTI-SPAM SETTINGS
    # ==========================================================================

    pow_difficulty: int = Field(
        default=3,
        ge=0,
        le=16,
        description="Leading zero hex digits required on every write",
    )
    content_min_length: int = Field(
        default=10,
        ge=1,
        description="Minimum claim length (after stripping whitespace)",
    )
    content_max_length: int = Field(
        default=5000,
        ge=1,
        description="Maximum claim length",
    )

    # ==========================================================================
    # REPUTATION SETTINGS
    # ==========================================================================

    reputation_delta: float = Field(
        default=0.05,
        gt=0.0,
        description="Factor adjustment per judged vote",
    )
    reputation_factor_min: float = Field(
        default=0.1,
        gt=0.0,
        description="Lower bound on the reputation factor",
    )
    reputation_factor_max: float = Field(
        default=5.0,
        gt=0.0,
        description="Upper bound on the reputation factor",
    )

    # ==========================================================================
    # LOGGING SETTINGS
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_format: str = Field(
        default="",
        description="Log format: 'json', 'text', or '' (auto-detect)",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (optional)",
    )

    # ==========================================================================
    # VALIDATION
    # ==========================================================================

    @model_validator(mode="after")
    def _check_bounds(self) -> CoreSettings:
        if self.reputation_factor_min >= self.reputation_factor_max:
            raise ValueError("reputation_factor_min must be below reputation_factor_max")
        if self.content_min_length > self.content_max_length:
            raise ValueError("content_min_length must not exceed content_max_length")
        return self

    def require_store(self) -> None:
        """Fail fast when the store endpoint or credential is missing.

        Raises:
            ConfigException: Listing every missing environment variable.
        """
        missing = []
        if not self.store_url:
            missing.append("RUMORMILL_STORE_URL")
        if not self.store_key:
            missing.append("RUMORMILL_STORE_KEY")
        if missing:
            raise ConfigException(
                f"Missing store configuration: {', '.join(missing)}",
                missing_vars=missing,
            )


# ==========================================================================
# GLOBAL CONFIG INSTANCE (lazy loaded)
# ==========================================================================

_config: CoreSettings | None = None


def _describe_errors(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = item.get("loc") or ()
        name = f"RUMORMILL_{str(loc[0]).upper()}" if loc else "settings"
        parts.append(f"{name}: {item['msg']}")
    return "; ".join(parts)


def get_config() -> CoreSettings:
    """Get the global configuration instance.

    Returns:
        The singleton CoreSettings instance.

    Raises:
        ConfigException: If an environment value is malformed or out of range.
    """
    global _config
    if _config is None:
        try:
            _config = CoreSettings()
        except ValidationError as e:
            raise ConfigException(f"Invalid configuration: {_describe_errors(e)}") from e
    return _config


def set_config(config: CoreSettings) -> None:
    """Set the global configuration instance.

    Useful for testing or custom configuration.
    """
    global _config
    _config = config


def clear_config_cache() -> None:
    """Clear the config cache. Useful for testing."""
    global _config
    _config = None
