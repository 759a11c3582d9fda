"""rumormill core - configuration, errors, logging and locking primitives."""

from .config import CoreSettings, clear_config_cache, get_config, set_config
from .exceptions import (
    ConfigException,
    ConflictError,
    KeyGenerationError,
    RumorMillException,
    StoreError,
    ValidationException,
)
from .locks import KeyedLocks
from .logging import configure_logging, correlation_context

__all__ = [
    # Config
    "CoreSettings",
    "get_config",
    "set_config",
    "clear_config_cache",
    # Exceptions
    "RumorMillException",
    "ConfigException",
    "KeyGenerationError",
    "ValidationException",
    "StoreError",
    "ConflictError",
    # Logging
    "configure_logging",
    "correlation_context",
    # Locking
    "KeyedLocks",
]
