# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Custom exception hierarchy for rumormill.

Provides specific exception types for different error categories,
enabling better error handling and clearer error messages.

Categories:
- Fatal/startup: ConfigException, KeyGenerationError
- Recoverable/store: StoreError, ConflictError
- Validation: ValidationException
"""

from __future__ import annotations

from typing import Any


class RumorMillException(Exception):  # noqa: N818
    """Base exception for all rumormill errors.

    All rumormill-specific exceptions should inherit from this class.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigException(RumorMillException):
    """Exception for configuration errors.

    Raised when:
    - Required environment variables are missing (store URL, store key)
    - Configuration values are out of range
    """

    def __init__(self, message: str, missing_vars: list[str] | None = None):
        details: dict[str, Any] = {}
        if missing_vars:
            details["missing_vars"] = missing_vars
        super().__init__(message, details)
        self.missing_vars = missing_vars or []


class KeyGenerationError(RumorMillException):
    """Raised when the asymmetric key primitive is unavailable.

    Fatal: identity cannot be created, so no write action can be signed
    with a public key. Not retried.
    """


class ValidationException(RumorMillException):
    """Exception for validation errors.

    Raised before any proof-of-work is spent when:
    - Claim content is too short or too long
    - A parent claim is unknown, deleted, or would form a cycle
    - A vote was already cast on the claim
    - A vote kind is not recognised
    - A mined proof does not satisfy the required difficulty
    """

    def __init__(self, message: str, field: str | None = None, value: Any = None):
        details: dict[str, Any] = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, details)
        self.field = field
        self.value = value


class StoreError(RumorMillException):
    """Exception for record store failures.

    Raised when:
    - The store endpoint is unreachable or times out
    - The store answers with an error status
    - A response body cannot be decoded
    """

    def __init__(self, message: str, table: str | None = None, status_code: int | None = None):
        details: dict[str, Any] = {}
        if table:
            details["table"] = table
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details)
        self.table = table
        self.status_code = status_code


class ConflictError(StoreError):
    """Exception for uniqueness conflicts.

    Raised when an insert collides with an existing record on a unique key,
    e.g. a second vote by the same identity on the same claim.
    """

    def __init__(self, message: str, table: str | None = None, key: dict[str, Any] | None = None):
        super().__init__(message, table=table, status_code=409)
        if key:
            self.details["key"] = {k: str(v) for k, v in key.items()}
        self.key = key or {}
