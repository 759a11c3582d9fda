# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Logging setup for rumormill.

Every write action (post, vote) runs inside a :func:`correlation_context`,
so the validation, mining and store lines it produces can be grouped:

    with correlation_context(action="vote"):
        logger.info("Cast verify on rumor %s", claim_id)

Output is JSON when stderr is not a terminal (or ``RUMORMILL_LOG_FORMAT=json``)
and a colored single-line format otherwise.  Log files are always JSON.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

# Loggers of libraries that are chatty at DEBUG
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")


@dataclass(frozen=True)
class ActionScope:
    correlation_id: str
    action: str | None = None


_scope: ContextVar[ActionScope | None] = ContextVar("rumormill_action_scope", default=None)


def get_correlation_id() -> str | None:
    """Correlation ID of the enclosing write action, or None."""
    scope = _scope.get()
    return scope.correlation_id if scope else None


def get_action() -> str | None:
    scope = _scope.get()
    return scope.action if scope else None


def set_correlation_id(correlation_id: str | None) -> None:
    """Set (or clear, with None) the correlation ID for the current context."""
    _scope.set(ActionScope(correlation_id) if correlation_id else None)


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


@contextmanager
def correlation_context(
    correlation_id: str | None = None,
    action: str | None = None,
) -> Generator[str, None, None]:
    """Scope log lines to one write action.

    Args:
        correlation_id: ID to use; a fresh UUID when omitted.
        action: Short action name shown next to the ID (``post``, ``vote``).

    Yields:
        The correlation ID in effect.
    """
    scope = ActionScope(correlation_id or generate_correlation_id(), action)
    token = _scope.set(scope)
    try:
        yield scope.correlation_id
    finally:
        _scope.reset(token)


class JSONFormatter(logging.Formatter):
    """One JSON object per line, tagged with the current action scope."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        scope = _scope.get()
        if scope is not None:
            entry["correlation_id"] = scope.correlation_id
            if scope.action:
                entry["action"] = scope.action

        if record.levelno >= logging.WARNING:
            entry["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class StandardFormatter(logging.Formatter):
    """Human-readable format for terminals.

    Lines inside an action scope are prefixed with ``[cid8 action]``.
    """

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    DIM = "\033[90m"
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
        self.use_colors = use_colors and sys.stderr.isatty()

    def _paint(self, text: str, color: str) -> str:
        return f"{color}{text}{self.RESET}" if self.use_colors else text

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy; other handlers format the same record
        record = logging.makeLogRecord(record.__dict__)

        scope = _scope.get()
        if scope is not None:
            label = scope.correlation_id[:8]
            if scope.action:
                label = f"{label} {scope.action}"
            record.msg = f"{self._paint(f'[{label}]', self.DIM)} {record.msg}"

        record.levelname = self._paint(record.levelname, self.LEVEL_COLORS.get(record.levelname, ""))
        return super().format(record)


def _resolve_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)


def configure_logging(
    level: str | int | None = None,
    json_format: bool | None = None,
    log_file: str | None = None,
) -> None:
    """Install rumormill's handlers on the root logger.

    Arguments left as None fall back to ``RUMORMILL_LOG_LEVEL``,
    ``RUMORMILL_LOG_FORMAT`` (``json``/``text``, else auto-detect from the
    terminal) and ``RUMORMILL_LOG_FILE``.
    """
    from .config import get_config

    config = get_config()

    resolved_level = _resolve_level(config.log_level if level is None else level)

    if json_format is None:
        mode = config.log_format.lower()
        json_format = mode == "json" or (mode != "text" and not sys.stderr.isatty())

    if log_file is None:
        log_file = config.log_file

    root = logging.getLogger()
    root.setLevel(resolved_level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(JSONFormatter() if json_format else StandardFormatter())
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        root.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
