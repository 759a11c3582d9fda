"""Tests for rumormill.core.logging module."""

from __future__ import annotations

import json
import logging

import pytest

from rumormill.core.logging import (
    JSONFormatter,
    StandardFormatter,
    configure_logging,
    correlation_context,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(msg: str = "hello", level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord("rumormill.test", level, __file__, 42, msg, None, None)


# ============================================================================
# Correlation ID Tests
# ============================================================================


class TestCorrelationId:
    def test_default_none(self):
        set_correlation_id(None)
        assert get_correlation_id() is None

    def test_generate_unique(self):
        id1 = generate_correlation_id()
        id2 = generate_correlation_id()

        assert id1 != id2
        assert len(id1) == 36

    def test_context_generates_and_resets(self):
        set_correlation_id(None)

        with correlation_context() as cid:
            assert len(cid) == 36
            assert get_correlation_id() == cid

        assert get_correlation_id() is None

    def test_context_uses_provided_id(self):
        set_correlation_id(None)

        with correlation_context("write-1") as cid:
            assert cid == "write-1"

        assert get_correlation_id() is None


# ============================================================================
# Formatter Tests
# ============================================================================


class TestJSONFormatter:
    def test_basic_fields(self):
        set_correlation_id(None)
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "rumormill.test"
        assert data["message"] == "hello"
        assert "correlation_id" not in data
        assert "source" not in data

    def test_includes_correlation_id(self):
        with correlation_context("abc-123"):
            data = json.loads(JSONFormatter().format(_record()))

        assert data["correlation_id"] == "abc-123"

    def test_includes_action(self):
        with correlation_context("abc-123", action="vote"):
            data = json.loads(JSONFormatter().format(_record()))

        assert data["action"] == "vote"

    def test_warning_includes_source(self):
        data = json.loads(JSONFormatter().format(_record(level=logging.WARNING)))

        assert data["source"]["line"] == 42


class TestStandardFormatter:
    def test_prefixes_correlation_id(self):
        formatter = StandardFormatter(use_colors=False)

        with correlation_context("deadbeef-0000"):
            out = formatter.format(_record())

        assert "[deadbeef]" in out
        assert "hello" in out

    def test_prefix_includes_action(self):
        formatter = StandardFormatter(use_colors=False)

        with correlation_context("deadbeef-0000", action="post"):
            out = formatter.format(_record())

        assert "[deadbeef post] hello" in out

    def test_does_not_mutate_record(self):
        formatter = StandardFormatter(use_colors=False)
        record = _record()

        with correlation_context("deadbeef-0000"):
            formatter.format(record)

        assert record.msg == "hello"


# ============================================================================
# configure_logging
# ============================================================================


class TestConfigureLogging:
    def test_json_handler(self, clean_env, restore_root_logger):
        configure_logging(level="DEBUG", json_format=True)

        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, JSONFormatter)

    def test_text_handler(self, clean_env, restore_root_logger):
        configure_logging(level="WARNING", json_format=False)

        assert restore_root_logger.level == logging.WARNING
        assert isinstance(restore_root_logger.handlers[0].formatter, StandardFormatter)

    def test_level_from_config(self, clean_env, monkeypatch, restore_root_logger):
        monkeypatch.setenv("RUMORMILL_LOG_LEVEL", "ERROR")

        configure_logging(json_format=False)

        assert restore_root_logger.level == logging.ERROR

    def test_log_file_is_json(self, clean_env, restore_root_logger, tmp_path):
        log_file = tmp_path / "rumormill.log"

        configure_logging(level="INFO", json_format=False, log_file=str(log_file))
        logging.getLogger("rumormill.test").info("to file")
        for handler in restore_root_logger.handlers:
            handler.flush()

        line = log_file.read_text().strip().splitlines()[-1]
        assert json.loads(line)["message"] == "to file"

    def test_noisy_libraries_quieted(self, clean_env, restore_root_logger):
        configure_logging(level="DEBUG", json_format=True)

        assert logging.getLogger("httpx").level == logging.WARNING
