"""Tests for rumormill.core.exceptions."""

from __future__ import annotations

import pytest

from rumormill.core.exceptions import (
    ConfigException,
    ConflictError,
    KeyGenerationError,
    RumorMillException,
    StoreError,
    ValidationException,
)


class TestExceptionHierarchy:
    @pytest.mark.parametrize(
        "exc_class",
        [ConfigException, KeyGenerationError, ValidationException, StoreError, ConflictError],
    )
    def test_all_derive_from_base(self, exc_class):
        assert issubclass(exc_class, RumorMillException)

    def test_conflict_is_store_error(self):
        """Callers that only handle StoreError still catch conflicts."""
        assert issubclass(ConflictError, StoreError)


class TestToDict:
    def test_base(self):
        exc = RumorMillException("boom", {"a": 1})

        assert exc.to_dict() == {
            "error": "RumorMillException",
            "message": "boom",
            "details": {"a": 1},
        }
        assert str(exc) == "boom"

    def test_validation_details(self):
        exc = ValidationException("too short", field="content", value="hi")

        data = exc.to_dict()
        assert data["error"] == "ValidationException"
        assert data["details"]["field"] == "content"
        assert exc.field == "content"

    def test_store_error_status(self):
        exc = StoreError("rejected", table="rumors", status_code=500)

        assert exc.table == "rumors"
        assert exc.status_code == 500
        assert exc.to_dict()["details"]["status_code"] == 500

    def test_conflict_status_is_409(self):
        exc = ConflictError("dup", table="verifications", key={"claim_id": "c1"})

        assert exc.status_code == 409
        assert exc.table == "verifications"
