"""Tests for rumormill.identity.models."""

from __future__ import annotations

import pytest

from rumormill.identity.models import Identity


class TestIdentity:
    def test_dict_round_trip(self):
        identity = Identity(public_key=b"\x01" * 32, private_key=b"\x02" * 48, handle="User_0001")

        data = identity.to_dict()

        assert data["public_key"] == "01" * 32
        assert Identity.from_dict(data) == identity

    def test_public_key_hex_lowercase(self):
        identity = Identity(public_key=b"\xab" * 32, private_key=b"\x00", handle="User_0000")
        assert identity.public_key_hex == "ab" * 32

    def test_frozen(self):
        identity = Identity(public_key=b"\x01", private_key=b"\x02", handle="User_0001")
        with pytest.raises(AttributeError):
            identity.handle = "User_9999"

    @pytest.mark.parametrize(
        "data",
        [
            {},
            {"public_key": "01", "private_key": ""},
            {"public_key": 1, "private_key": "02"},
            {"public_key": "xyz", "private_key": "02"},
        ],
    )
    def test_invalid_rejected(self, data):
        with pytest.raises(ValueError):
            Identity.from_dict(data)
