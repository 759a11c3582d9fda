"""Column naming for the hosted schema.

The hosted tables keep the column names of the deployed database
(``rumor_id``, ``public_key``, ``verification_type``, ...).  Records inside
rumormill use the field names of :mod:`rumormill.core.models`.  This module
translates in both directions and serializes datetimes for the wire.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from ..core.models import TABLE_CLAIMS, TABLE_REPUTATION, TABLE_SETTLEMENTS, TABLE_TRUST, TABLE_VOTES

COLUMN_MAP: dict[str, dict[str, str]] = {
    TABLE_CLAIMS: {
        "author_public_key": "public_key",
        "author_handle": "user_handle",
    },
    TABLE_VOTES: {
        "claim_id": "rumor_id",
        "voter_public_key": "public_key",
        "voter_handle": "user_handle",
        "kind": "verification_type",
    },
    TABLE_REPUTATION: {
        "factor": "reputation_factor",
        "total_votes": "total_verifications",
        "successful_votes": "successful_verifications",
        "failed_votes": "failed_verifications",
    },
    TABLE_TRUST: {
        "claim_id": "rumor_id",
        "score": "trust_score",
        "percentage": "trust_percentage",
    },
    TABLE_SETTLEMENTS: {
        "claim_id": "rumor_id",
        "settled_by": "public_key",
    },
}

_REVERSE_MAP: dict[str, dict[str, str]] = {table: {v: k for k, v in columns.items()} for table, columns in COLUMN_MAP.items()}


def column_name(table: str, field_name: str) -> str:
    """Hosted column name for an internal field."""
    return COLUMN_MAP.get(table, {}).get(field_name, field_name)


def encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def to_remote(table: str, record: dict[str, Any]) -> dict[str, Any]:
    """Translate an internal record into a hosted row."""
    return {column_name(table, k): encode_value(v) for k, v in record.items()}


def from_remote(table: str, row: dict[str, Any]) -> dict[str, Any]:
    """Translate a hosted row into an internal record."""
    reverse = _REVERSE_MAP.get(table, {})
    return {reverse.get(k, k): v for k, v in row.items()}
