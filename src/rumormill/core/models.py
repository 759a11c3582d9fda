# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Record models shared across rumormill.

Claims and votes are owned by the shared store once submitted.  Reputation
records and trust scores are derived aggregate state.  Every model converts
to and from the plain dict records the :mod:`rumormill.storage` layer
speaks.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

TABLE_CLAIMS = "rumors"
TABLE_VOTES = "verifications"
TABLE_REPUTATION = "user_reputation"
TABLE_TRUST = "trust_scores"
TABLE_SETTLEMENTS = "settlements"


def utcnow() -> datetime:
    return datetime.now(UTC)


def parse_timestamp(value: Any) -> datetime | None:
    """Accept a datetime or ISO-8601 string; return an aware datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


class VoteKind(enum.StrEnum):
    """Direction of a vote on a claim."""

    VERIFY = "verify"
    DISPUTE = "dispute"


@dataclass
class Claim:
    """A posted rumor.

    ``parent_id`` links replies into a forest.  ``deleted_at`` marks a soft
    delete; deleted claims are invisible to every read.
    """

    id: str
    content: str
    author_public_key: str
    pow_hash: str
    pow_nonce: int
    pow_timestamp: int
    author_handle: str = ""
    parent_id: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    deleted_at: datetime | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "author_public_key": self.author_public_key,
            "author_handle": self.author_handle,
            "parent_id": self.parent_id,
            "pow_hash": self.pow_hash,
            "pow_nonce": self.pow_nonce,
            "pow_timestamp": self.pow_timestamp,
            "created_at": self.created_at,
            "deleted_at": self.deleted_at,
        }

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> Claim:
        return cls(
            id=str(data["id"]),
            content=data["content"],
            author_public_key=data["author_public_key"],
            author_handle=data.get("author_handle") or "",
            parent_id=str(data["parent_id"]) if data.get("parent_id") else None,
            pow_hash=data["pow_hash"],
            pow_nonce=int(data["pow_nonce"]),
            pow_timestamp=int(data.get("pow_timestamp") or 0),
            created_at=parse_timestamp(data.get("created_at")) or utcnow(),
            deleted_at=parse_timestamp(data.get("deleted_at")),
        )


@dataclass
class Vote:
    """A verify or dispute vote. At most one per (claim_id, voter_public_key)."""

    id: str
    claim_id: str
    voter_public_key: str
    kind: VoteKind
    pow_hash: str
    pow_nonce: int
    pow_timestamp: int
    voter_handle: str = ""
    created_at: datetime = field(default_factory=utcnow)

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "claim_id": self.claim_id,
            "voter_public_key": self.voter_public_key,
            "voter_handle": self.voter_handle,
            "kind": self.kind.value,
            "pow_hash": self.pow_hash,
            "pow_nonce": self.pow_nonce,
            "pow_timestamp": self.pow_timestamp,
            "created_at": self.created_at,
        }

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> Vote:
        return cls(
            id=str(data["id"]),
            claim_id=str(data["claim_id"]),
            voter_public_key=data["voter_public_key"],
            voter_handle=data.get("voter_handle") or "",
            kind=VoteKind(data["kind"]),
            pow_hash=data["pow_hash"],
            pow_nonce=int(data["pow_nonce"]),
            pow_timestamp=int(data.get("pow_timestamp") or 0),
            created_at=parse_timestamp(data.get("created_at")) or utcnow(),
        )


@dataclass
class ReputationRecord:
    """Reputation state for one public key.

    ``factor`` weights the identity's votes in trust aggregation and is kept
    strictly positive by the ledger's bounds.
    """

    public_key: str
    factor: float = 1.0
    total_votes: int = 0
    successful_votes: int = 0
    failed_votes: int = 0
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def accuracy(self) -> float | None:
        """Share of judged votes that were correct, None before any judgment."""
        if self.total_votes == 0:
            return None
        return self.successful_votes / self.total_votes

    def to_record(self) -> dict[str, Any]:
        return {
            "public_key": self.public_key,
            "factor": self.factor,
            "total_votes": self.total_votes,
            "successful_votes": self.successful_votes,
            "failed_votes": self.failed_votes,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> ReputationRecord:
        return cls(
            public_key=data["public_key"],
            factor=float(data.get("factor", 1.0)),
            total_votes=int(data.get("total_votes", 0)),
            successful_votes=int(data.get("successful_votes", 0)),
            failed_votes=int(data.get("failed_votes", 0)),
            updated_at=parse_timestamp(data.get("updated_at")) or utcnow(),
        )


@dataclass
class TrustScore:
    """Reputation-weighted trust aggregate for one claim (derived, cached)."""

    claim_id: str
    verify_count: int = 0
    dispute_count: int = 0
    score: float = 0.0
    percentage: float = 50.0
    updated_at: datetime = field(default_factory=utcnow)

    def to_record(self) -> dict[str, Any]:
        return {
            "claim_id": self.claim_id,
            "verify_count": self.verify_count,
            "dispute_count": self.dispute_count,
            "score": self.score,
            "percentage": self.percentage,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> TrustScore:
        return cls(
            claim_id=str(data["claim_id"]),
            verify_count=int(data.get("verify_count", 0)),
            dispute_count=int(data.get("dispute_count", 0)),
            score=float(data.get("score", 0.0)),
            percentage=float(data.get("percentage", 50.0)),
            updated_at=parse_timestamp(data.get("updated_at")) or utcnow(),
        )
