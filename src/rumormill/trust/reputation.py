"""
Reputation ledger for vote weighting.

Each public key that votes gets a :class:`ReputationRecord`, created lazily
with factor 1.0.  When a vote is later judged (moderator resolution or
consensus settling, decided outside this module) the ledger applies a
bounded adjustment:

    factor' = clamp(factor ± delta, factor_min, factor_max)

The bounds keep the factor strictly positive, which the trust formula
relies on, and stop a single identity from amplifying without limit.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from ..core.config import CoreSettings
from ..core.exceptions import ConflictError
from ..core.locks import KeyedLocks
from ..core.models import TABLE_REPUTATION, ReputationRecord, utcnow
from ..storage.backend import RecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReputationPolicy:
    """Bounded additive update rule for reputation factors."""

    delta: float = 0.05
    factor_min: float = 0.1
    factor_max: float = 5.0
    initial_factor: float = 1.0

    def __post_init__(self) -> None:
        if self.delta <= 0:
            raise ValueError("delta must be positive")
        if not 0 < self.factor_min < self.factor_max:
            raise ValueError("require 0 < factor_min < factor_max")
        if not self.factor_min <= self.initial_factor <= self.factor_max:
            raise ValueError("initial_factor must lie within bounds")

    @classmethod
    def from_settings(cls, settings: CoreSettings) -> ReputationPolicy:
        return cls(
            delta=settings.reputation_delta,
            factor_min=settings.reputation_factor_min,
            factor_max=settings.reputation_factor_max,
        )

    def adjust(self, factor: float, was_correct: bool) -> float:
        """Apply one judged outcome to ``factor``."""
        step = self.delta if was_correct else -self.delta
        return min(self.factor_max, max(self.factor_min, factor + step))


class ReputationLedger:
    """
    Store-backed reputation records (one per voting public key).

    Read-modify-write cycles are serialized per public key inside one
    process and written back as a compare-and-set on ``total_votes`` across
    processes; unrelated keys never block each other.
    """

    MAX_ATTEMPTS = 10

    def __init__(
        self,
        store: RecordStore,
        policy: ReputationPolicy | None = None,
        locks: KeyedLocks | None = None,
    ):
        self.store = store
        self.policy = policy or ReputationPolicy()
        self._locks = locks or KeyedLocks()

    def get(self, public_key: str) -> ReputationRecord | None:
        """Get the reputation record for a key, or None if it never voted."""
        rows = self.store.select(TABLE_REPUTATION, {"public_key": public_key})
        return ReputationRecord.from_record(rows[0]) if rows else None

    def _ensure_locked(self, public_key: str) -> ReputationRecord:
        existing = self.get(public_key)
        if existing is not None:
            return existing
        record = ReputationRecord(public_key=public_key, factor=self.policy.initial_factor)
        try:
            stored = self.store.insert(TABLE_REPUTATION, record.to_record())
        except ConflictError:
            # Another process created it first
            existing = self.get(public_key)
            if existing is None:
                raise
            return existing
        logger.debug(f"New reputation record: {public_key[:16]}...")
        return ReputationRecord.from_record(stored)

    def ensure(self, public_key: str) -> ReputationRecord:
        """Create the default record for ``public_key`` if absent. Idempotent."""
        with self._locks.hold(public_key):
            return self._ensure_locked(public_key)

    def _apply_outcome(self, public_key: str, was_correct: bool) -> ReputationRecord | None:
        record = self._ensure_locked(public_key)
        seen_total = record.total_votes

        record.total_votes += 1
        if was_correct:
            record.successful_votes += 1
        else:
            record.failed_votes += 1
        record.factor = self.policy.adjust(record.factor, was_correct)
        record.updated_at = utcnow()

        patch = record.to_record()
        del patch["public_key"]
        # total_votes only grows, so it doubles as the row version
        matched = self.store.update(
            TABLE_REPUTATION,
            {"public_key": public_key, "total_votes": seen_total},
            patch,
        )
        return record if matched else None

    def record_outcome(self, public_key: str, was_correct: bool) -> ReputationRecord:
        """Record a judged vote and adjust the factor within bounds.

        The write is conditional on the ``total_votes`` value that was read,
        so ledgers in other processes sharing the store cannot lose each
        other's updates; a lost race re-reads and retries.

        Raises:
            ConflictError: The record kept changing for ``MAX_ATTEMPTS`` tries.
        """
        with self._locks.hold(public_key):
            for attempt in range(1, self.MAX_ATTEMPTS + 1):
                record = self._apply_outcome(public_key, was_correct)
                if record is not None:
                    break
                logger.debug(f"Reputation write raced for {public_key[:16]}..., retry {attempt}")
            else:
                raise ConflictError(
                    f"Reputation for {public_key[:16]}... changed concurrently {self.MAX_ATTEMPTS} times",
                    table=TABLE_REPUTATION,
                )

        logger.info(
            f"Reputation outcome: {public_key[:16]}... correct={was_correct}, "
            f"factor={record.factor:.3f}, total={record.total_votes}"
        )
        return record

    def factors_for(self, public_keys: Iterable[str]) -> dict[str, ReputationRecord]:
        """Look up records for several keys. Keys without a record are omitted."""
        found: dict[str, ReputationRecord] = {}
        for key in set(public_keys):
            record = self.get(key)
            if record is not None:
                found[key] = record
        return found

    def get_stats(self) -> dict[str, Any]:
        """Get reputation ledger statistics."""
        records = [ReputationRecord.from_record(r) for r in self.store.select(TABLE_REPUTATION)]
        if not records:
            return {"total_identities": 0, "avg_factor": 0.0, "judged_votes": 0}

        factors = [r.factor for r in records]
        return {
            "total_identities": len(records),
            "avg_factor": round(sum(factors) / len(factors), 3),
            "min_factor": round(min(factors), 3),
            "max_factor": round(max(factors), 3),
            "judged_votes": sum(r.total_votes for r in records),
        }
