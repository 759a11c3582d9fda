# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Reputation-weighted trust aggregation for claims.

Votes are weighted by the voter's reputation factor (1.0 when the voter has
no record yet):

    weighted_verify  = sum of factors over verify votes
    weighted_dispute = sum of factors over dispute votes
    score            = weighted_verify - weighted_dispute
    percentage       = 50                               with no votes
                     = clamp(50 + 50 * score / (wv + wd), 0, 100) otherwise

The percentage centers on 50 (no evidence either way) and saturates at 0 or
100 when one side is unopposed.  Because weights, not raw counts, drive the
ratio, a few high-reputation disputes can outweigh many low-reputation
verifications.

Trust is advisory.  It is recomputed when claims are read, never pushed on
every vote.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping

from ..core.models import ReputationRecord, TrustScore, Vote, VoteKind

NEUTRAL_PERCENTAGE = 50.0
DEFAULT_FACTOR = 1.0
HIGH_TRUST_THRESHOLD = 70.0
LOW_TRUST_THRESHOLD = 40.0


class TrustBand(enum.StrEnum):
    """Presentation banding of a trust percentage."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def trust_band(percentage: float) -> TrustBand:
    """``high`` at 70 and above, ``medium`` from 40, ``low`` below 40."""
    if percentage >= HIGH_TRUST_THRESHOLD:
        return TrustBand.HIGH
    if percentage >= LOW_TRUST_THRESHOLD:
        return TrustBand.MEDIUM
    return TrustBand.LOW


def is_anomalous(percentage: float) -> bool:
    """Low-trust claims are flagged as anomalies."""
    return trust_band(percentage) is TrustBand.LOW


class TrustAggregator:
    """Combines votes and voter reputations into a :class:`TrustScore`."""

    def __init__(self, default_factor: float = DEFAULT_FACTOR) -> None:
        if default_factor <= 0:
            raise ValueError("default_factor must be positive")
        self.default_factor = default_factor

    def _factor(self, public_key: str, reputations: Mapping[str, ReputationRecord]) -> float:
        record = reputations.get(public_key)
        return record.factor if record is not None else self.default_factor

    def compute_trust(
        self,
        claim_id: str,
        votes: Iterable[Vote],
        reputations: Mapping[str, ReputationRecord],
    ) -> TrustScore:
        """Compute the trust score of one claim.

        Votes on other claims are ignored.
        """
        verify_count = dispute_count = 0
        weighted_verify = weighted_dispute = 0.0

        for vote in votes:
            if vote.claim_id != claim_id:
                continue
            weight = self._factor(vote.voter_public_key, reputations)
            if vote.kind is VoteKind.VERIFY:
                verify_count += 1
                weighted_verify += weight
            else:
                dispute_count += 1
                weighted_dispute += weight

        score = weighted_verify - weighted_dispute
        total_weight = weighted_verify + weighted_dispute

        if verify_count + dispute_count == 0 or total_weight <= 0:
            percentage = NEUTRAL_PERCENTAGE
        else:
            percentage = 50.0 + 50.0 * score / total_weight
            percentage = min(100.0, max(0.0, percentage))

        return TrustScore(
            claim_id=claim_id,
            verify_count=verify_count,
            dispute_count=dispute_count,
            score=score,
            percentage=percentage,
        )
