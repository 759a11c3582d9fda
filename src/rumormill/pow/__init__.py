"""Proof-of-work anti-spam gate."""

from rumormill.pow.engine import (
    DEFAULT_DIFFICULTY,
    ProofOfWork,
    ProofOfWorkEngine,
    compute_hash,
    meets_difficulty,
)
from rumormill.pow.payload import canonical_bytes, claim_payload, now_ms, vote_payload

__all__ = [
    "DEFAULT_DIFFICULTY",
    "ProofOfWork",
    "ProofOfWorkEngine",
    "canonical_bytes",
    "claim_payload",
    "compute_hash",
    "meets_difficulty",
    "now_ms",
    "vote_payload",
]
