"""Trust aggregation and reputation for rumormill."""

from rumormill.trust.aggregator import (
    TrustAggregator,
    TrustBand,
    is_anomalous,
    trust_band,
)
from rumormill.trust.reputation import ReputationLedger, ReputationPolicy

__all__ = [
    "ReputationLedger",
    "ReputationPolicy",
    "TrustAggregator",
    "TrustBand",
    "is_anomalous",
    "trust_band",
]
