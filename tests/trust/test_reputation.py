"""Tests for the reputation ledger."""

from __future__ import annotations

import random
import threading
from unittest.mock import patch

import pytest

from rumormill.core.config import CoreSettings
from rumormill.core.exceptions import ConflictError
from rumormill.core.models import TABLE_REPUTATION
from rumormill.storage.backend import InMemoryRecordStore
from rumormill.trust.reputation import ReputationLedger, ReputationPolicy


@pytest.fixture()
def ledger(store: InMemoryRecordStore) -> ReputationLedger:
    return ReputationLedger(store)


class TestReputationPolicy:
    def test_adjust_up_and_down(self):
        policy = ReputationPolicy()

        assert policy.adjust(1.0, True) == pytest.approx(1.05)
        assert policy.adjust(1.0, False) == pytest.approx(0.95)

    def test_clamped(self):
        policy = ReputationPolicy()

        assert policy.adjust(5.0, True) == 5.0
        assert policy.adjust(0.1, False) == 0.1

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"delta": 0},
            {"factor_min": 0},
            {"factor_min": 2.0, "factor_max": 1.0},
            {"initial_factor": 10.0},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            ReputationPolicy(**kwargs)

    def test_from_settings(self, clean_env):
        settings = CoreSettings(
            _env_file=None,
            reputation_delta=0.2,
            reputation_factor_min=0.5,
            reputation_factor_max=2.0,
        )

        policy = ReputationPolicy.from_settings(settings)

        assert (policy.delta, policy.factor_min, policy.factor_max) == (0.2, 0.5, 2.0)


class TestEnsure:
    def test_creates_default(self, ledger: ReputationLedger):
        record = ledger.ensure("k")

        assert record.factor == 1.0
        assert record.total_votes == 0
        assert ledger.get("k") is not None

    def test_idempotent(self, ledger: ReputationLedger, store: InMemoryRecordStore):
        ledger.ensure("k")
        ledger.ensure("k")

        assert store.count(TABLE_REPUTATION) == 1

    def test_concurrent_ensure_single_record(self, store: InMemoryRecordStore):
        # Separate ledgers model separate processes: no shared lock
        ledgers = [ReputationLedger(store) for _ in range(8)]
        barrier = threading.Barrier(len(ledgers))
        results = []

        def run(ledger: ReputationLedger):
            barrier.wait()
            results.append(ledger.ensure("k"))

        threads = [threading.Thread(target=run, args=(lg,)) for lg in ledgers]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.count(TABLE_REPUTATION) == 1
        assert len(results) == 8
        assert all(r.factor == 1.0 for r in results)

    def test_conflict_without_record_reraises(self, ledger: ReputationLedger, store: InMemoryRecordStore):
        with patch.object(store, "insert", side_effect=ConflictError("dup", table=TABLE_REPUTATION)):
            with pytest.raises(ConflictError):
                ledger.ensure("ghost")

    def test_get_missing(self, ledger: ReputationLedger):
        assert ledger.get("nobody") is None


class TestRecordOutcome:
    def test_correct(self, ledger: ReputationLedger):
        record = ledger.record_outcome("k", True)

        assert record.factor == pytest.approx(1.05)
        assert (record.total_votes, record.successful_votes, record.failed_votes) == (1, 1, 0)
        assert ledger.get("k").factor == pytest.approx(1.05)

    def test_incorrect(self, ledger: ReputationLedger):
        record = ledger.record_outcome("k", False)

        assert record.factor == pytest.approx(0.95)
        assert ledger.get("k").failed_votes == 1

    def test_bounds_hold_for_any_sequence(self, ledger: ReputationLedger):
        rng = random.Random(1234)
        for _ in range(400):
            record = ledger.record_outcome("k", rng.random() < 0.5)
            assert 0.1 <= record.factor <= 5.0

        stored = ledger.get("k")
        assert stored.total_votes == 400
        assert stored.successful_votes + stored.failed_votes == 400

    def test_saturates_at_max(self, ledger: ReputationLedger):
        for _ in range(200):
            record = ledger.record_outcome("k", True)

        assert record.factor == 5.0

    def test_saturates_at_min(self, ledger: ReputationLedger):
        for _ in range(100):
            record = ledger.record_outcome("k", False)

        assert record.factor == pytest.approx(0.1)

    def test_concurrent_outcomes_not_lost(self, ledger: ReputationLedger):
        def run():
            for _ in range(25):
                ledger.record_outcome("k", True)

        threads = [threading.Thread(target=run) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert ledger.get("k").total_votes == 100

    def test_two_ledgers_interleaved(self, store: InMemoryRecordStore):
        # Separate ledgers model separate processes: no shared lock
        first = ReputationLedger(store)
        second = ReputationLedger(store)
        first.ensure("k")

        real_update = store.update
        calls = []

        def update(table, filters, patch):
            # The second ledger commits between the first one's read and write
            if not calls:
                calls.append(filters)
                second.record_outcome("k", True)
            return real_update(table, filters, patch)

        with patch.object(store, "update", side_effect=update):
            first.record_outcome("k", True)

        stored = first.get("k")
        assert (stored.total_votes, stored.successful_votes) == (2, 2)
        assert stored.factor == pytest.approx(1.10)

    def test_gives_up_when_always_raced(self, ledger: ReputationLedger, store: InMemoryRecordStore):
        ledger.ensure("k")

        with patch.object(store, "update", return_value=0):
            with pytest.raises(ConflictError):
                ledger.record_outcome("k", True)

        assert ledger.get("k").total_votes == 0


class TestReadHelpers:
    def test_factors_for(self, ledger: ReputationLedger):
        ledger.record_outcome("a", True)
        ledger.ensure("b")

        found = ledger.factors_for(["a", "b", "c", "a"])

        assert set(found) == {"a", "b"}
        assert found["a"].factor == pytest.approx(1.05)

    def test_stats_empty(self, ledger: ReputationLedger):
        assert ledger.get_stats()["total_identities"] == 0

    def test_stats(self, ledger: ReputationLedger):
        ledger.record_outcome("a", True)
        ledger.record_outcome("b", False)

        stats = ledger.get_stats()

        assert stats["total_identities"] == 2
        assert stats["judged_votes"] == 2
        assert stats["avg_factor"] == pytest.approx(1.0)
