"""Tests for rumormill.core.models."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from rumormill.core.models import (
    Claim,
    ReputationRecord,
    TrustScore,
    Vote,
    VoteKind,
    parse_timestamp,
)


class TestParseTimestamp:
    def test_none_and_empty(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None

    def test_naive_becomes_utc(self):
        dt = parse_timestamp("2026-01-02T03:04:05")
        assert dt == datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)

    def test_aware_string(self):
        dt = parse_timestamp("2026-01-02T03:04:05+00:00")
        assert dt.tzinfo is not None

    def test_datetime_passthrough(self):
        now = datetime.now(UTC)
        assert parse_timestamp(now) == now


class TestClaim:
    def test_record_round_trip(self):
        claim = Claim(
            id="c1",
            content="The library closes at noon",
            author_public_key="ab" * 32,
            author_handle="User_0042",
            pow_hash="000abc",
            pow_nonce=17,
            pow_timestamp=1700000000000,
            parent_id="p1",
        )

        restored = Claim.from_record(claim.to_record())

        assert restored == claim

    def test_is_deleted(self):
        claim = Claim(id="c1", content="x" * 10, author_public_key="k", pow_hash="0", pow_nonce=0, pow_timestamp=0)
        assert not claim.is_deleted

        claim.deleted_at = datetime.now(UTC)
        assert claim.is_deleted

    def test_from_record_tolerates_missing_optionals(self):
        claim = Claim.from_record(
            {
                "id": 5,
                "content": "hello world!",
                "author_public_key": "k",
                "pow_hash": "00",
                "pow_nonce": "3",
            }
        )

        assert claim.id == "5"
        assert claim.pow_nonce == 3
        assert claim.pow_timestamp == 0
        assert claim.parent_id is None
        assert claim.author_handle == ""


class TestVote:
    def test_kind_parsed(self):
        vote = Vote.from_record(
            {
                "id": "v1",
                "claim_id": "c1",
                "voter_public_key": "k",
                "kind": "dispute",
                "pow_hash": "00",
                "pow_nonce": 1,
                "pow_timestamp": 5,
            }
        )

        assert vote.kind is VoteKind.DISPUTE
        assert vote.to_record()["kind"] == "dispute"

    def test_bad_kind_rejected(self):
        with pytest.raises(ValueError):
            Vote.from_record(
                {
                    "id": "v1",
                    "claim_id": "c1",
                    "voter_public_key": "k",
                    "kind": "maybe",
                    "pow_hash": "00",
                    "pow_nonce": 1,
                }
            )


class TestReputationRecord:
    def test_defaults(self):
        record = ReputationRecord(public_key="k")

        assert record.factor == 1.0
        assert record.accuracy is None

    def test_accuracy(self):
        record = ReputationRecord(public_key="k", total_votes=4, successful_votes=3, failed_votes=1)

        assert record.accuracy == 0.75


class TestTrustScore:
    def test_defaults_neutral(self):
        score = TrustScore(claim_id="c1")

        assert score.percentage == 50.0
        assert score.score == 0.0

    def test_from_record(self):
        score = TrustScore.from_record({"claim_id": "c1", "verify_count": 2, "percentage": 100})

        assert score.verify_count == 2
        assert score.dispute_count == 0
        assert score.percentage == 100.0
