"""Tests for the in-memory record store."""

from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta

import pytest

from rumormill.core.exceptions import ConflictError, StoreError
from rumormill.core.models import TABLE_CLAIMS, TABLE_REPUTATION, TABLE_TRUST, TABLE_VOTES
from rumormill.storage.backend import InMemoryRecordStore, _matches


class TestMatches:
    def test_empty_filters_match(self):
        assert _matches({"a": 1}, None)
        assert _matches({"a": 1}, {})

    def test_equality(self):
        assert _matches({"a": 1, "b": 2}, {"a": 1})
        assert not _matches({"a": 1}, {"a": 2})

    def test_none_matches_null_or_missing(self):
        assert _matches({"deleted_at": None}, {"deleted_at": None})
        assert _matches({}, {"deleted_at": None})
        assert not _matches({"deleted_at": "2026-01-01"}, {"deleted_at": None})


class TestInsert:
    def test_generates_id_and_created_at(self):
        fixed = datetime(2026, 1, 1, tzinfo=UTC)
        store = InMemoryRecordStore(clock=lambda: fixed)

        row = store.insert(TABLE_CLAIMS, {"content": "hello there"})

        assert row["id"]
        assert row["created_at"] == fixed

    def test_keeps_supplied_id(self):
        store = InMemoryRecordStore()
        row = store.insert(TABLE_CLAIMS, {"id": "c1", "content": "hello there"})
        assert row["id"] == "c1"

    def test_reputation_gets_updated_at_not_id(self):
        store = InMemoryRecordStore()
        row = store.insert(TABLE_REPUTATION, {"public_key": "k"})

        assert "id" not in row
        assert row["updated_at"] is not None

    @pytest.mark.parametrize(
        "table,record",
        [
            (TABLE_CLAIMS, {"id": "c1"}),
            (TABLE_VOTES, {"claim_id": "c1", "voter_public_key": "k"}),
            (TABLE_REPUTATION, {"public_key": "k"}),
            (TABLE_TRUST, {"claim_id": "c1"}),
        ],
    )
    def test_unique_keys(self, table, record):
        store = InMemoryRecordStore()
        store.insert(table, dict(record))

        with pytest.raises(ConflictError) as exc_info:
            store.insert(table, dict(record))

        assert exc_info.value.table == table
        assert store.count(table) == 1

    def test_same_voter_different_claims_allowed(self):
        store = InMemoryRecordStore()
        store.insert(TABLE_VOTES, {"claim_id": "c1", "voter_public_key": "k"})
        store.insert(TABLE_VOTES, {"claim_id": "c2", "voter_public_key": "k"})

        assert store.count(TABLE_VOTES) == 2

    def test_records_are_copied(self):
        store = InMemoryRecordStore()
        record = {"id": "c1", "tags": ["a"]}
        returned = store.insert(TABLE_CLAIMS, record)

        record["tags"].append("b")
        returned["tags"].append("c")

        assert store.select(TABLE_CLAIMS)[0]["tags"] == ["a"]


class TestConcurrentInsert:
    def test_one_vote_survives_race(self):
        store = InMemoryRecordStore()
        barrier = threading.Barrier(16)
        conflicts = 0
        lock = threading.Lock()

        def vote():
            nonlocal conflicts
            barrier.wait()
            try:
                store.insert(TABLE_VOTES, {"claim_id": "c1", "voter_public_key": "k", "kind": "verify"})
            except ConflictError:
                with lock:
                    conflicts += 1

        threads = [threading.Thread(target=vote) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.count(TABLE_VOTES, {"claim_id": "c1"}) == 1
        assert conflicts == 15


class TestSelect:
    @pytest.fixture()
    def store(self) -> InMemoryRecordStore:
        store = InMemoryRecordStore()
        base = datetime(2026, 1, 1, tzinfo=UTC)
        for i in range(3):
            store.insert(
                TABLE_CLAIMS,
                {"id": f"c{i}", "created_at": base + timedelta(minutes=i), "deleted_at": None},
            )
        return store

    def test_order_desc(self, store):
        rows = store.select(TABLE_CLAIMS, order=("created_at", True))
        assert [r["id"] for r in rows] == ["c2", "c1", "c0"]

    def test_order_asc(self, store):
        rows = store.select(TABLE_CLAIMS, order=("created_at", False))
        assert [r["id"] for r in rows] == ["c0", "c1", "c2"]

    def test_unorderable_raises_store_error(self, store):
        store.insert(TABLE_CLAIMS, {"id": "c9", "created_at": "not-a-date"})

        with pytest.raises(StoreError):
            store.select(TABLE_CLAIMS, order=("created_at", True))

    def test_unknown_table_empty(self, store):
        assert store.select("nope") == []


class TestUpdateCount:
    def test_update_matching_only(self):
        store = InMemoryRecordStore()
        store.insert(TABLE_CLAIMS, {"id": "c1", "deleted_at": None})
        store.insert(TABLE_CLAIMS, {"id": "c2", "deleted_at": None})

        assert store.update(TABLE_CLAIMS, {"id": "c1"}, {"deleted_at": "now"}) == 1

        assert store.count(TABLE_CLAIMS, {"deleted_at": None}) == 1
        assert store.select(TABLE_CLAIMS, {"id": "c1"})[0]["deleted_at"] == "now"

    def test_update_with_stale_value_matches_nothing(self):
        store = InMemoryRecordStore()
        store.insert(TABLE_REPUTATION, {"public_key": "k", "total_votes": 1})

        assert store.update(TABLE_REPUTATION, {"public_key": "k", "total_votes": 0}, {"total_votes": 1}) == 0
        assert store.select(TABLE_REPUTATION)[0]["total_votes"] == 1

    def test_close_is_noop(self):
        InMemoryRecordStore().close()
