# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Rumor board service — the write gate and read path of rumormill.

Write path (post, vote):
    validate (no work spent on rejected input)
      -> canonical payload with public key and timestamp
      -> mine proof of work
      -> re-verify the proof at the configured difficulty
      -> insert into the record store

Read path (list):
    non-deleted claims newest first
      -> trust recomputed per claim from votes and reputations, then cached
      -> non-deleted child counts and the local identity's own votes attached

Store failures never escape the board: they are logged and the operation
degrades to an empty or ``None`` result.  Validation failures are raised as
:class:`ValidationException` so the caller can show the reason.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any

from ..core.config import CoreSettings, get_config
from ..core.exceptions import ConflictError, StoreError, ValidationException
from ..core.locks import KeyedLocks
from ..core.logging import correlation_context
from ..core.models import (
    TABLE_CLAIMS,
    TABLE_SETTLEMENTS,
    TABLE_TRUST,
    TABLE_VOTES,
    Claim,
    TrustScore,
    Vote,
    VoteKind,
    utcnow,
)
from ..identity.models import Identity
from ..pow.engine import ProgressCallback, ProofOfWork, ProofOfWorkEngine
from ..pow.payload import claim_payload, now_ms, vote_payload
from ..storage.backend import RecordStore
from ..trust.aggregator import TrustAggregator, TrustBand, is_anomalous, trust_band
from ..trust.reputation import ReputationLedger, ReputationPolicy
from .forest import ClaimForest

logger = logging.getLogger(__name__)


class ListFilter(enum.StrEnum):
    ALL = "all"
    VERIFIED = "verified"
    UNVERIFIED = "unverified"


class ListSort(enum.StrEnum):
    NEWEST = "newest"
    OLDEST = "oldest"
    HOTTEST = "hottest"


@dataclass
class ClaimView:
    """A claim as shown to the local user."""

    claim: Claim
    trust: TrustScore
    children_count: int = 0
    user_vote: VoteKind | None = None

    @property
    def band(self) -> TrustBand:
        return trust_band(self.trust.percentage)

    @property
    def anomalous(self) -> bool:
        return is_anomalous(self.trust.percentage)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.claim.id,
            "content": self.claim.content,
            "author": self.claim.author_handle,
            "parent_id": self.claim.parent_id,
            "created_at": self.claim.created_at.isoformat(),
            "verify_count": self.trust.verify_count,
            "dispute_count": self.trust.dispute_count,
            "trust_score": round(self.trust.score, 3),
            "trust_percentage": round(self.trust.percentage, 1),
            "trust_band": self.band.value,
            "anomalous": self.anomalous,
            "children_count": self.children_count,
            "user_vote": self.user_vote.value if self.user_vote else None,
        }


@dataclass
class ThreadEntry:
    claim: Claim
    depth: int


class RumorBoard:
    """Posts, votes and trust-annotated listings for one local identity.

    Args:
        store: Record store holding claims, votes, reputations, trust scores.
        identity: The installation's identity; every write carries its key.
        settings: Difficulty, content limits and reputation bounds.
        pow_engine: Proof-of-work engine (default engine when omitted).
        ledger: Reputation ledger (built on ``store`` when omitted).
        aggregator: Trust aggregator.
    """

    def __init__(
        self,
        store: RecordStore,
        identity: Identity,
        settings: CoreSettings | None = None,
        pow_engine: ProofOfWorkEngine | None = None,
        ledger: ReputationLedger | None = None,
        aggregator: TrustAggregator | None = None,
    ) -> None:
        self.store = store
        self.identity = identity
        self.settings = settings or get_config()
        self.pow_engine = pow_engine or ProofOfWorkEngine()
        self.ledger = ledger or ReputationLedger(store, ReputationPolicy.from_settings(self.settings))
        self.aggregator = aggregator or TrustAggregator()
        self._trust_locks = KeyedLocks()

    @property
    def difficulty(self) -> int:
        return self.settings.pow_difficulty

    # -- Validation ---------------------------------------------------------

    def _validate_content(self, content: str) -> None:
        stripped = content.strip()
        if len(stripped) < self.settings.content_min_length:
            raise ValidationException(
                f"Rumor must be at least {self.settings.content_min_length} characters long",
                field="content",
            )
        if len(content) > self.settings.content_max_length:
            raise ValidationException(
                f"Rumor must be at most {self.settings.content_max_length} characters",
                field="content",
            )

    def _require_proof(self, pow: ProofOfWork) -> None:
        if not self.pow_engine.verify(pow, self.difficulty):
            raise ValidationException("Proof of work rejected", field="pow_hash", value=pow.hash)

    # -- Lookups ------------------------------------------------------------

    def _get_claim(self, claim_id: str) -> Claim | None:
        rows = self.store.select(TABLE_CLAIMS, {"id": claim_id, "deleted_at": None})
        return Claim.from_record(rows[0]) if rows else None

    def _find_vote(self, claim_id: str, public_key: str) -> Vote | None:
        rows = self.store.select(TABLE_VOTES, {"claim_id": claim_id, "voter_public_key": public_key})
        return Vote.from_record(rows[0]) if rows else None

    def get_claim(self, claim_id: str) -> Claim | None:
        """A non-deleted claim by id, or None."""
        try:
            return self._get_claim(claim_id)
        except StoreError as e:
            logger.error("Error fetching rumor %s: %s", claim_id, e)
            return None

    # -- Posting ------------------------------------------------------------

    async def post_claim(
        self,
        content: str,
        parent_id: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> Claim | None:
        """Mine and submit a new claim (a reply when ``parent_id`` is given).

        Raises:
            ValidationException: Content out of bounds or unknown parent.
        """
        with correlation_context(action="post"):
            self._validate_content(content)

            if parent_id is not None:
                try:
                    parent = self._get_claim(parent_id)
                except StoreError as e:
                    logger.error("Error checking parent rumor %s: %s", parent_id, e)
                    return None
                if parent is None:
                    raise ValidationException("Parent rumor not found", field="parent_id", value=parent_id)

            public_key = self.identity.public_key_hex
            timestamp = now_ms()
            payload = claim_payload(content, public_key, parent_id, timestamp)

            logger.debug("Mining rumor at difficulty %d", self.difficulty)
            pow = await self.pow_engine.mine(payload, self.difficulty, on_progress)
            self._require_proof(pow)

            record = {
                "content": content,
                "author_public_key": public_key,
                "author_handle": self.identity.handle,
                "parent_id": parent_id,
                "pow_hash": pow.hash,
                "pow_nonce": pow.nonce,
                "pow_timestamp": timestamp,
                "deleted_at": None,
            }
            try:
                stored = self.store.insert(TABLE_CLAIMS, record)
            except StoreError as e:
                logger.error("Error creating rumor: %s", e)
                return None

            claim = Claim.from_record(stored)
            logger.info("Posted rumor %s (nonce=%d)", claim.id, pow.nonce)
            return claim

    # -- Voting -------------------------------------------------------------

    async def cast_vote(
        self,
        claim_id: str,
        kind: VoteKind | str,
        on_progress: ProgressCallback | None = None,
    ) -> Vote | None:
        """Mine and submit a verify/dispute vote.

        Returns None when the store fails or a concurrent duplicate wins the
        uniqueness race; the duplicate is not an error.

        Raises:
            ValidationException: Bad kind, unknown claim, or vote already cast.
        """
        with correlation_context(action="vote"):
            try:
                kind = VoteKind(kind)
            except ValueError as e:
                raise ValidationException("Vote must be 'verify' or 'dispute'", field="kind", value=kind) from e

            public_key = self.identity.public_key_hex
            try:
                claim = self._get_claim(claim_id)
                existing = self._find_vote(claim_id, public_key) if claim is not None else None
            except StoreError as e:
                logger.error("Error checking vote preconditions for %s: %s", claim_id, e)
                return None

            if claim is None:
                raise ValidationException("Rumor not found", field="claim_id", value=claim_id)
            if existing is not None:
                raise ValidationException(
                    f"Vote already cast ({existing.kind.value})",
                    field="claim_id",
                    value=claim_id,
                )

            try:
                self.ledger.ensure(public_key)
            except StoreError as e:
                logger.error("Error ensuring reputation for voter: %s", e)
                return None

            timestamp = now_ms()
            payload = vote_payload(claim_id, public_key, kind.value, timestamp)
            pow = await self.pow_engine.mine(payload, self.difficulty, on_progress)
            self._require_proof(pow)

            record = {
                "claim_id": claim_id,
                "voter_public_key": public_key,
                "voter_handle": self.identity.handle,
                "kind": kind.value,
                "pow_hash": pow.hash,
                "pow_nonce": pow.nonce,
                "pow_timestamp": timestamp,
            }
            try:
                stored = self.store.insert(TABLE_VOTES, record)
            except ConflictError:
                logger.info("Duplicate vote on %s ignored", claim_id)
                return None
            except StoreError as e:
                logger.error("Error creating verification: %s", e)
                return None

            vote = Vote.from_record(stored)
            logger.info("Cast %s on rumor %s", kind.value, claim_id)
            return vote

    def get_user_vote(self, claim_id: str) -> VoteKind | None:
        """The local identity's vote on a claim, or None."""
        try:
            vote = self._find_vote(claim_id, self.identity.public_key_hex)
        except StoreError as e:
            logger.error("Error fetching own vote on %s: %s", claim_id, e)
            return None
        return vote.kind if vote else None

    def user_votes(self, claim_ids: list[str]) -> dict[str, VoteKind]:
        """Map each claim id the local identity voted on to its vote kind."""
        votes: dict[str, VoteKind] = {}
        for claim_id in claim_ids:
            kind = self.get_user_vote(claim_id)
            if kind is not None:
                votes[claim_id] = kind
        return votes

    # -- Trust --------------------------------------------------------------

    def _refresh_trust(self, claim_id: str) -> TrustScore:
        with self._trust_locks.hold(claim_id):
            votes = [Vote.from_record(r) for r in self.store.select(TABLE_VOTES, {"claim_id": claim_id})]
            reputations = self.ledger.factors_for(v.voter_public_key for v in votes)
            trust = self.aggregator.compute_trust(claim_id, votes, reputations)

            patch = trust.to_record()
            try:
                self.store.insert(TABLE_TRUST, patch)
            except ConflictError:
                del patch["claim_id"]
                self.store.update(TABLE_TRUST, {"claim_id": claim_id}, patch)
            return trust

    def trust_for(self, claim_id: str) -> TrustScore | None:
        """Recompute and cache the trust of a non-deleted claim."""
        try:
            if self._get_claim(claim_id) is None:
                return None
            return self._refresh_trust(claim_id)
        except StoreError as e:
            logger.error("Error computing trust for %s: %s", claim_id, e)
            return None

    def cached_trust_scores(self) -> dict[str, TrustScore]:
        """All cached trust scores keyed by claim id."""
        try:
            rows = self.store.select(TABLE_TRUST)
        except StoreError as e:
            logger.error("Error fetching trust scores: %s", e)
            return {}
        scores = (TrustScore.from_record(r) for r in rows)
        return {s.claim_id: s for s in scores}

    # -- Listing ------------------------------------------------------------

    def list_claims(
        self,
        filter: ListFilter | str = ListFilter.ALL,
        sort: ListSort | str = ListSort.NEWEST,
    ) -> list[ClaimView]:
        """Non-deleted claims with fresh trust, child counts and own votes."""
        filter = ListFilter(filter)
        sort = ListSort(sort)

        try:
            rows = self.store.select(TABLE_CLAIMS, {"deleted_at": None}, order=("created_at", True))
        except StoreError as e:
            logger.error("Error fetching rumors: %s", e)
            return []

        cached = self.cached_trust_scores()
        views: list[ClaimView] = []
        for row in rows:
            claim = Claim.from_record(row)
            try:
                trust = self._refresh_trust(claim.id)
            except StoreError as e:
                logger.warning("Using cached trust for %s: %s", claim.id, e)
                trust = cached.get(claim.id) or TrustScore(claim_id=claim.id)

            try:
                children = self.store.count(TABLE_CLAIMS, {"parent_id": claim.id, "deleted_at": None})
            except StoreError as e:
                logger.warning("Error counting replies for %s: %s", claim.id, e)
                children = 0

            views.append(
                ClaimView(
                    claim=claim,
                    trust=trust,
                    children_count=children,
                    user_vote=self.get_user_vote(claim.id),
                )
            )

        if filter is ListFilter.VERIFIED:
            views = [v for v in views if v.trust.verify_count > 0]
        elif filter is ListFilter.UNVERIFIED:
            views = [v for v in views if v.trust.verify_count == 0]

        if sort is ListSort.OLDEST:
            views.sort(key=lambda v: v.claim.created_at)
        elif sort is ListSort.HOTTEST:
            views.sort(key=lambda v: v.trust.score, reverse=True)
        else:
            views.sort(key=lambda v: v.claim.created_at, reverse=True)
        return views

    def thread(self, claim_id: str) -> list[ThreadEntry]:
        """A claim and its non-deleted descendants, depth first.

        Deleted claims are loaded into the forest so that replies below a
        deleted reply stay reachable; the walk hides the deleted rows.  A
        deleted root yields an empty thread.
        """
        try:
            rows = self.store.select(TABLE_CLAIMS, order=("created_at", False))
        except StoreError as e:
            logger.error("Error fetching thread %s: %s", claim_id, e)
            return []

        forest = ClaimForest()
        for row in rows:
            try:
                forest.add(Claim.from_record(row))
            except ValueError as e:
                logger.warning("Skipping rumor in thread: %s", e)

        root = forest.get(claim_id)
        if root is None or root.is_deleted:
            return []
        return [ThreadEntry(claim, depth) for claim, depth in forest.walk(claim_id)]

    # -- Moderation ---------------------------------------------------------

    def delete_claim(self, claim_id: str) -> bool:
        """Soft-delete one of the local identity's own claims.

        Replies are left untouched.

        Raises:
            ValidationException: Unknown claim, or not authored by this identity.
        """
        try:
            claim = self._get_claim(claim_id)
        except StoreError as e:
            logger.error("Error fetching rumor %s: %s", claim_id, e)
            return False
        if claim is None:
            raise ValidationException("Rumor not found", field="claim_id", value=claim_id)
        if claim.author_public_key != self.identity.public_key_hex:
            raise ValidationException("Only the author can delete a rumor", field="claim_id", value=claim_id)

        try:
            self.store.update(TABLE_CLAIMS, {"id": claim_id}, {"deleted_at": utcnow()})
        except StoreError as e:
            logger.error("Error deleting rumor %s: %s", claim_id, e)
            return False
        logger.info("Deleted rumor %s", claim_id)
        return True

    def settle_claim(self, claim_id: str, resolution: VoteKind | str) -> int:
        """Judge every vote on a claim against an external resolution.

        A voter whose vote kind matches ``resolution`` is recorded correct,
        every other voter incorrect.  A claim settles once: the settlement
        row is inserted before any reputation changes, and its unique key
        turns a second attempt (from any process) into a rejection.

        Returns the number of votes settled.

        Raises:
            ValidationException: Bad resolution, unknown or deleted claim,
                or claim already settled.
        """
        try:
            resolution = VoteKind(resolution)
        except ValueError as e:
            raise ValidationException(
                "Resolution must be 'verify' or 'dispute'", field="resolution", value=resolution
            ) from e

        try:
            claim = self._get_claim(claim_id)
        except StoreError as e:
            logger.error("Error fetching rumor %s: %s", claim_id, e)
            return 0
        if claim is None:
            raise ValidationException("Rumor not found", field="claim_id", value=claim_id)

        settlement = {
            "claim_id": claim_id,
            "resolution": resolution.value,
            "settled_by": self.identity.public_key_hex,
        }
        try:
            self.store.insert(TABLE_SETTLEMENTS, settlement)
        except ConflictError as e:
            raise ValidationException("Rumor already settled", field="claim_id", value=claim_id) from e
        except StoreError as e:
            logger.error("Error recording settlement of %s: %s", claim_id, e)
            return 0

        try:
            votes = [Vote.from_record(r) for r in self.store.select(TABLE_VOTES, {"claim_id": claim_id})]
        except StoreError as e:
            logger.error("Error fetching votes to settle %s: %s", claim_id, e)
            return 0

        settled = 0
        for vote in votes:
            try:
                self.ledger.record_outcome(vote.voter_public_key, vote.kind is resolution)
            except StoreError as e:
                logger.error("Error settling vote %s: %s", vote.id, e)
                continue
            settled += 1
        logger.info("Settled %d/%d votes on %s as %s", settled, len(votes), claim_id, resolution.value)
        return settled

    # -- Audit --------------------------------------------------------------

    def audit_claim(self, claim: Claim) -> bool:
        """Re-verify a stored claim's proof of work from its own fields."""
        payload = claim_payload(claim.content, claim.author_public_key, claim.parent_id, claim.pow_timestamp)
        return self.pow_engine.verify(ProofOfWork(payload, claim.pow_nonce, claim.pow_hash), self.difficulty)

    def audit_vote(self, vote: Vote) -> bool:
        """Re-verify a stored vote's proof of work from its own fields."""
        payload = vote_payload(vote.claim_id, vote.voter_public_key, vote.kind.value, vote.pow_timestamp)
        return self.pow_engine.verify(ProofOfWork(payload, vote.pow_nonce, vote.pow_hash), self.difficulty)
