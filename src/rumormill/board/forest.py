"""Claim forest — parent references plus a parent → children index.

Claims never embed their children.  Each claim points at its parent and the
forest keeps an index from parent id to child ids, so soft-deleting a claim
touches only that claim and leaves its descendants where they are.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from ..core.models import Claim


class ClaimForest:
    """In-memory index over a set of claims.

    Claims whose parent is not in the forest (never loaded, or filtered out
    as deleted) are treated as roots.
    """

    def __init__(self, claims: Iterable[Claim] = ()) -> None:
        self._claims: dict[str, Claim] = {}
        self._children: dict[str, list[str]] = {}
        for claim in claims:
            self.add(claim)

    def __contains__(self, claim_id: object) -> bool:
        return claim_id in self._claims

    def __len__(self) -> int:
        return len(self._claims)

    def get(self, claim_id: str) -> Claim | None:
        return self._claims.get(claim_id)

    def ancestors(self, claim_id: str) -> list[str]:
        """Parent ids from nearest to furthest, as far as the forest knows."""
        chain: list[str] = []
        seen = {claim_id}
        claim = self._claims.get(claim_id)
        while claim is not None and claim.parent_id is not None:
            parent_id = claim.parent_id
            if parent_id in seen:
                break
            chain.append(parent_id)
            seen.add(parent_id)
            claim = self._claims.get(parent_id)
        return chain

    def would_cycle(self, claim_id: str, parent_id: str | None) -> bool:
        """True if giving ``claim_id`` this parent makes it its own ancestor."""
        if parent_id is None:
            return False
        if parent_id == claim_id:
            return True
        return claim_id in self.ancestors(parent_id)

    def add(self, claim: Claim) -> None:
        """Index a claim.

        Raises:
            ValueError: If the id is already indexed or the parent link cycles.
        """
        if claim.id in self._claims:
            raise ValueError(f"Claim {claim.id} already indexed")
        if self.would_cycle(claim.id, claim.parent_id):
            raise ValueError(f"Claim {claim.id} cannot be its own ancestor")
        self._claims[claim.id] = claim
        if claim.parent_id is not None:
            self._children.setdefault(claim.parent_id, []).append(claim.id)

    def children(self, claim_id: str, include_deleted: bool = False) -> list[Claim]:
        kids = (self._claims[cid] for cid in self._children.get(claim_id, ()))
        return [c for c in kids if include_deleted or not c.is_deleted]

    def child_count(self, claim_id: str) -> int:
        """Number of direct, non-deleted children."""
        return len(self.children(claim_id))

    def roots(self) -> list[Claim]:
        return [
            c
            for c in self._claims.values()
            if not c.is_deleted and (c.parent_id is None or c.parent_id not in self._claims)
        ]

    def walk(self, root_id: str) -> Iterator[tuple[Claim, int]]:
        """Depth-first ``(claim, depth)`` pairs below and including ``root_id``.

        Deleted claims are skipped; their children are still visited.
        """
        root = self._claims.get(root_id)
        if root is None:
            return
        stack: list[tuple[Claim, int]] = [(root, 0)]
        while stack:
            claim, depth = stack.pop()
            if not claim.is_deleted:
                yield claim, depth
            kids = self.children(claim.id, include_deleted=True)
            for child in reversed(kids):
                stack.append((child, depth + 1))
