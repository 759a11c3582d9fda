#!/usr/bin/env python3
"""Example 01: Local board - post, vote, settle and list in memory.

This example runs the full write and read path without a hosted store:
1. Three pseudonymous identities are created
2. One posts a rumor, the others verify or dispute it (each write mines PoW)
3. Rumors are settled (once each), shifting voter reputations
4. A follow-up rumor shows reputation-weighted trust

Requirements:
    - `pip install rumormill` or `pip install -e .` from the repo root

Usage:
    python examples/01_local_board.py
"""

from __future__ import annotations

import asyncio

from rumormill.board import RumorBoard
from rumormill.core import CoreSettings
from rumormill.identity import IdentityManager, InMemoryIdentityStore
from rumormill.storage import InMemoryRecordStore


def new_board(store: InMemoryRecordStore, settings: CoreSettings, ledger=None) -> RumorBoard:
    identity = IdentityManager(InMemoryIdentityStore()).get_or_create_identity()
    return RumorBoard(store, identity, settings=settings, ledger=ledger)


def show(board: RumorBoard) -> None:
    for view in board.list_claims(sort="hottest"):
        print(
            f"  {view.trust.percentage:5.1f}% [{view.band}] "
            f"+{view.trust.verify_count}/-{view.trust.dispute_count}  {view.claim.content}"
        )


async def main() -> None:
    print("=" * 60)
    print("  rumormill Example 01: Local board")
    print("=" * 60)

    settings = CoreSettings(_env_file=None, pow_difficulty=2)
    store = InMemoryRecordStore()
    alice = new_board(store, settings)
    bob = new_board(store, settings, ledger=alice.ledger)
    carol = new_board(store, settings, ledger=alice.ledger)
    print(f"\nParticipants: {alice.identity.handle}, {bob.identity.handle}, {carol.identity.handle}")

    first = await alice.post_claim("The campus shuttle stops running at 9pm now")
    await bob.cast_vote(first.id, "verify")
    await carol.cast_vote(first.id, "dispute")
    print(f"\nPosted {first.id[:8]} (nonce {first.pow_nonce}), one verify and one dispute:")
    show(alice)

    # Each rumor settles once; a few false ones give carol a track record
    alice.settle_claim(first.id, "dispute")
    for n in range(4):
        extra = await alice.post_claim(f"Overheard: parking fees double next month ({n + 1})")
        await bob.cast_vote(extra.id, "verify")
        await carol.cast_vote(extra.id, "dispute")
        alice.settle_claim(extra.id, "dispute")
    print(f"\nAfter settling: bob x{alice.ledger.get(bob.identity.public_key_hex).factor:.2f}, "
          f"carol x{alice.ledger.get(carol.identity.public_key_hex).factor:.2f}")

    second = await alice.post_claim("The library adds a 24h study room next term")
    await bob.cast_vote(second.id, "verify")
    await carol.cast_vote(second.id, "dispute")
    print("\nSame votes on a new rumor, now weighted by reputation:")
    show(alice)


if __name__ == "__main__":
    asyncio.run(main())
