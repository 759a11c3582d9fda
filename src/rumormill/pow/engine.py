# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Proof-of-work gate for write actions.

Every post and vote must carry a nonce such that

    sha256(payload || ":" || decimal(nonce)).hexdigest()

starts with ``difficulty`` ASCII ``'0'`` characters.  At the default
difficulty of 3 that is a 1-in-4096 chance per attempt: milliseconds to
seconds on commodity hardware, a real cost for bulk automated spam.

Mining is a coroutine.  It yields to the event loop every
``yield_interval`` attempts so it never monopolizes a shared loop, and it
reports progress every ``progress_interval`` attempts.  Cancelling the task
abandons the search; nothing is returned until the full condition holds.

Verification always re-derives the digest from payload and nonce and never
trusts a submitted hash on its own.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_DIFFICULTY = 3
YIELD_INTERVAL = 100
PROGRESS_INTERVAL = 1000

ProgressCallback = Callable[[int], None]


@dataclass(frozen=True)
class ProofOfWork:
    """A mined (payload, nonce, hash) triple.

    Attributes:
        payload: Canonical bytes of the write action.
        nonce: The non-negative integer found by mining.
        hash: Lowercase 64-character hex SHA-256 digest.
    """

    payload: bytes
    nonce: int
    hash: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "payload": self.payload.decode("utf-8"),
            "nonce": self.nonce,
            "hash": self.hash,
        }


def compute_hash(payload: bytes, nonce: int) -> str:
    """Return ``hex(sha256(payload || ":" || decimal(nonce)))``."""
    return hashlib.sha256(payload + b":" + str(nonce).encode("ascii")).hexdigest()


def meets_difficulty(digest: str, difficulty: int) -> bool:
    """Check that a hex digest starts with ``difficulty`` zeros."""
    return digest.startswith("0" * difficulty)


class ProofOfWorkEngine:
    """Mines and verifies proofs of work.

    Args:
        yield_interval: Attempts between cooperative yields to the loop.
        progress_interval: Attempts between progress callbacks.
    """

    def __init__(
        self,
        yield_interval: int = YIELD_INTERVAL,
        progress_interval: int = PROGRESS_INTERVAL,
    ) -> None:
        if yield_interval < 1 or progress_interval < 1:
            raise ValueError("intervals must be positive")
        self.yield_interval = yield_interval
        self.progress_interval = progress_interval

    async def mine(
        self,
        payload: bytes,
        difficulty: int = DEFAULT_DIFFICULTY,
        on_progress: ProgressCallback | None = None,
    ) -> ProofOfWork:
        """Find the smallest nonce whose digest meets ``difficulty``.

        Args:
            payload: Canonical bytes of the write action.
            difficulty: Required leading zero hex digits.
            on_progress: Called with the attempt count every progress interval.

        Returns:
            The mined :class:`ProofOfWork`.
        """
        if difficulty < 0:
            raise ValueError("difficulty must be non-negative")

        prefix = "0" * difficulty
        nonce = 0
        while True:
            digest = compute_hash(payload, nonce)
            if digest.startswith(prefix):
                logger.debug("Mined difficulty %d after %d attempts", difficulty, nonce + 1)
                return ProofOfWork(payload=payload, nonce=nonce, hash=digest)

            nonce += 1

            if on_progress is not None and nonce % self.progress_interval == 0:
                on_progress(nonce)

            if nonce % self.yield_interval == 0:
                await asyncio.sleep(0)

    def verify(self, pow: ProofOfWork, difficulty: int = DEFAULT_DIFFICULTY) -> bool:
        """Re-derive the digest and check it against ``pow.hash`` and difficulty."""
        if difficulty < 0 or pow.nonce < 0:
            return False
        digest = compute_hash(pow.payload, pow.nonce)
        if digest != pow.hash:
            return False
        return meets_difficulty(digest, difficulty)
