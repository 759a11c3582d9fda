"""Canonical payload serialization for write actions.

The payload mined for a write must be reproducible byte for byte from the
stored record, so that anyone can re-verify the proof later.  Payloads are
compact UTF-8 JSON with a fixed field order per action, the same bytes a
browser client gets from ``JSON.stringify`` on an object literal:

    claim   {"content", "publicKey", "parentId", "timestamp"}
    vote    {"rumorId", "publicKey", "type", "timestamp"}

Every payload carries the actor's public key and an integer millisecond
timestamp.
"""

from __future__ import annotations

import json
import time
from typing import Any


def now_ms() -> int:
    """Current wall-clock time in integer milliseconds."""
    return int(time.time() * 1000)


def canonical_bytes(fields: dict[str, Any]) -> bytes:
    """Serialize ``fields`` compactly, keeping their insertion order."""
    return json.dumps(fields, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def claim_payload(content: str, public_key: str, parent_id: str | None, timestamp: int) -> bytes:
    """Payload mined before posting a claim."""
    return canonical_bytes(
        {
            "content": content,
            "publicKey": public_key,
            "parentId": parent_id,
            "timestamp": timestamp,
        }
    )


def vote_payload(claim_id: str, public_key: str, kind: str, timestamp: int) -> bytes:
    """Payload mined before casting a vote."""
    return canonical_bytes(
        {
            "rumorId": claim_id,
            "publicKey": public_key,
            "type": kind,
            "timestamp": timestamp,
        }
    )
