# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Output formatting for CLI commands.

Commands print either human-readable text or, with ``--json``, a JSON
document on stdout.  Errors always go to stderr.
"""

from __future__ import annotations

import json
import sys
from typing import Any

BAND_MARKERS = {
    "high": "✅",
    "medium": "⚖️ ",
    "low": "⚠️ ",
}


def output_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def output_error(message: str) -> None:
    """Print error message to stderr."""
    print(f"Error: {message}", file=sys.stderr)


def format_claim_line(view: dict[str, Any], indent: int = 0) -> str:
    """One-line summary of a listed claim (as produced by ``ClaimView.to_dict``)."""
    marker = BAND_MARKERS.get(view["trust_band"], "")
    vote = f" [you: {view['user_vote']}]" if view.get("user_vote") else ""
    replies = f" 💬{view['children_count']}" if view.get("children_count") else ""
    content = view["content"].replace("\n", " ")
    if len(content) > 72:
        content = content[:69] + "..."
    pad = "  " * indent
    return (
        f"{pad}{marker} {view['trust_percentage']:5.1f}% "
        f"(+{view['verify_count']}/-{view['dispute_count']}) "
        f"{view['id'][:8]} {view['author']}: {content}{replies}{vote}"
    )


class MiningProgress:
    """Progress callback that redraws an attempt counter on stderr."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled and sys.stderr.isatty()
        self.attempts = 0

    def __call__(self, attempts: int) -> None:
        self.attempts = attempts
        if self.enabled:
            print(f"\r⛏️  Mining... {attempts:,} attempts", end="", file=sys.stderr, flush=True)

    def done(self) -> None:
        if self.enabled and self.attempts:
            print(file=sys.stderr)
