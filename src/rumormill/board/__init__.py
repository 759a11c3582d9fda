"""Rumor board — posting, voting, listing and threads over a record store."""

from rumormill.board.forest import ClaimForest
from rumormill.board.service import (
    ClaimView,
    ListFilter,
    ListSort,
    RumorBoard,
    ThreadEntry,
)

__all__ = [
    "ClaimForest",
    "ClaimView",
    "ListFilter",
    "ListSort",
    "RumorBoard",
    "ThreadEntry",
]
