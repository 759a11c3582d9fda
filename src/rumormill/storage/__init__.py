"""Record store backends for rumormill."""

from rumormill.storage.backend import (
    UNIQUE_KEYS,
    InMemoryRecordStore,
    RecordStore,
)
from rumormill.storage.postgrest import PostgrestStore

__all__ = [
    "UNIQUE_KEYS",
    "InMemoryRecordStore",
    "PostgrestStore",
    "RecordStore",
]
