"""Record store abstraction.

The core needs exactly four operations from its persistence collaborator:

- ``insert(table, record)`` -> stored record, or :class:`ConflictError`
- ``select(table, filters, order)`` -> list of records
- ``update(table, filters, patch)`` -> number of records matched
- ``count(table, filters)`` -> int

Filters are equality maps; a ``None`` value matches a null field.  ``order``
is a ``(field, descending)`` pair.

Supported backends:
- Memory (tests, single-process use)
- PostgREST-compatible HTTP endpoint (see :mod:`rumormill.storage.postgrest`)
"""

from __future__ import annotations

import copy
import threading
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime
from typing import Any

from ..core.exceptions import ConflictError, StoreError
from ..core.models import (
    TABLE_CLAIMS,
    TABLE_REPUTATION,
    TABLE_SETTLEMENTS,
    TABLE_TRUST,
    TABLE_VOTES,
    utcnow,
)

Record = dict[str, Any]
Filters = dict[str, Any]
Order = tuple[str, bool]

# Unique keys enforced by every backend
UNIQUE_KEYS: dict[str, tuple[str, ...]] = {
    TABLE_CLAIMS: ("id",),
    TABLE_VOTES: ("claim_id", "voter_public_key"),
    TABLE_REPUTATION: ("public_key",),
    TABLE_TRUST: ("claim_id",),
    TABLE_SETTLEMENTS: ("claim_id",),
}

# Tables whose records get a generated id / created_at on insert
GENERATED_FIELDS: dict[str, tuple[str, ...]] = {
    TABLE_CLAIMS: ("id", "created_at"),
    TABLE_VOTES: ("id", "created_at"),
    TABLE_REPUTATION: ("updated_at",),
    TABLE_TRUST: ("updated_at",),
    TABLE_SETTLEMENTS: ("settled_at",),
}


class RecordStore(ABC):
    """Abstract base class for record stores."""

    @abstractmethod
    def insert(self, table: str, record: Record) -> Record:
        """Insert a record and return it as stored.

        Raises:
            ConflictError: If the record collides on the table's unique key.
            StoreError: On any other failure.
        """

    @abstractmethod
    def select(self, table: str, filters: Filters | None = None, order: Order | None = None) -> list[Record]:
        """Return all records matching ``filters``, optionally ordered."""

    @abstractmethod
    def update(self, table: str, filters: Filters, patch: Record) -> int:
        """Apply ``patch`` to every record matching ``filters``.

        Returns the number of records matched, so a filter that includes the
        previously read value of a field acts as a compare-and-set.
        """

    @abstractmethod
    def count(self, table: str, filters: Filters | None = None) -> int:
        """Count records matching ``filters``."""

    def close(self) -> None:  # noqa: B027
        """Release backend resources."""


def _matches(record: Record, filters: Filters | None) -> bool:
    if not filters:
        return True
    for key, expected in filters.items():
        value = record.get(key)
        if expected is None:
            if value is not None:
                return False
        elif value != expected:
            return False
    return True


class InMemoryRecordStore(RecordStore):
    """Thread-safe in-memory record store.

    Enforces :data:`UNIQUE_KEYS` atomically, so concurrent duplicate inserts
    leave exactly one record.  Records are copied on the way in and out.

    Args:
        clock: Source of ``created_at``/``updated_at`` timestamps.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._tables: dict[str, list[Record]] = {}
        self._lock = threading.Lock()
        self._clock = clock or utcnow

    def _rows(self, table: str) -> list[Record]:
        return self._tables.setdefault(table, [])

    def insert(self, table: str, record: Record) -> Record:
        row = copy.deepcopy(record)
        for name in GENERATED_FIELDS.get(table, ()):
            if row.get(name) is None:
                row[name] = str(uuid.uuid4()) if name == "id" else self._clock()

        with self._lock:
            rows = self._rows(table)
            unique = UNIQUE_KEYS.get(table)
            if unique:
                key = {name: row.get(name) for name in unique}
                if any(all(r.get(k) == v for k, v in key.items()) for r in rows):
                    raise ConflictError(f"Duplicate key in {table}", table=table, key=key)
            rows.append(row)
            return copy.deepcopy(row)

    def select(self, table: str, filters: Filters | None = None, order: Order | None = None) -> list[Record]:
        with self._lock:
            rows = [copy.deepcopy(r) for r in self._rows(table) if _matches(r, filters)]
        if order is not None:
            field_name, descending = order
            try:
                rows.sort(key=lambda r: r.get(field_name), reverse=descending)
            except TypeError as e:
                raise StoreError(f"Cannot order {table} by {field_name}: {e}", table=table) from e
        return rows

    def update(self, table: str, filters: Filters, patch: Record) -> int:
        matched = 0
        with self._lock:
            for row in self._rows(table):
                if _matches(row, filters):
                    row.update(copy.deepcopy(patch))
                    matched += 1
        return matched

    def count(self, table: str, filters: Filters | None = None) -> int:
        with self._lock:
            return sum(1 for r in self._rows(table) if _matches(r, filters))
