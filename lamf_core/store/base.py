"""Keyed document store contract used by the engine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any

# Collection name -> attribute holding the record key
COLLECTION_KEYS = {
    "products": "product_id",
    "collaterals": "folio_number",
    "applications": "application_number",
    "loans": "loan_number",
}

MEMBERSHIP_TYPES = (set, frozenset, list, tuple)


def resolve_path(record: Any, path: str) -> Any:
    """Follow a dotted attribute path, returning None past a missing link."""
    value = record
    for part in path.split("."):
        if value is None:
            return None
        value = getattr(value, part)
    return value


def matches(record: Any, filter: dict[str, Any] | None) -> bool:
    """Check a record against an equality/membership filter.

    Values that are sets, lists or tuples match by membership, anything
    else by equality.
    """
    if not filter:
        return True
    for path, expected in filter.items():
        actual = resolve_path(record, path)
        if isinstance(expected, MEMBERSHIP_TYPES):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True


class DocumentStore(ABC):
    """Persistence contract for versioned entities.

    Every entity carries an integer ``version``. ``create`` sets it to 1
    and ``save`` only succeeds when the caller holds the current version,
    so a stale read-modify-write fails instead of overwriting a newer
    update. Reads hand out detached copies.
    """

    @abstractmethod
    def find_by_id(self, collection: str, key: str) -> Any | None:
        """Return the record stored under ``key``, or None."""

    @abstractmethod
    def find_one(self, collection: str, filter: dict[str, Any]) -> Any | None:
        """Return the first record matching ``filter``, or None."""

    @abstractmethod
    def find(self, collection: str, filter: dict[str, Any] | None = None) -> list[Any]:
        """Return every record matching ``filter`` in insertion order."""

    @abstractmethod
    def create(self, collection: str, entity: Any) -> Any:
        """Insert a new record; fails with DuplicateKeyError if the key exists."""

    @abstractmethod
    def save(self, collection: str, entity: Any) -> Any:
        """Replace an existing record after a version check."""

    @abstractmethod
    def update_many(self, collection: str, filter: dict[str, Any], patch: dict[str, Any]) -> int:
        """Apply ``patch`` to every matching record and return the count."""

    @abstractmethod
    def delete(self, collection: str, key: str) -> bool:
        """Remove a record; returns False if it did not exist."""

    @abstractmethod
    def next_sequence(self, name: str) -> int:
        """Return the next value of a named counter, starting at 1."""

    @abstractmethod
    def transaction(self) -> AbstractContextManager[DocumentStore]:
        """Group writes so they commit together or not at all."""
