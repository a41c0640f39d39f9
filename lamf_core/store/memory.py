"""In-memory document store with optimistic versioning."""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from lamf_core.exceptions import (
    DuplicateKeyError,
    EntityNotFoundError,
    StaleEntityError,
    StorageError,
)
from lamf_core.store.base import COLLECTION_KEYS, DocumentStore, matches

logger = logging.getLogger(__name__)

_MISSING = object()


class InMemoryStore(DocumentStore):
    """Thread-safe store keeping deep copies of every record.

    A single re-entrant lock serializes access. ``transaction()`` holds
    that lock for the whole block and journals the previous value of each
    key it touches, restoring them if the block raises.
    """

    def __init__(self, collections: dict[str, str] | None = None) -> None:
        self._keys = dict(collections or COLLECTION_KEYS)
        self._data: dict[str, dict[str, Any]] = {name: {} for name in self._keys}
        self._sequences: dict[str, int] = {}
        self._lock = threading.RLock()
        self._journal: dict[tuple[str, str], Any] | None = None

    def _records(self, collection: str) -> dict[str, Any]:
        try:
            return self._data[collection]
        except KeyError:
            raise StorageError(f"Unknown collection '{collection}'") from None

    def key_of(self, collection: str, entity: Any) -> str:
        """Return the key of ``entity`` within ``collection``."""
        return getattr(entity, self._keys[collection])

    def find_by_id(self, collection: str, key: str) -> Any | None:
        with self._lock:
            record = self._records(collection).get(key)
            return copy.deepcopy(record) if record is not None else None

    def find_one(self, collection: str, filter: dict[str, Any]) -> Any | None:
        with self._lock:
            for record in self._records(collection).values():
                if matches(record, filter):
                    return copy.deepcopy(record)
        return None

    def find(self, collection: str, filter: dict[str, Any] | None = None) -> list[Any]:
        with self._lock:
            return [
                copy.deepcopy(record)
                for record in self._records(collection).values()
                if matches(record, filter)
            ]

    def create(self, collection: str, entity: Any) -> Any:
        with self._lock:
            records = self._records(collection)
            key = self.key_of(collection, entity)
            if key in records:
                raise DuplicateKeyError(f"{collection} record {key} already exists")
            entity.version = 1
            self._write(collection, key, copy.deepcopy(entity))
            return entity

    def save(self, collection: str, entity: Any) -> Any:
        with self._lock:
            records = self._records(collection)
            key = self.key_of(collection, entity)
            current = records.get(key)
            if current is None:
                raise EntityNotFoundError(f"{collection} record {key} not found")
            if current.version != entity.version:
                raise StaleEntityError(
                    f"{collection} record {key} was modified concurrently "
                    f"(held version {entity.version}, stored version {current.version})"
                )
            entity.version += 1
            self._write(collection, key, copy.deepcopy(entity))
            return entity

    def update_many(self, collection: str, filter: dict[str, Any], patch: dict[str, Any]) -> int:
        with self._lock:
            count = 0
            for key, record in list(self._records(collection).items()):
                if not matches(record, filter):
                    continue
                updated = copy.deepcopy(record)
                for field_name, value in patch.items():
                    setattr(updated, field_name, value)
                updated.version += 1
                self._write(collection, key, updated)
                count += 1
            return count

    def delete(self, collection: str, key: str) -> bool:
        with self._lock:
            if key not in self._records(collection):
                return False
            self._write(collection, key, _MISSING)
            return True

    def next_sequence(self, name: str) -> int:
        with self._lock:
            value = self._sequences.get(name, 0) + 1
            self._sequences[name] = value
            return value

    @contextmanager
    def transaction(self) -> Iterator[InMemoryStore]:
        with self._lock:
            if self._journal is not None:
                # Nested block joins the outer transaction
                yield self
                return

            self._journal = {}
            try:
                yield self
            except BaseException:
                self._rollback()
                raise
            finally:
                self._journal = None

    def summary(self) -> dict[str, int]:
        """Return record counts per collection."""
        with self._lock:
            return {name: len(records) for name, records in self._data.items()}

    def _write(self, collection: str, key: str, record: Any) -> None:
        records = self._data[collection]
        if self._journal is not None and (collection, key) not in self._journal:
            self._journal[(collection, key)] = records.get(key, _MISSING)

        if record is _MISSING:
            records.pop(key, None)
        else:
            records[key] = record

    def _rollback(self) -> None:
        if self._journal is None:
            raise StorageError("Rollback requested outside a transaction")
        for (collection, key), previous in self._journal.items():
            if previous is _MISSING:
                self._data[collection].pop(key, None)
            else:
                self._data[collection][key] = previous
        logger.warning("Transaction rolled back %d write(s)", len(self._journal))
