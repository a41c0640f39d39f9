"""Persistence contract and the in-memory implementation."""

from lamf_core.store.base import COLLECTION_KEYS, DocumentStore
from lamf_core.store.memory import InMemoryStore

__all__ = ["COLLECTION_KEYS", "DocumentStore", "InMemoryStore"]
