"""Generated application and loan numbers."""

from datetime import datetime

from lamf_core.config import NumberingConfig
from lamf_core.store.base import DocumentStore


def _next_number(store: DocumentStore, prefix: str, width: int, now: datetime) -> str:
    # One counter per prefix and year, e.g. LAMF2026000001
    base = f"{prefix}{now.year}"
    return f"{base}{store.next_sequence(base):0{width}d}"


def next_application_number(
    store: DocumentStore, config: NumberingConfig, now: datetime
) -> str:
    """Return the next application number."""
    return _next_number(store, config.application_prefix, config.sequence_width, now)


def next_loan_number(store: DocumentStore, config: NumberingConfig, now: datetime) -> str:
    """Return the next loan number."""
    return _next_number(store, config.loan_prefix, config.sequence_width, now)
