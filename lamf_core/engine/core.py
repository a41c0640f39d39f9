"""Engine assembly: one store, one publisher, the four services."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from lamf_core.config import LamfConfig
from lamf_core.engine.applications import ApplicationService
from lamf_core.engine.collateral import CollateralLedger
from lamf_core.engine.events import EventPublisher, EventSink
from lamf_core.engine.loans import LoanService
from lamf_core.engine.products import ProductCatalog
from lamf_core.store.base import DocumentStore
from lamf_core.store.memory import InMemoryStore


@dataclass
class LendingEngine:
    """Services wired to a shared store and event publisher."""

    store: DocumentStore
    events: EventPublisher
    products: ProductCatalog
    collateral: CollateralLedger
    loans: LoanService
    applications: ApplicationService

    @classmethod
    def create(
        cls,
        store: DocumentStore | None = None,
        config: LamfConfig | None = None,
        sink: EventSink | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> "LendingEngine":
        """Build an engine.

        Parameters
        ----------
        store : DocumentStore | None
            Backing store; a fresh ``InMemoryStore`` when omitted.
        config : LamfConfig | None
            Topic prefix and numbering settings.
        sink : EventSink | None
            Where lifecycle events go; ``None`` keeps them in-process.
        clock : Callable[[], datetime]
            Time source for every service.
        """
        config = config or LamfConfig()
        store = store or InMemoryStore()
        events = EventPublisher(sink=sink, topic_prefix=config.events.topic_prefix, clock=clock)

        products = ProductCatalog(store, clock=clock)
        collateral = CollateralLedger(store, events=events, clock=clock)
        loans = LoanService(
            store, collateral, events=events, numbering=config.numbering, clock=clock
        )
        applications = ApplicationService(
            store,
            products,
            collateral,
            loans,
            events=events,
            numbering=config.numbering,
            clock=clock,
        )
        return cls(
            store=store,
            events=events,
            products=products,
            collateral=collateral,
            loans=loans,
            applications=applications,
        )
