"""Lending engine: amortization, collateral, applications and loans."""

from lamf_core.engine.amortization import calculate_emi, generate_schedule, total_interest
from lamf_core.engine.applications import ApplicationService, can_transition
from lamf_core.engine.collateral import CollateralLedger, NavUpdateResult
from lamf_core.engine.core import LendingEngine
from lamf_core.engine.events import EventPublisher, PublisherStats
from lamf_core.engine.loans import LoanService, OverdueSweepResult
from lamf_core.engine.products import ProductCatalog

__all__ = [
    "ApplicationService",
    "CollateralLedger",
    "EventPublisher",
    "LendingEngine",
    "LoanService",
    "NavUpdateResult",
    "OverdueSweepResult",
    "ProductCatalog",
    "PublisherStats",
    "calculate_emi",
    "can_transition",
    "generate_schedule",
    "total_interest",
]
