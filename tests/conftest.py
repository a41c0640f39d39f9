"""Pytest configuration and fixtures."""

from datetime import datetime
from decimal import Decimal
from itertools import count
from typing import Callable
from unittest.mock import MagicMock

import pytest

from lamf_core.engine import LendingEngine
from lamf_core.models import (
    Applicant,
    ApplicationRequest,
    ApplicationStatus,
    Collateral,
    Loan,
    LoanApplication,
    LoanProduct,
    SchemeType,
)
from lamf_core.scenarios import SimulationClock

FIXED_NOW = datetime(2025, 1, 15, 10, 30)


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def clock() -> SimulationClock:
    """Settable clock starting at FIXED_NOW."""
    return SimulationClock(FIXED_NOW)


@pytest.fixture
def sink() -> MagicMock:
    """Event sink recording every send."""
    return MagicMock()


@pytest.fixture
def engine(clock: SimulationClock, sink: MagicMock) -> LendingEngine:
    """Engine over a fresh in-memory store."""
    return LendingEngine.create(clock=clock, sink=sink)


@pytest.fixture
def make_product() -> Callable[..., LoanProduct]:
    """Build an unregistered product; defaults match the reference scenario."""

    def _make(**overrides) -> LoanProduct:
        fields = {
            "product_id": "LAMF-EQ",
            "name": "Equity Fund Credit Line",
            "description": "Loan against equity mutual fund units",
            "interest_rate": Decimal("12"),
            "min_amount": Decimal("50000"),
            "max_amount": Decimal("5000000"),
            "min_tenure": 6,
            "max_tenure": 36,
            "max_ltv": Decimal("50"),
            "processing_fee": Decimal("1"),
        }
        fields.update(overrides)
        return LoanProduct(**fields)

    return _make


@pytest.fixture
def product(engine: LendingEngine, make_product: Callable[..., LoanProduct]) -> LoanProduct:
    """Registered reference product."""
    return engine.products.register(make_product())


@pytest.fixture
def make_collateral() -> Callable[..., Collateral]:
    """Build an unregistered folio worth units x NAV (default 1,200,000)."""
    folios = count(1)

    def _make(folio_number: str | None = None, units="12000", nav="100", **overrides) -> Collateral:
        fields = {
            "folio_number": folio_number or f"1234567/{next(folios):02d}",
            "fund_name": "Axis Bluechip Fund",
            "amc_name": "Axis Mutual Fund",
            "scheme_type": SchemeType.EQUITY,
            "isin": "INF846K01DP8",
            "units": Decimal(units),
            "nav_per_unit": Decimal(nav),
            "investor_name": "Asha Rao",
            "investor_pan": "ABCDE1234F",
        }
        fields.update(overrides)
        return Collateral(**fields)

    return _make


@pytest.fixture
def register_collateral(
    engine: LendingEngine, make_collateral: Callable[..., Collateral]
) -> Callable[..., Collateral]:
    """Register a folio and return the stored record."""

    def _register(*args, **kwargs) -> Collateral:
        return engine.collateral.register(make_collateral(*args, **kwargs))

    return _register


@pytest.fixture
def applicant() -> Applicant:
    """Sample applicant."""
    return Applicant(
        name="Asha Rao",
        email="Asha.Rao@Example.com",
        phone="+91 98450 12345",
        pan="abcde1234f",
    )


@pytest.fixture
def make_request(applicant: Applicant, product: LoanProduct) -> Callable[..., ApplicationRequest]:
    """Build an application request against the reference product."""

    def _make(folios: list[str], amount="500000", tenure: int = 24, **overrides) -> ApplicationRequest:
        fields = {
            "applicant": applicant,
            "product_id": product.product_id,
            "requested_amount": Decimal(amount),
            "tenure": tenure,
            "collateral_folios": folios,
        }
        fields.update(overrides)
        return ApplicationRequest(**fields)

    return _make


@pytest.fixture
def submitted_application(
    engine: LendingEngine,
    register_collateral: Callable[..., Collateral],
    make_request: Callable[..., ApplicationRequest],
) -> LoanApplication:
    """Reference application: 500,000 over 24 months against 1,200,000."""
    collateral = register_collateral()
    return engine.applications.create_application(make_request([collateral.folio_number]))


@pytest.fixture
def approved_application(
    engine: LendingEngine, submitted_application: LoanApplication
) -> LoanApplication:
    """Reference application taken through review and approval."""
    number = submitted_application.application_number
    engine.applications.transition(number, ApplicationStatus.UNDER_REVIEW, reviewed_by="ops")
    return engine.applications.transition(number, ApplicationStatus.APPROVED)


@pytest.fixture
def loan(engine: LendingEngine, approved_application: LoanApplication) -> Loan:
    """Loan disbursed from the reference application."""
    application = engine.applications.transition(
        approved_application.application_number, ApplicationStatus.DISBURSED
    )
    return engine.loans.get(application.loan_number)
