"""Portfolio scenario: drive synthetic borrowers through the full loan lifecycle."""

from __future__ import annotations

import logging
import random
from datetime import datetime
from decimal import ROUND_DOWN, Decimal
from typing import Any

from dateutil.relativedelta import relativedelta

from lamf_core.config import LamfConfig
from lamf_core.engine.core import LendingEngine
from lamf_core.engine.events import EventSink
from lamf_core.exceptions import LoanEngineError
from lamf_core.generators import ApplicantGenerator, CollateralGenerator, ProductGenerator
from lamf_core.models.application import ApplicationRequest, LoanApplication
from lamf_core.models.collateral import Collateral
from lamf_core.models.enums import ApplicationStatus, InstallmentStatus, LienStatus, LoanStatus
from lamf_core.models.product import LoanProduct
from lamf_core.store.memory import InMemoryStore

logger = logging.getLogger(__name__)

DEFAULT_START = datetime(2024, 1, 1, 10, 0)


class SimulationClock:
    """Settable clock handed to the engine in place of ``datetime.now``."""

    def __init__(self, start: datetime) -> None:
        self.start = start
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance_to_month(self, month: int) -> datetime:
        self.current = self.start + relativedelta(months=month)
        return self.current


class PortfolioScenario:
    """Generate a loan-against-mutual-funds book with repayment behaviour.

    This scenario:
    - Registers a product catalog and each applicant's folios
    - Submits one application per applicant against their folios
    - Takes ``disbursal_rate`` of them through review, approval and
      disbursal; rejects or leaves the rest in review
    - Walks the clock forward month by month, paying due installments
      with probability ``on_time_rate``, repricing NAVs and running the
      overdue sweep
    """

    def __init__(
        self,
        num_applicants: int = 100,
        disbursal_rate: float = 0.6,
        months_elapsed: int = 6,
        on_time_rate: float = 0.9,
        seed: int | None = None,
        *,
        config: LamfConfig | None = None,
        sink: EventSink | None = None,
        start: datetime = DEFAULT_START,
    ) -> None:
        """Initialize portfolio scenario.

        Parameters
        ----------
        num_applicants : int
            Number of borrowers to generate.
        disbursal_rate : float
            Share of applications that reach disbursal (0.0 to 1.0).
        months_elapsed : int
            Months of repayment history to simulate after disbursal.
        on_time_rate : float
            Probability that a due installment is paid that month.
        seed : int | None
            Random seed for reproducibility.
        config : LamfConfig | None
            Topic prefix and numbering settings.
        sink : EventSink | None
            Where lifecycle events are published.
        start : datetime
            Simulated date applications are submitted on.
        """
        for name, rate in (("disbursal_rate", disbursal_rate), ("on_time_rate", on_time_rate)):
            if not 0.0 <= rate <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1, got {rate}")
        if num_applicants < 0 or months_elapsed < 0:
            raise ValueError("num_applicants and months_elapsed cannot be negative")

        self.num_applicants = num_applicants
        self.disbursal_rate = disbursal_rate
        self.months_elapsed = months_elapsed
        self.on_time_rate = on_time_rate
        self.seed = seed

        if seed is not None:
            random.seed(seed)

        self.clock = SimulationClock(start)
        self.store = InMemoryStore()
        self.engine = LendingEngine.create(
            store=self.store, config=config, sink=sink, clock=self.clock
        )
        self._applicant_gen = ApplicantGenerator(seed=seed)
        self._collateral_gen = CollateralGenerator(seed=seed)
        self._product_gen = ProductGenerator(seed=seed)

    def generate(self) -> InMemoryStore:
        """Run the scenario.

        Returns
        -------
        InMemoryStore
            Store holding products, collateral, applications and loans.
        """
        logger.info(
            "Starting portfolio scenario: %d applicants, %.0f%% disbursed, %d months",
            self.num_applicants,
            self.disbursal_rate * 100,
            self.months_elapsed,
        )

        products = [
            self.engine.products.register(product)
            for product in self._product_gen.generate_catalog()
        ]

        for _ in range(self.num_applicants):
            application = self._apply(random.choice(products))
            if application is not None:
                self._decide(application)

        for month in range(1, self.months_elapsed + 1):
            self.clock.advance_to_month(month)
            self._collect_payments()
            self._reprice_collateral()
            self.engine.loans.mark_overdue()

        logger.info("Portfolio scenario complete: %s", self.summary())
        return self.store

    def summary(self) -> dict[str, Any]:
        """Counts of applications and loans by status."""
        applications: dict[str, int] = {}
        for application in self.store.find("applications"):
            applications[application.status.value] = applications.get(application.status.value, 0) + 1
        loans: dict[str, int] = {}
        for loan in self.store.find("loans"):
            loans[loan.status.value] = loans.get(loan.status.value, 0) + 1
        return {
            "collaterals": len(self.store.find("collaterals")),
            "applications": applications,
            "loans": loans,
            "events_published": self.engine.events.stats.published,
        }

    def _apply(self, product: LoanProduct) -> LoanApplication | None:
        applicant = self._applicant_gen.generate()
        folios: list[Collateral] = []
        for _ in range(random.randint(1, 3)):
            collateral = self._collateral_gen.generate(
                investor_name=applicant.name, investor_pan=applicant.pan
            )
            folios.append(self.engine.collateral.register(collateral))

        total = sum(c.current_value for c in folios)
        ltv_share = Decimal(str(round(random.uniform(0.3, 0.95), 2))) * product.max_ltv / 100
        amount = min(
            (total * ltv_share / 1000).to_integral_value(rounding=ROUND_DOWN) * 1000,
            product.max_amount,
        )
        if amount < product.min_amount:
            logger.debug("Skipping %s: holdings worth %s too small for %s", applicant.name, total, product.name)
            return None

        request = ApplicationRequest(
            applicant=applicant,
            product_id=product.product_id,
            requested_amount=amount,
            tenure=random.randint(product.min_tenure, product.max_tenure),
            collateral_folios=[c.folio_number for c in folios],
        )
        try:
            return self.engine.applications.create_application(request)
        except LoanEngineError as exc:
            logger.warning("Application for %s not created: %s", applicant.name, exc)
            return None

    def _decide(self, application: LoanApplication) -> None:
        service = self.engine.applications
        number = application.application_number
        reviewer = self._applicant_gen.fake.first_name()

        if random.random() < self.disbursal_rate:
            service.transition(number, ApplicationStatus.UNDER_REVIEW, reviewed_by=reviewer)
            service.transition(number, ApplicationStatus.APPROVED)
            service.transition(number, ApplicationStatus.DISBURSED)
        elif random.random() < 0.5:
            service.transition(number, ApplicationStatus.REJECTED, remarks="Credit policy")
        else:
            service.transition(number, ApplicationStatus.UNDER_REVIEW, reviewed_by=reviewer)

    def _collect_payments(self) -> None:
        today = self.clock().date()
        loans = self.engine.loans
        for loan in self.store.find("loans", {"status": {LoanStatus.ACTIVE, LoanStatus.OVERDUE}}):
            for emi in loan.emi_schedule:
                if emi.due_date > today or emi.status == InstallmentStatus.PAID:
                    continue
                if random.random() >= self.on_time_rate:
                    continue
                updated = loans.record_payment(
                    loan.loan_number,
                    emi.emi_number,
                    emi.total_amount,
                    reference=f"NACH-{self._collateral_gen.fake.numerify('##########')}",
                    payment_date=today if emi.status == InstallmentStatus.OVERDUE else emi.due_date,
                )
                if updated.is_closed:
                    self.engine.applications.transition(
                        updated.application_number, ApplicationStatus.CLOSED
                    )
                    break

    def _reprice_collateral(self) -> None:
        pledged = self.store.find("collaterals", {"lien_status": LienStatus.MARKED})
        prices = {c.folio_number: self._collateral_gen.nav_move(c.nav_per_unit) for c in pledged}
        result = self.engine.collateral.bulk_update_nav(prices)
        logger.debug("Repriced %d of %d pledged folios", result.updated, result.requested)
