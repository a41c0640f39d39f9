"""Loan application workflow.

Status flow::

    draft -> submitted -> under_review -> approved -> disbursed -> closed
                 |              |             |
                 +--------------+-------------+--> rejected

Submitting reserves the requested folios; rejection releases them and
disbursal hands them to the new loan.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Any

from lamf_core.config import NumberingConfig
from lamf_core.engine.collateral import PAN_PATTERN, CollateralLedger
from lamf_core.engine.events import EventPublisher
from lamf_core.engine.loans import LoanService
from lamf_core.engine.money import ZERO, percent_of, quantize_money, to_decimal
from lamf_core.engine.numbering import next_application_number
from lamf_core.engine.products import ProductCatalog, check_product_limits
from lamf_core.exceptions import (
    EntityNotFoundError,
    InvalidEntityStateError,
    InvalidOrPledgedCollateralError,
    InvalidTransitionError,
    LtvExceededError,
    ProductInactiveError,
    ValidationError,
)
from lamf_core.models.application import Applicant, ApplicationRequest, LoanApplication
from lamf_core.models.collateral import Collateral
from lamf_core.models.enums import ApplicationStatus, LienHolder, LienStatus
from lamf_core.models.product import LoanProduct
from lamf_core.store.base import DocumentStore

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")

TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    ApplicationStatus.DRAFT: frozenset({ApplicationStatus.SUBMITTED}),
    ApplicationStatus.SUBMITTED: frozenset(
        {ApplicationStatus.UNDER_REVIEW, ApplicationStatus.REJECTED}
    ),
    ApplicationStatus.UNDER_REVIEW: frozenset(
        {ApplicationStatus.APPROVED, ApplicationStatus.REJECTED}
    ),
    ApplicationStatus.APPROVED: frozenset(
        {ApplicationStatus.DISBURSED, ApplicationStatus.REJECTED}
    ),
    ApplicationStatus.REJECTED: frozenset(),
    ApplicationStatus.DISBURSED: frozenset({ApplicationStatus.CLOSED}),
    ApplicationStatus.CLOSED: frozenset(),
}

EDITABLE_STATUSES = frozenset({ApplicationStatus.DRAFT, ApplicationStatus.SUBMITTED})


def can_transition(current: ApplicationStatus, target: ApplicationStatus) -> bool:
    return target in TRANSITIONS[current]


def validate_applicant(applicant: Applicant) -> Applicant:
    """Normalize and validate applicant contact and tax details."""
    applicant.name = (applicant.name or "").strip()
    if not applicant.name:
        raise ValidationError("Applicant name is required")
    applicant.email = (applicant.email or "").strip().lower()
    if not EMAIL_PATTERN.match(applicant.email):
        raise ValidationError(f"Invalid email format: {applicant.email}")
    applicant.phone = (applicant.phone or "").strip()
    if not applicant.phone:
        raise ValidationError("Phone number is required")
    applicant.pan = (applicant.pan or "").strip().upper()
    if not PAN_PATTERN.match(applicant.pan):
        raise ValidationError(f"Invalid PAN format: {applicant.pan}")
    return applicant


def _validate_terms(amount: Any, tenure: int) -> Decimal:
    requested = to_decimal(amount, "requested amount")
    if requested < 0:
        raise ValidationError("Amount cannot be negative")
    if tenure < 1:
        raise ValidationError("Tenure must be at least 1 month")
    return requested


class ApplicationService:
    """Drive applications through their lifecycle."""

    COLLECTION = "applications"

    def __init__(
        self,
        store: DocumentStore,
        catalog: ProductCatalog,
        ledger: CollateralLedger,
        loans: LoanService,
        events: EventPublisher | None = None,
        numbering: NumberingConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.catalog = catalog
        self.ledger = ledger
        self.loans = loans
        self.events = events or EventPublisher(clock=clock)
        self.numbering = numbering or NumberingConfig()
        self.clock = clock

    def get(self, application_number: str) -> LoanApplication:
        """Return an application or raise EntityNotFoundError."""
        application = self.store.find_by_id(self.COLLECTION, application_number)
        if application is None:
            raise EntityNotFoundError(f"Application {application_number} not found")
        return application

    def save_draft(self, request: ApplicationRequest) -> LoanApplication:
        """Store an application as a draft without reserving collateral."""
        with self.events.batch(), self.store.transaction():
            application = self._build(request)
            self.store.create(self.COLLECTION, application)
            self._announce_created(application)

        logger.info("Saved draft application %s", application.application_number)
        return application

    def create_application(self, request: ApplicationRequest) -> LoanApplication:
        """Validate, reserve collateral and submit a new application.

        Fails without side effects if the product is inactive, the amount
        or tenure is outside product limits, a folio is unknown or
        already pledged, or the LTV exceeds the product maximum.
        """
        with self.events.batch(), self.store.transaction():
            application = self._build(request)
            self._submit(application)
            self.store.create(self.COLLECTION, application)
            self._announce_created(application)

        logger.info(
            "Application %s submitted: %s over %d months, LTV %s%%",
            application.application_number,
            application.requested_amount,
            application.tenure,
            application.ltv,
            extra={"application_number": application.application_number},
        )
        return application

    def update_application(
        self,
        application_number: str,
        *,
        applicant: Applicant | None = None,
        requested_amount: Decimal | float | str | None = None,
        tenure: int | None = None,
        collateral_folios: list[str] | None = None,
        remarks: str | None = None,
    ) -> LoanApplication:
        """Edit an application that is still a draft or submitted.

        Amount and tenure are re-checked against the product, and the
        LTV against the collateral already pledged. Collateral can only
        be changed on drafts.
        """
        with self.events.batch(), self.store.transaction():
            application = self.get(application_number)
            if application.status not in EDITABLE_STATUSES:
                raise InvalidEntityStateError(
                    f"Cannot update application {application_number} "
                    f"in status {application.status.value}"
                )

            if applicant is not None:
                application.applicant = validate_applicant(applicant)
            if remarks is not None:
                application.remarks = remarks
            if collateral_folios is not None:
                if application.status != ApplicationStatus.DRAFT:
                    raise InvalidEntityStateError(
                        "Collateral can only be changed while the application is a draft"
                    )
                application.collateral_folios = list(collateral_folios)

            if requested_amount is not None or tenure is not None:
                amount = _validate_terms(
                    requested_amount if requested_amount is not None else application.requested_amount,
                    tenure if tenure is not None else application.tenure,
                )
                application.requested_amount = amount
                application.tenure = tenure if tenure is not None else application.tenure

                if application.status == ApplicationStatus.SUBMITTED:
                    product = self.catalog.get(application.product_id)
                    check_product_limits(product, amount, application.tenure)
                    ltv = percent_of(amount, application.total_collateral_value)
                    self._check_ltv(ltv, product)
                    application.ltv = quantize_money(ltv)

            application.updated_at = self.clock()
            self.store.save(self.COLLECTION, application)

        logger.info("Updated application %s", application_number)
        return application

    def transition(
        self,
        application_number: str,
        status: ApplicationStatus | str,
        *,
        remarks: str | None = None,
        approved_amount: Decimal | float | str | None = None,
        reviewed_by: str | None = None,
    ) -> LoanApplication:
        """Move an application to ``status``.

        Transitions outside the allowed table raise InvalidTransitionError.
        Rejection releases the reserved collateral; disbursal creates the
        loan and moves the liens to it in the same transaction.
        """
        try:
            target = ApplicationStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown application status {status!r}") from None

        with self.events.batch(), self.store.transaction():
            application = self.get(application_number)
            current = application.status
            if not can_transition(current, target):
                raise InvalidTransitionError(
                    f"Cannot transition from {current.value} to {target.value}"
                )

            now = self.clock()
            if remarks:
                application.remarks = remarks
            if reviewed_by:
                application.reviewed_by = reviewed_by

            if target == ApplicationStatus.SUBMITTED:
                self._submit(application)
            elif target == ApplicationStatus.UNDER_REVIEW:
                application.reviewed_at = now
            elif target == ApplicationStatus.APPROVED:
                application.approved_amount = self._approved_amount(application, approved_amount)
                application.approved_at = now
            elif target == ApplicationStatus.REJECTED:
                application.rejected_at = now
                self.ledger.release_holder(LienHolder.APPLICATION, application_number)
            elif target == ApplicationStatus.DISBURSED:
                loan = self.loans.disburse(application)
                application.loan_number = loan.loan_number
                application.disbursed_at = now
            elif target == ApplicationStatus.CLOSED:
                application.closed_at = now

            application.status = target
            application.updated_at = now
            self.store.save(self.COLLECTION, application)
            self.events.publish(
                "application.status_changed",
                application_number,
                {"from": current.value, "to": target.value, "loan_number": application.loan_number},
            )

        logger.info(
            "Application %s moved %s -> %s", application_number, current.value, target.value
        )
        return application

    def delete_application(self, application_number: str) -> None:
        """Delete a draft application."""
        with self.events.batch(), self.store.transaction():
            application = self.get(application_number)
            if application.status != ApplicationStatus.DRAFT:
                raise InvalidEntityStateError("Only draft applications can be deleted")
            self.store.delete(self.COLLECTION, application_number)
            self.events.publish("application.deleted", application_number, {})

        logger.info("Deleted draft application %s", application_number)

    def _build(self, request: ApplicationRequest) -> LoanApplication:
        product = self.catalog.get(request.product_id)
        amount = _validate_terms(request.requested_amount, request.tenure)
        now = self.clock()
        return LoanApplication(
            application_number=next_application_number(self.store, self.numbering, now),
            applicant=validate_applicant(request.applicant),
            product_id=product.product_id,
            requested_amount=amount,
            tenure=request.tenure,
            interest_rate=product.interest_rate,
            collateral_folios=list(request.collateral_folios),
            remarks=request.remarks,
            created_at=now,
            updated_at=now,
        )

    def _submit(self, application: LoanApplication) -> None:
        product = self.catalog.get(application.product_id)
        if not product.is_active:
            raise ProductInactiveError(f"Loan product {product.product_id} is not active")
        check_product_limits(product, application.requested_amount, application.tenure)

        collaterals = self._resolve_free_collateral(application.collateral_folios)
        total = sum((c.current_value for c in collaterals), ZERO)
        ltv = percent_of(application.requested_amount, total)
        self._check_ltv(ltv, product)

        for collateral in collaterals:
            self.ledger.pledge(collateral.folio_number, application.application_number)

        now = self.clock()
        application.collateral_folios = [c.folio_number for c in collaterals]
        application.total_collateral_value = quantize_money(total)
        application.ltv = quantize_money(ltv)
        application.status = ApplicationStatus.SUBMITTED
        application.submitted_at = now

    def _resolve_free_collateral(self, folio_numbers: list[str]) -> list[Collateral]:
        if not folio_numbers:
            return []
        unique = list(dict.fromkeys(folio_numbers))
        found = self.store.find(
            CollateralLedger.COLLECTION,
            {"folio_number": set(unique), "lien_status": LienStatus.NONE},
        )
        if len(found) != len(folio_numbers):
            raise InvalidOrPledgedCollateralError("Some collaterals are invalid or already pledged")
        by_folio = {c.folio_number: c for c in found}
        return [by_folio[folio] for folio in unique]

    @staticmethod
    def _check_ltv(ltv: Decimal, product: LoanProduct) -> None:
        # Compared unrounded so the limit itself is allowed and nothing above it is
        if ltv > product.max_ltv:
            raise LtvExceededError(
                f"LTV ({quantize_money(ltv)}%) exceeds maximum allowed ({product.max_ltv}%)"
            )

    @staticmethod
    def _approved_amount(
        application: LoanApplication, approved_amount: Decimal | float | str | None
    ) -> Decimal:
        if approved_amount is None:
            return application.requested_amount
        amount = to_decimal(approved_amount, "approved amount")
        if amount <= 0:
            raise ValidationError("Approved amount must be positive")
        if amount > application.requested_amount:
            raise ValidationError(
                f"Approved amount {amount} exceeds requested amount {application.requested_amount}"
            )
        return amount

    def _announce_created(self, application: LoanApplication) -> None:
        self.events.publish(
            "application.created",
            application.application_number,
            {
                "status": application.status.value,
                "product_id": application.product_id,
                "requested_amount": str(application.requested_amount),
                "ltv": str(application.ltv),
            },
        )
