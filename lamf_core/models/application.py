"""Loan application models."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from lamf_core.models.base import Address
from lamf_core.models.enums import ApplicationStatus


@dataclass
class Applicant:
    """Borrower details captured on the application."""

    name: str
    email: str
    phone: str
    pan: str  # Permanent Account Number (tax id)
    address: Address | None = None
    date_of_birth: date | None = None


@dataclass
class ApplicationRequest:
    """Validated input for a new application."""

    applicant: Applicant
    product_id: str
    requested_amount: Decimal
    tenure: int  # Months
    collateral_folios: list[str] = field(default_factory=list)
    remarks: str | None = None


@dataclass
class LoanApplication:
    """Loan application moving from draft to disbursal."""

    application_number: str
    applicant: Applicant
    product_id: str
    requested_amount: Decimal
    tenure: int
    interest_rate: Decimal  # Snapshot of the product rate at creation
    status: ApplicationStatus = ApplicationStatus.DRAFT
    collateral_folios: list[str] = field(default_factory=list)
    total_collateral_value: Decimal = Decimal("0.00")
    ltv: Decimal = Decimal("0.00")
    approved_amount: Decimal | None = None
    remarks: str | None = None
    reviewed_by: str | None = None
    loan_number: str | None = None  # Set on disbursal
    submitted_at: datetime | None = None
    reviewed_at: datetime | None = None
    approved_at: datetime | None = None
    rejected_at: datetime | None = None
    disbursed_at: datetime | None = None
    closed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    version: int = 0

    @property
    def disbursal_amount(self) -> Decimal:
        """Approved amount, falling back to the requested amount."""
        return self.approved_amount or self.requested_amount
