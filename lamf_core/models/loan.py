"""Loan and repayment schedule models."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from lamf_core.models.application import Applicant
from lamf_core.models.enums import ClosureReason, InstallmentStatus, LoanStatus


@dataclass
class EmiInstallment:
    """One line of the EMI schedule.

    ``principal``, ``interest`` and ``due_date`` are fixed when the
    schedule is generated; payments only touch status and paid fields.
    """

    emi_number: int  # 1, 2, 3, ...
    due_date: date
    principal: Decimal
    interest: Decimal
    total_amount: Decimal
    status: InstallmentStatus = InstallmentStatus.PENDING
    paid_amount: Decimal = Decimal("0.00")
    paid_date: date | None = None
    penalty_amount: Decimal = Decimal("0.00")
    payment_reference: str | None = None


@dataclass
class StatusChange:
    """Audit entry for an administrative status override."""

    from_status: LoanStatus
    to_status: LoanStatus
    changed_at: datetime
    actor: str
    reason: str | None = None


@dataclass
class Loan:
    """Disbursed loan secured by pledged collateral."""

    loan_number: str
    application_number: str
    applicant: Applicant
    product_id: str
    disbursed_amount: Decimal
    outstanding_amount: Decimal
    tenure: int
    interest_rate: Decimal  # Annual percent
    emi_amount: Decimal
    disbursed_at: datetime
    status: LoanStatus = LoanStatus.ACTIVE
    next_emi_date: date | None = None
    collateral_folios: list[str] = field(default_factory=list)
    total_collateral_value: Decimal = Decimal("0.00")
    current_ltv: Decimal = Decimal("0.00")
    emi_schedule: list[EmiInstallment] = field(default_factory=list)
    total_principal_paid: Decimal = Decimal("0.00")
    total_interest_paid: Decimal = Decimal("0.00")
    closed_at: datetime | None = None
    closure_reason: ClosureReason | None = None
    status_history: list[StatusChange] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    version: int = 0

    @property
    def paid_emis_count(self) -> int:
        return sum(1 for emi in self.emi_schedule if emi.status == InstallmentStatus.PAID)

    @property
    def overdue_emis_count(self) -> int:
        return sum(1 for emi in self.emi_schedule if emi.status == InstallmentStatus.OVERDUE)

    @property
    def is_closed(self) -> bool:
        return self.status == LoanStatus.CLOSED

    def installment(self, emi_number: int) -> EmiInstallment | None:
        """Return the schedule entry with the given number, if any."""
        for emi in self.emi_schedule:
            if emi.emi_number == emi_number:
                return emi
        return None
