"""Loan servicing: disbursal, EMI payments, overdue sweep and overrides."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from lamf_core.config import NumberingConfig
from lamf_core.engine.amortization import calculate_emi, generate_schedule
from lamf_core.engine.collateral import CollateralLedger
from lamf_core.engine.events import EventPublisher
from lamf_core.engine.money import ZERO, percent_of, quantize_money, to_decimal
from lamf_core.engine.numbering import next_loan_number
from lamf_core.exceptions import (
    AlreadyPaidError,
    ConsistencyViolationError,
    EntityNotFoundError,
    InvalidEntityStateError,
    LoanClosedError,
    ValidationError,
)
from lamf_core.models.application import LoanApplication
from lamf_core.models.enums import (
    ApplicationStatus,
    ClosureReason,
    InstallmentStatus,
    LienHolder,
    LoanStatus,
)
from lamf_core.models.loan import EmiInstallment, Loan, StatusChange
from lamf_core.store.base import DocumentStore

logger = logging.getLogger(__name__)

OPEN_STATUSES = frozenset({LoanStatus.ACTIVE, LoanStatus.OVERDUE})


@dataclass
class OverdueSweepResult:
    """Counts reported by ``mark_overdue``."""

    as_of: date
    scanned: int = 0
    loans_updated: int = 0
    installments_marked: int = 0
    failed: int = 0


def next_pending_due_date(schedule: list[EmiInstallment]) -> date | None:
    """Due date of the earliest installment still pending.

    Installments already marked overdue are not "next"; they are
    tracked through the loan status instead.
    """
    pending = [emi.due_date for emi in schedule if emi.status == InstallmentStatus.PENDING]
    return min(pending) if pending else None


def derive_open_status(loan: Loan) -> LoanStatus:
    """Status of a loan that stays open after a payment."""
    if loan.overdue_emis_count:
        return LoanStatus.OVERDUE
    if loan.status == LoanStatus.OVERDUE:
        return LoanStatus.ACTIVE
    return loan.status


def current_ltv(outstanding: Decimal, collateral_total: Decimal) -> Decimal:
    return quantize_money(percent_of(outstanding, collateral_total))


class LoanService:
    """Own the loan record and its EMI ledger."""

    COLLECTION = "loans"

    def __init__(
        self,
        store: DocumentStore,
        ledger: CollateralLedger,
        events: EventPublisher | None = None,
        numbering: NumberingConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.ledger = ledger
        self.events = events or EventPublisher(clock=clock)
        self.numbering = numbering or NumberingConfig()
        self.clock = clock

    def get(self, loan_number: str) -> Loan:
        """Return a loan or raise EntityNotFoundError."""
        loan = self.store.find_by_id(self.COLLECTION, loan_number)
        if loan is None:
            raise EntityNotFoundError(f"Loan {loan_number} not found")
        return loan

    def schedule(self, loan_number: str) -> list[EmiInstallment]:
        """Return the EMI schedule of a loan."""
        return self.get(loan_number).emi_schedule

    def disburse(self, application: LoanApplication) -> Loan:
        """Create the loan for an approved application and move its liens.

        Loan creation and lien migration run in one transaction; if
        either fails nothing is written.
        """
        if application.status != ApplicationStatus.APPROVED:
            raise InvalidEntityStateError(
                f"Application {application.application_number} is {application.status.value}, "
                "only approved applications can be disbursed"
            )
        if application.loan_number:
            raise ConsistencyViolationError(
                f"Application {application.application_number} already produced "
                f"loan {application.loan_number}"
            )

        amount = application.disbursal_amount
        now = self.clock()

        with self.events.batch(), self.store.transaction():
            schedule = generate_schedule(
                amount, application.interest_rate, application.tenure, now
            )
            loan = Loan(
                loan_number=next_loan_number(self.store, self.numbering, now),
                application_number=application.application_number,
                applicant=application.applicant,
                product_id=application.product_id,
                disbursed_amount=amount,
                outstanding_amount=amount,
                tenure=application.tenure,
                interest_rate=application.interest_rate,
                emi_amount=quantize_money(
                    calculate_emi(amount, application.interest_rate, application.tenure)
                ),
                disbursed_at=now,
                next_emi_date=schedule[0].due_date,
                collateral_folios=list(application.collateral_folios),
                total_collateral_value=application.total_collateral_value,
                current_ltv=current_ltv(amount, application.total_collateral_value),
                emi_schedule=schedule,
                created_at=now,
                updated_at=now,
            )
            self.store.create(self.COLLECTION, loan)
            self.ledger.migrate_link_to_loan(
                loan.collateral_folios, application.application_number, loan.loan_number
            )
            self.events.publish(
                "loan.disbursed",
                loan.loan_number,
                {
                    "application_number": application.application_number,
                    "disbursed_amount": str(amount),
                    "emi_amount": str(loan.emi_amount),
                    "tenure": loan.tenure,
                },
            )

        logger.info(
            "Disbursed loan %s for application %s: %s over %d months at %s%% (EMI %s)",
            loan.loan_number,
            application.application_number,
            amount,
            loan.tenure,
            loan.interest_rate,
            loan.emi_amount,
            extra={"loan_number": loan.loan_number, "application_number": application.application_number},
        )
        return loan

    def record_payment(
        self,
        loan_number: str,
        emi_number: int,
        amount: Decimal | float | str,
        reference: str | None = None,
        payment_date: date | None = None,
    ) -> Loan:
        """Record payment of one installment.

        The installment's scheduled principal is retired regardless of
        the amount paid; the paid amount is kept for reconciliation.

        Parameters
        ----------
        loan_number : str
            Loan being paid.
        emi_number : int
            Schedule entry the payment settles.
        amount : Decimal | float | str
            Amount received.
        reference : str | None
            External payment reference.
        payment_date : date | None
            Date received; defaults to today.

        Returns
        -------
        Loan
            The updated loan.
        """
        paid = to_decimal(amount, "payment amount")
        if paid <= 0:
            raise ValidationError("Payment amount must be positive")

        with self.events.batch(), self.store.transaction():
            loan = self.get(loan_number)
            emi = loan.installment(emi_number)
            if emi is None:
                raise EntityNotFoundError(f"EMI #{emi_number} not found on loan {loan_number}")
            if loan.is_closed:
                raise LoanClosedError(f"Cannot record payment for closed loan {loan_number}")
            if emi.status == InstallmentStatus.PAID:
                raise AlreadyPaidError(f"EMI #{emi_number} of loan {loan_number} already paid")

            now = self.clock()
            emi.status = InstallmentStatus.PAID
            emi.paid_amount = quantize_money(paid)
            emi.paid_date = payment_date or now.date()
            emi.payment_reference = reference

            loan.total_principal_paid += emi.principal
            loan.total_interest_paid += emi.interest
            loan.outstanding_amount -= emi.principal
            loan.next_emi_date = next_pending_due_date(loan.emi_schedule)
            loan.current_ltv = current_ltv(loan.outstanding_amount, loan.total_collateral_value)
            loan.updated_at = now

            # Closes once nothing is left pending, even with overdue installments unpaid
            if loan.outstanding_amount <= 0 or loan.next_emi_date is None:
                self._close_fully_paid(loan, now)
            else:
                loan.status = derive_open_status(loan)

            self.store.save(self.COLLECTION, loan)
            self.events.publish(
                "loan.payment_recorded",
                loan_number,
                {
                    "emi_number": emi_number,
                    "amount": str(emi.paid_amount),
                    "reference": reference,
                    "outstanding_amount": str(loan.outstanding_amount),
                    "status": loan.status.value,
                },
            )

        logger.info(
            "Payment of %s recorded for EMI #%d of loan %s (outstanding %s, status %s)",
            emi.paid_amount,
            emi_number,
            loan_number,
            loan.outstanding_amount,
            loan.status.value,
            extra={"loan_number": loan_number, "emi_number": emi_number},
        )
        return loan

    def _close_fully_paid(self, loan: Loan, now: datetime) -> None:
        if loan.outstanding_amount < ZERO:
            logger.warning(
                "Loan %s closed with negative outstanding %s", loan.loan_number, loan.outstanding_amount
            )
        loan.status = LoanStatus.CLOSED
        loan.closure_reason = ClosureReason.FULLY_PAID
        loan.closed_at = now
        released = self.ledger.release_holder(LienHolder.LOAN, loan.loan_number)
        self.events.publish(
            "loan.closed",
            loan.loan_number,
            {"closure_reason": ClosureReason.FULLY_PAID.value, "collaterals_released": released},
        )
        logger.info(
            "Loan %s fully paid and closed, %d collateral(s) released",
            loan.loan_number,
            released,
            extra={"loan_number": loan.loan_number},
        )

    def mark_overdue(self, as_of: date | None = None) -> OverdueSweepResult:
        """Flag pending installments due before ``as_of`` (default today).

        Each loan is updated in its own transaction. A loan that fails
        is counted and skipped; storage failures propagate.
        """
        today = as_of or self.clock().date()
        result = OverdueSweepResult(as_of=today)

        for candidate in self.store.find(self.COLLECTION, {"status": OPEN_STATUSES}):
            result.scanned += 1
            try:
                marked = self._mark_loan_overdue(candidate.loan_number, today)
            except (InvalidEntityStateError, EntityNotFoundError, ConsistencyViolationError) as exc:
                result.failed += 1
                logger.warning("Overdue sweep skipped loan %s: %s", candidate.loan_number, exc)
                continue
            if marked:
                result.loans_updated += 1
                result.installments_marked += marked

        logger.info(
            "Overdue sweep as of %s: scanned=%d, updated=%d, installments=%d, failed=%d",
            today,
            result.scanned,
            result.loans_updated,
            result.installments_marked,
            result.failed,
        )
        return result

    def _mark_loan_overdue(self, loan_number: str, today: date) -> int:
        with self.events.batch(), self.store.transaction():
            loan = self.get(loan_number)
            if loan.status not in OPEN_STATUSES:
                return 0

            marked = [
                emi
                for emi in loan.emi_schedule
                if emi.status == InstallmentStatus.PENDING and emi.due_date < today
            ]
            if not marked:
                return 0

            for emi in marked:
                emi.status = InstallmentStatus.OVERDUE
            loan.status = LoanStatus.OVERDUE
            loan.next_emi_date = next_pending_due_date(loan.emi_schedule)
            loan.updated_at = self.clock()
            self.store.save(self.COLLECTION, loan)
            self.events.publish(
                "loan.overdue_marked",
                loan_number,
                {"emi_numbers": [emi.emi_number for emi in marked], "as_of": today.isoformat()},
            )

        logger.debug("Loan %s: %d installment(s) now overdue", loan_number, len(marked))
        return len(marked)

    def update_status(
        self,
        loan_number: str,
        status: LoanStatus | str,
        actor: str,
        reason: str | None = None,
        closure_reason: ClosureReason | str | None = None,
    ) -> Loan:
        """Administrative status override.

        Any of the five loan states may be set directly, bypassing the
        payment-derived rules. The change is recorded in the loan's
        ``status_history`` against ``actor``.
        """
        try:
            target = LoanStatus(status)
            closure = ClosureReason(closure_reason) if closure_reason else None
        except ValueError as exc:
            raise ValidationError(f"Invalid status: {exc}") from None
        if not actor or not actor.strip():
            raise ValidationError("Status overrides require an actor for the audit trail")

        with self.events.batch(), self.store.transaction():
            loan = self.get(loan_number)
            now = self.clock()
            previous = loan.status
            loan.status = target
            loan.status_history.append(
                StatusChange(
                    from_status=previous,
                    to_status=target,
                    changed_at=now,
                    actor=actor.strip(),
                    reason=reason,
                )
            )
            if target == LoanStatus.CLOSED:
                loan.closed_at = now
                loan.closure_reason = closure or loan.closure_reason
            loan.updated_at = now
            self.store.save(self.COLLECTION, loan)
            self.events.publish(
                "loan.status_overridden",
                loan_number,
                {"from": previous.value, "to": target.value, "actor": actor.strip(), "reason": reason},
            )

        logger.warning(
            "Loan %s status overridden %s -> %s by %s (%s)",
            loan_number,
            previous.value,
            target.value,
            actor,
            reason or "no reason given",
        )
        return loan
