"""Tests for domain models."""

from datetime import date, datetime
from decimal import Decimal

from lamf_core.models import (
    Applicant,
    ApplicationStatus,
    Collateral,
    EmiInstallment,
    InstallmentStatus,
    Lien,
    LienHolder,
    LienStatus,
    Loan,
    LoanApplication,
    LoanProduct,
    LoanStatus,
    ProductStatus,
    SchemeType,
)


def _collateral(**kwargs) -> Collateral:
    return Collateral(
        folio_number="1001/01",
        fund_name="Test Fund",
        amc_name="Test AMC",
        scheme_type=SchemeType.DEBT,
        isin="INF000000001",
        units=Decimal("10"),
        nav_per_unit=Decimal("10"),
        **kwargs,
    )


def _installment(number: int, status: InstallmentStatus) -> EmiInstallment:
    return EmiInstallment(
        emi_number=number,
        due_date=date(2025, number, 1),
        principal=Decimal("100.00"),
        interest=Decimal("10.00"),
        total_amount=Decimal("110.00"),
        status=status,
    )


class TestEnums:
    """Tests for str-backed enums."""

    def test_values_are_lowercase_strings(self) -> None:
        assert ApplicationStatus.UNDER_REVIEW == "under_review"
        assert LoanStatus("restructured") is LoanStatus.RESTRUCTURED
        assert InstallmentStatus.PARTIALLY_PAID.value == "partially_paid"

    def test_scheme_types(self) -> None:
        assert {s.value for s in SchemeType} == {"equity", "debt", "hybrid", "liquid"}


class TestCollateral:
    """Tests for Collateral lien links."""

    def test_defaults(self) -> None:
        collateral = _collateral()

        assert collateral.lien_status == LienStatus.NONE
        assert collateral.lien is None
        assert collateral.linked_application is None
        assert collateral.linked_loan is None
        assert collateral.version == 0

    def test_application_lien(self) -> None:
        collateral = _collateral(
            lien_status=LienStatus.MARKED,
            lien=Lien(LienHolder.APPLICATION, "LAMF2025000001", datetime(2025, 1, 1)),
        )

        assert collateral.linked_application == "LAMF2025000001"
        assert collateral.linked_loan is None

    def test_loan_lien(self) -> None:
        collateral = _collateral(
            lien_status=LienStatus.MARKED,
            lien=Lien(LienHolder.LOAN, "LN2025000001", datetime(2025, 1, 1)),
        )

        assert collateral.linked_application is None
        assert collateral.linked_loan == "LN2025000001"


class TestLoanProduct:
    """Tests for LoanProduct."""

    def test_is_active(self) -> None:
        product = LoanProduct(
            product_id="P1",
            name="Test",
            description="",
            interest_rate=Decimal("10"),
            min_amount=Decimal("1"),
            max_amount=Decimal("2"),
            min_tenure=1,
            max_tenure=2,
            max_ltv=Decimal("50"),
            processing_fee=Decimal("0"),
        )

        assert product.is_active
        product.status = ProductStatus.INACTIVE
        assert not product.is_active


class TestLoanApplication:
    """Tests for LoanApplication."""

    def _application(self, **kwargs) -> LoanApplication:
        return LoanApplication(
            application_number="LAMF2025000001",
            applicant=Applicant("A", "a@b.in", "1", "ABCDE1234F"),
            product_id="P1",
            requested_amount=Decimal("100000"),
            tenure=12,
            interest_rate=Decimal("12"),
            **kwargs,
        )

    def test_disbursal_amount_falls_back_to_requested(self) -> None:
        assert self._application().disbursal_amount == Decimal("100000")

    def test_disbursal_amount_prefers_approved(self) -> None:
        application = self._application(approved_amount=Decimal("80000"))
        assert application.disbursal_amount == Decimal("80000")


class TestLoan:
    """Tests for Loan derived counters."""

    def _loan(self, statuses: list[InstallmentStatus], status: LoanStatus = LoanStatus.ACTIVE) -> Loan:
        return Loan(
            loan_number="LN2025000001",
            application_number="LAMF2025000001",
            applicant=Applicant("A", "a@b.in", "1", "ABCDE1234F"),
            product_id="P1",
            disbursed_amount=Decimal("300"),
            outstanding_amount=Decimal("300"),
            tenure=len(statuses),
            interest_rate=Decimal("12"),
            emi_amount=Decimal("110"),
            disbursed_at=datetime(2025, 1, 1),
            status=status,
            emi_schedule=[_installment(i + 1, s) for i, s in enumerate(statuses)],
        )

    def test_counters(self) -> None:
        loan = self._loan(
            [InstallmentStatus.PAID, InstallmentStatus.OVERDUE, InstallmentStatus.PENDING]
        )

        assert loan.paid_emis_count == 1
        assert loan.overdue_emis_count == 1

    def test_installment_lookup(self) -> None:
        loan = self._loan([InstallmentStatus.PENDING, InstallmentStatus.PENDING])

        assert loan.installment(2).emi_number == 2
        assert loan.installment(3) is None

    def test_is_closed(self) -> None:
        assert self._loan([], LoanStatus.CLOSED).is_closed
        assert not self._loan([], LoanStatus.DEFAULTED).is_closed
