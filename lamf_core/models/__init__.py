"""Domain models for loans against mutual funds."""

from lamf_core.models.application import Applicant, ApplicationRequest, LoanApplication
from lamf_core.models.base import Address, Event
from lamf_core.models.collateral import Collateral, Lien
from lamf_core.models.enums import (
    ApplicationStatus,
    ClosureReason,
    InstallmentStatus,
    LienHolder,
    LienStatus,
    LoanStatus,
    ProductStatus,
    SchemeType,
)
from lamf_core.models.loan import EmiInstallment, Loan, StatusChange
from lamf_core.models.product import LoanProduct

__all__ = [
    "Address",
    "Applicant",
    "ApplicationRequest",
    "ApplicationStatus",
    "ClosureReason",
    "Collateral",
    "EmiInstallment",
    "Event",
    "InstallmentStatus",
    "Lien",
    "LienHolder",
    "LienStatus",
    "Loan",
    "LoanApplication",
    "LoanProduct",
    "LoanStatus",
    "ProductStatus",
    "SchemeType",
    "StatusChange",
]
