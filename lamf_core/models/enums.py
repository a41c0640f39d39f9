"""Enumeration types for the loan-against-mutual-funds domain."""

from enum import Enum


class ProductStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class SchemeType(str, Enum):
    EQUITY = "equity"
    DEBT = "debt"
    HYBRID = "hybrid"
    LIQUID = "liquid"


class LienStatus(str, Enum):
    NONE = "none"
    MARKED = "marked"
    RELEASED = "released"


class LienHolder(str, Enum):
    APPLICATION = "application"
    LOAN = "loan"


class ApplicationStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    DISBURSED = "disbursed"
    CLOSED = "closed"


class LoanStatus(str, Enum):
    ACTIVE = "active"
    OVERDUE = "overdue"
    CLOSED = "closed"
    DEFAULTED = "defaulted"
    RESTRUCTURED = "restructured"


class InstallmentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    PARTIALLY_PAID = "partially_paid"


class ClosureReason(str, Enum):
    FULLY_PAID = "fully_paid"
    FORECLOSURE = "foreclosure"
    DEFAULTED = "defaulted"
    RESTRUCTURED = "restructured"
