"""Loan product model."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from lamf_core.models.enums import ProductStatus


@dataclass
class LoanProduct:
    """Lending terms offered against pledged mutual fund units."""

    product_id: str
    name: str
    description: str
    interest_rate: Decimal  # Annual percent (e.g., 10.5)
    min_amount: Decimal
    max_amount: Decimal
    min_tenure: int  # Months
    max_tenure: int
    max_ltv: Decimal  # Percent of collateral value
    processing_fee: Decimal  # Percent of loan amount
    status: ProductStatus = ProductStatus.ACTIVE
    created_at: datetime | None = None
    updated_at: datetime | None = None
    version: int = 0

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE
