"""Mutual fund collateral models."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from lamf_core.models.enums import LienHolder, LienStatus, SchemeType


@dataclass
class Lien:
    """Current holder of a pledged folio.

    A folio has at most one lien at a time; it points either at the
    application that reserved the units or at the loan they secure.
    """

    holder_kind: LienHolder
    holder_id: str
    marked_at: datetime


@dataclass
class Collateral:
    """Mutual fund units registered under a folio."""

    folio_number: str
    fund_name: str
    amc_name: str
    scheme_type: SchemeType
    isin: str
    units: Decimal
    nav_per_unit: Decimal
    current_value: Decimal = Decimal("0.00")  # units x NAV
    lien_status: LienStatus = LienStatus.NONE
    lien: Lien | None = None
    lien_marked_at: datetime | None = None
    lien_released_at: datetime | None = None
    investor_name: str | None = None
    investor_pan: str | None = None
    nav_last_updated: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    version: int = 0

    @property
    def linked_application(self) -> str | None:
        if self.lien and self.lien.holder_kind == LienHolder.APPLICATION:
            return self.lien.holder_id
        return None

    @property
    def linked_loan(self) -> str | None:
        if self.lien and self.lien.holder_kind == LienHolder.LOAN:
            return self.lien.holder_id
        return None
