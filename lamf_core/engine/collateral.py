"""Collateral ledger: holdings, NAV and liens on mutual fund folios.

The ledger is the only writer of collateral records. Each folio carries
at most one ``Lien`` naming its current holder (an application or a
loan); ``lien_status`` is MARKED exactly when a lien is present.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from lamf_core.engine.events import EventPublisher
from lamf_core.engine.money import collateral_value, to_decimal
from lamf_core.exceptions import (
    ActiveLoanBlockError,
    AlreadyMarkedError,
    ConsistencyViolationError,
    DuplicateFolioError,
    EntityNotFoundError,
    NotMarkedError,
    ValidationError,
)
from lamf_core.models.collateral import Collateral, Lien
from lamf_core.models.enums import LienHolder, LienStatus, LoanStatus, SchemeType
from lamf_core.store.base import DocumentStore

logger = logging.getLogger(__name__)

ISIN_PATTERN = re.compile(r"^INF[A-Z0-9]{9}$")
PAN_PATTERN = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")


@dataclass
class NavUpdateResult:
    """Outcome of a bulk NAV refresh."""

    requested: int = 0
    updated: int = 0

    @property
    def skipped(self) -> int:
        return self.requested - self.updated


def check_lien_invariant(collateral: Collateral) -> None:
    """Raise ConsistencyViolationError if lien status and holder disagree."""
    marked = collateral.lien_status == LienStatus.MARKED
    if marked != (collateral.lien is not None):
        raise ConsistencyViolationError(
            f"Collateral {collateral.folio_number} has lien status "
            f"{collateral.lien_status.value} but holder {collateral.lien}"
        )


def validate_collateral(collateral: Collateral) -> Collateral:
    """Normalize and validate registration fields."""
    collateral.folio_number = (collateral.folio_number or "").strip()
    if not collateral.folio_number:
        raise ValidationError("Folio number is required")
    collateral.fund_name = (collateral.fund_name or "").strip()
    if not collateral.fund_name:
        raise ValidationError("Fund name is required")
    collateral.amc_name = (collateral.amc_name or "").strip()
    if not collateral.amc_name:
        raise ValidationError("AMC name is required")

    try:
        collateral.scheme_type = SchemeType(collateral.scheme_type)
    except ValueError:
        raise ValidationError(f"Unknown scheme type {collateral.scheme_type!r}") from None

    collateral.isin = (collateral.isin or "").strip().upper()
    if not ISIN_PATTERN.match(collateral.isin):
        raise ValidationError(f"Invalid ISIN format: {collateral.isin}")

    if collateral.investor_pan:
        collateral.investor_pan = collateral.investor_pan.strip().upper()
        if not PAN_PATTERN.match(collateral.investor_pan):
            raise ValidationError(f"Invalid PAN format: {collateral.investor_pan}")

    collateral.units = _non_negative(collateral.units, "Units")
    collateral.nav_per_unit = _non_negative(collateral.nav_per_unit, "NAV")
    return collateral


def _non_negative(value: Decimal | float | str, label: str) -> Decimal:
    result = to_decimal(value, label)
    if result < 0:
        raise ValidationError(f"{label} cannot be negative")
    return result


class CollateralLedger:
    """Register folios, keep their valuation current and manage liens."""

    COLLECTION = "collaterals"
    LOANS = "loans"

    def __init__(
        self,
        store: DocumentStore,
        events: EventPublisher | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.events = events or EventPublisher(clock=clock)
        self.clock = clock

    def get(self, folio_number: str) -> Collateral:
        """Return a collateral record or raise EntityNotFoundError."""
        collateral = self.store.find_by_id(self.COLLECTION, folio_number)
        if collateral is None:
            raise EntityNotFoundError(f"Collateral {folio_number} not found")
        return collateral

    def held_by(self, holder_kind: LienHolder, holder_id: str) -> list[Collateral]:
        """Return the folios currently pledged to a holder."""
        return self.store.find(
            self.COLLECTION,
            {"lien.holder_kind": holder_kind, "lien.holder_id": holder_id},
        )

    def register(self, collateral: Collateral) -> Collateral:
        """Register a new folio with no lien."""
        validate_collateral(collateral)
        now = self.clock()
        collateral.current_value = collateral_value(collateral.units, collateral.nav_per_unit)
        collateral.lien_status = LienStatus.NONE
        collateral.lien = None
        collateral.nav_last_updated = now
        collateral.created_at = now
        collateral.updated_at = now

        with self.events.batch(), self.store.transaction():
            if self.store.find_by_id(self.COLLECTION, collateral.folio_number) is not None:
                raise DuplicateFolioError(
                    f"Collateral with folio number {collateral.folio_number} already exists"
                )
            self.store.create(self.COLLECTION, collateral)
            self.events.publish(
                "collateral.registered",
                collateral.folio_number,
                {"isin": collateral.isin, "current_value": str(collateral.current_value)},
            )

        logger.info(
            "Registered collateral %s (%s units of %s)",
            collateral.folio_number,
            collateral.units,
            collateral.fund_name,
        )
        return collateral

    def update_nav(self, folio_number: str, new_nav: Decimal | float | str) -> Collateral | None:
        """Reprice a folio. Returns None when the folio is unknown."""
        nav = _non_negative(new_nav, "NAV")

        with self.events.batch(), self.store.transaction():
            collateral = self.store.find_by_id(self.COLLECTION, folio_number)
            if collateral is None:
                logger.warning("NAV update skipped: collateral %s not found", folio_number)
                return None

            now = self.clock()
            collateral.nav_per_unit = nav
            collateral.current_value = collateral_value(collateral.units, nav)
            collateral.nav_last_updated = now
            collateral.updated_at = now
            self.store.save(self.COLLECTION, collateral)
            self.events.publish(
                "collateral.nav_updated",
                folio_number,
                {"nav_per_unit": str(nav), "current_value": str(collateral.current_value)},
            )

        return collateral

    def bulk_update_nav(
        self, updates: Mapping[str, Decimal | float | str] | Iterable[tuple[str, Decimal | float | str]]
    ) -> NavUpdateResult:
        """Apply many NAV updates, skipping folios that fail.

        Parameters
        ----------
        updates : Mapping | Iterable[tuple]
            Folio number to new NAV, as a mapping or pairs.

        Returns
        -------
        NavUpdateResult
            How many updates were requested and applied.
        """
        pairs = updates.items() if isinstance(updates, Mapping) else updates
        result = NavUpdateResult()

        for folio_number, new_nav in pairs:
            result.requested += 1
            try:
                if self.update_nav(folio_number, new_nav) is not None:
                    result.updated += 1
            except ValidationError as exc:
                logger.warning("NAV update skipped for %s: %s", folio_number, exc)

        logger.info("NAV updated for %d of %d collaterals", result.updated, result.requested)
        return result

    def update_holding(
        self,
        folio_number: str,
        units: Decimal | float | str | None = None,
        nav_per_unit: Decimal | float | str | None = None,
    ) -> Collateral:
        """Change units and/or NAV of a registered folio."""
        with self.events.batch(), self.store.transaction():
            collateral = self.get(folio_number)
            now = self.clock()
            if units is not None:
                collateral.units = _non_negative(units, "Units")
            if nav_per_unit is not None:
                collateral.nav_per_unit = _non_negative(nav_per_unit, "NAV")
                collateral.nav_last_updated = now
            collateral.current_value = collateral_value(collateral.units, collateral.nav_per_unit)
            collateral.updated_at = now
            self.store.save(self.COLLECTION, collateral)
            self.events.publish(
                "collateral.nav_updated",
                folio_number,
                {
                    "units": str(collateral.units),
                    "nav_per_unit": str(collateral.nav_per_unit),
                    "current_value": str(collateral.current_value),
                },
            )

        return collateral

    def pledge(self, folio_number: str, application_number: str) -> Collateral:
        """Mark a lien on a folio in favour of an application."""
        with self.events.batch(), self.store.transaction():
            collateral = self.get(folio_number)
            if collateral.lien_status == LienStatus.MARKED:
                raise AlreadyMarkedError(f"Lien already marked on collateral {folio_number}")

            now = self.clock()
            collateral.lien_status = LienStatus.MARKED
            collateral.lien = Lien(LienHolder.APPLICATION, application_number, now)
            collateral.lien_marked_at = now
            collateral.updated_at = now
            check_lien_invariant(collateral)
            self.store.save(self.COLLECTION, collateral)
            self.events.publish(
                "collateral.lien_marked",
                folio_number,
                {"holder_kind": LienHolder.APPLICATION.value, "holder_id": application_number},
            )

        logger.info(
            "Lien marked on %s for application %s",
            folio_number,
            application_number,
            extra={"folio_number": folio_number, "application_number": application_number},
        )
        return collateral

    def release(self, folio_number: str, force: bool = False) -> Collateral:
        """Release the lien on a folio.

        Parameters
        ----------
        folio_number : str
            Folio to release.
        force : bool
            Skip the active-loan check. Used when the holder itself is
            being rejected or closed.
        """
        with self.events.batch(), self.store.transaction():
            collateral = self.get(folio_number)
            if collateral.lien_status != LienStatus.MARKED:
                raise NotMarkedError(f"No lien marked on collateral {folio_number}")

            loan_number = collateral.linked_loan
            if loan_number and not force:
                loan = self.store.find_by_id(self.LOANS, loan_number)
                if loan is not None and loan.status == LoanStatus.ACTIVE:
                    raise ActiveLoanBlockError(
                        f"Cannot release lien on {folio_number} while loan {loan_number} is active"
                    )

            previous = collateral.lien
            now = self.clock()
            collateral.lien_status = LienStatus.RELEASED
            collateral.lien = None
            collateral.lien_released_at = now
            collateral.updated_at = now
            check_lien_invariant(collateral)
            self.store.save(self.COLLECTION, collateral)
            self.events.publish(
                "collateral.lien_released",
                folio_number,
                {"holder_kind": previous.holder_kind.value, "holder_id": previous.holder_id},
            )

        logger.info("Lien released on %s", folio_number, extra={"folio_number": folio_number})
        return collateral

    def release_holder(self, holder_kind: LienHolder, holder_id: str) -> int:
        """Release every lien held by an application or loan.

        The holder is being rejected or closed, so no active-loan check
        applies. Returns the number of folios released.
        """
        filter = {
            "lien.holder_kind": holder_kind,
            "lien.holder_id": holder_id,
            "lien_status": LienStatus.MARKED,
        }
        now = self.clock()

        with self.events.batch(), self.store.transaction():
            folios = [c.folio_number for c in self.store.find(self.COLLECTION, filter)]
            released = self.store.update_many(
                self.COLLECTION,
                filter,
                {
                    "lien_status": LienStatus.RELEASED,
                    "lien": None,
                    "lien_released_at": now,
                    "updated_at": now,
                },
            )
            for folio_number in folios:
                self.events.publish(
                    "collateral.lien_released",
                    folio_number,
                    {"holder_kind": holder_kind.value, "holder_id": holder_id},
                )

        logger.info("Released %d lien(s) held by %s %s", released, holder_kind.value, holder_id)
        return released

    def migrate_link_to_loan(
        self, folio_numbers: Iterable[str], application_number: str, loan_number: str
    ) -> list[Collateral]:
        """Move liens from an application to the loan it produced.

        Every folio must currently be held by ``application_number``;
        anything else means the pledge bookkeeping has drifted and the
        whole migration fails.
        """
        migrated: list[Collateral] = []

        with self.events.batch(), self.store.transaction():
            for folio_number in folio_numbers:
                collateral = self.get(folio_number)
                if collateral.linked_application != application_number:
                    raise ConsistencyViolationError(
                        f"Collateral {folio_number} is not pledged to application "
                        f"{application_number} (holder: {collateral.lien})"
                    )
                collateral.lien = Lien(LienHolder.LOAN, loan_number, collateral.lien.marked_at)
                collateral.updated_at = self.clock()
                check_lien_invariant(collateral)
                self.store.save(self.COLLECTION, collateral)
                migrated.append(collateral)
                self.events.publish(
                    "collateral.lien_transferred",
                    folio_number,
                    {"from_application": application_number, "to_loan": loan_number},
                )

        logger.info(
            "Moved %d lien(s) from application %s to loan %s",
            len(migrated),
            application_number,
            loan_number,
        )
        return migrated
