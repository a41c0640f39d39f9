"""Mutual fund collateral generator."""

from __future__ import annotations

import random
import string
from decimal import Decimal
from typing import Iterator

from lamf_core.generators.base import BaseGenerator
from lamf_core.models.collateral import Collateral
from lamf_core.models.enums import SchemeType


class CollateralGenerator(BaseGenerator):
    """Generate folios of mutual fund units an investor could pledge."""

    AMCS = [
        "HDFC Mutual Fund",
        "ICICI Prudential Mutual Fund",
        "SBI Mutual Fund",
        "Axis Mutual Fund",
        "Kotak Mahindra Mutual Fund",
        "Nippon India Mutual Fund",
        "Aditya Birla Sun Life Mutual Fund",
        "UTI Mutual Fund",
    ]

    SCHEMES = {
        SchemeType.EQUITY: ["Bluechip Fund", "Flexi Cap Fund", "Midcap Opportunities Fund", "ELSS Tax Saver Fund"],
        SchemeType.DEBT: ["Corporate Bond Fund", "Short Term Debt Fund", "Gilt Fund"],
        SchemeType.HYBRID: ["Balanced Advantage Fund", "Equity Hybrid Fund"],
        SchemeType.LIQUID: ["Liquid Fund", "Overnight Fund"],
    }
    SCHEME_WEIGHTS = [0.55, 0.25, 0.12, 0.08]

    # NAV ranges per scheme type (INR per unit)
    NAV_RANGES = {
        SchemeType.EQUITY: (20, 900),
        SchemeType.DEBT: (10, 60),
        SchemeType.HYBRID: (15, 300),
        SchemeType.LIQUID: (1000, 4500),
    }

    def generate(
        self,
        investor_name: str | None = None,
        investor_pan: str | None = None,
        target_value: Decimal | None = None,
    ) -> Collateral:
        """Generate a single folio.

        Parameters
        ----------
        investor_name : str | None
            Holder of the units.
        investor_pan : str | None
            Holder's PAN.
        target_value : Decimal | None
            Approximate market value to size the holding to; random
            when omitted.

        Returns
        -------
        Collateral
            Unregistered collateral (no lien, value not yet computed).
        """
        scheme_type = random.choices(list(self.SCHEMES), weights=self.SCHEME_WEIGHTS, k=1)[0]
        amc = random.choice(self.AMCS)
        nav_low, nav_high = self.NAV_RANGES[scheme_type]
        nav = Decimal(str(round(random.uniform(nav_low, nav_high), 4)))

        if target_value is None:
            target_value = Decimal(random.randint(50, 2000) * 1000)
        units = (Decimal(target_value) / nav).quantize(Decimal("0.001"))

        return Collateral(
            folio_number=self.fake.unique.numerify("########/##"),
            fund_name=f"{amc.removesuffix(' Mutual Fund')} {random.choice(self.SCHEMES[scheme_type])}",
            amc_name=amc,
            scheme_type=scheme_type,
            isin="INF" + self.fake.bothify("???######", letters=string.ascii_uppercase),
            units=units,
            nav_per_unit=nav,
            investor_name=investor_name,
            investor_pan=investor_pan,
        )

    def generate_batch(self, count: int, **kwargs) -> Iterator[Collateral]:
        for _ in range(count):
            yield self.generate(**kwargs)

    def nav_move(self, nav: Decimal, volatility: float = 0.03) -> Decimal:
        """Next NAV after a random relative move of up to ``volatility``."""
        factor = Decimal(str(round(1 + random.uniform(-volatility, volatility), 6)))
        return (nav * factor).quantize(Decimal("0.0001"))
