"""Loan product generator."""

from __future__ import annotations

import random
from decimal import Decimal

from lamf_core.generators.base import BaseGenerator
from lamf_core.models.product import LoanProduct


class ProductGenerator(BaseGenerator):
    """Generate loan-against-mutual-funds product definitions."""

    # (name, rate range %, max LTV %, amount range INR, tenure range months)
    TEMPLATES = [
        ("Equity Fund Credit Line", (10.0, 12.5), 50, (25_000, 5_000_000), (6, 36)),
        ("Debt Fund Credit Line", (9.0, 11.0), 80, (25_000, 10_000_000), (6, 36)),
        ("Short Term LAMF", (10.5, 13.0), 50, (10_000, 1_000_000), (3, 12)),
        ("Wealth Secured Loan", (9.5, 11.5), 60, (500_000, 20_000_000), (12, 60)),
    ]

    def generate(self, index: int | None = None) -> LoanProduct:
        """Generate a product from one of the templates.

        Parameters
        ----------
        index : int | None
            Template to use; random when omitted.
        """
        if index is None:
            index = random.randrange(len(self.TEMPLATES))
        name, (rate_low, rate_high), max_ltv, (min_amount, max_amount), (min_tenure, max_tenure) = (
            self.TEMPLATES[index % len(self.TEMPLATES)]
        )

        return LoanProduct(
            product_id=f"PRD-{self.fake.unique.numerify('####')}",
            name=name,
            description=self.fake.sentence(nb_words=10),
            interest_rate=Decimal(str(round(random.uniform(rate_low, rate_high), 2))),
            min_amount=Decimal(min_amount),
            max_amount=Decimal(max_amount),
            min_tenure=min_tenure,
            max_tenure=max_tenure,
            max_ltv=Decimal(max_ltv),
            processing_fee=Decimal(str(round(random.uniform(0.25, 1.5), 2))),
        )

    def generate_catalog(self) -> list[LoanProduct]:
        """One product per template."""
        return [self.generate(i) for i in range(len(self.TEMPLATES))]
