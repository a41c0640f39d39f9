"""Applicant generator."""

from __future__ import annotations

import string
from typing import Iterator

from lamf_core.generators.base import BaseGenerator
from lamf_core.models.application import Applicant
from lamf_core.models.base import Address


class ApplicantGenerator(BaseGenerator):
    """Generate synthetic Indian retail borrowers."""

    def generate(self) -> Applicant:
        """Generate a single applicant.

        Returns
        -------
        Applicant
            Applicant with a well-formed PAN and a postal address.
        """
        name = self.fake.name()
        return Applicant(
            name=name,
            email=self.fake.email(),
            phone=self.fake.phone_number(),
            pan=self.pan(),
            address=Address(
                line1=self.fake.street_address(),
                city=self.fake.city(),
                state=self.fake.state(),
                postal_code=self.fake.postcode(),
            ),
            date_of_birth=self.fake.date_of_birth(minimum_age=21, maximum_age=70),
        )

    def generate_batch(self, count: int) -> Iterator[Applicant]:
        for _ in range(count):
            yield self.generate()

    def pan(self) -> str:
        """Random PAN in the AAAAA9999A shape."""
        return self.fake.bothify("?????####?", letters=string.ascii_uppercase)
