"""Synthetic data generators."""

from lamf_core.generators.applicant import ApplicantGenerator
from lamf_core.generators.base import BaseGenerator
from lamf_core.generators.collateral import CollateralGenerator
from lamf_core.generators.product import ProductGenerator

__all__ = [
    "ApplicantGenerator",
    "BaseGenerator",
    "CollateralGenerator",
    "ProductGenerator",
]
