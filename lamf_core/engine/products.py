"""Loan product catalog."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal
from typing import Any

from lamf_core.engine.money import to_decimal
from lamf_core.exceptions import EntityNotFoundError, ProductLimitError, ValidationError
from lamf_core.models.enums import ProductStatus
from lamf_core.models.product import LoanProduct
from lamf_core.store.base import DocumentStore

logger = logging.getLogger(__name__)

MAX_INTEREST_RATE = Decimal("50")
MAX_LTV = Decimal("100")
MAX_PROCESSING_FEE = Decimal("10")

UPDATABLE_FIELDS = {
    "name",
    "description",
    "interest_rate",
    "min_amount",
    "max_amount",
    "min_tenure",
    "max_tenure",
    "max_ltv",
    "processing_fee",
    "status",
}


def validate_product(product: LoanProduct) -> LoanProduct:
    """Normalize numeric fields and check the product's internal limits."""
    if not product.product_id or not product.product_id.strip():
        raise ValidationError("Product id is required")
    product.name = (product.name or "").strip()
    if not product.name:
        raise ValidationError("Product name is required")
    if len(product.name) > 100:
        raise ValidationError("Product name cannot exceed 100 characters")
    product.description = (product.description or "").strip()
    if len(product.description) > 500:
        raise ValidationError("Description cannot exceed 500 characters")

    product.interest_rate = to_decimal(product.interest_rate, "interest rate")
    product.min_amount = to_decimal(product.min_amount, "minimum amount")
    product.max_amount = to_decimal(product.max_amount, "maximum amount")
    product.max_ltv = to_decimal(product.max_ltv, "maximum LTV")
    product.processing_fee = to_decimal(product.processing_fee, "processing fee")
    try:
        product.status = ProductStatus(product.status)
    except ValueError:
        raise ValidationError(f"Unknown product status {product.status!r}") from None

    if not 0 <= product.interest_rate <= MAX_INTEREST_RATE:
        raise ValidationError(f"Interest rate must be between 0 and {MAX_INTEREST_RATE}%")
    if product.min_amount < 0:
        raise ValidationError("Minimum amount cannot be negative")
    if product.max_amount < product.min_amount:
        raise ValidationError("Maximum amount must be greater than or equal to minimum amount")
    if product.min_tenure < 1:
        raise ValidationError("Minimum tenure must be at least 1 month")
    if product.max_tenure < product.min_tenure:
        raise ValidationError("Maximum tenure must be greater than or equal to minimum tenure")
    if not 0 <= product.max_ltv <= MAX_LTV:
        raise ValidationError(f"LTV must be between 0 and {MAX_LTV}%")
    if not 0 <= product.processing_fee <= MAX_PROCESSING_FEE:
        raise ValidationError(f"Processing fee must be between 0 and {MAX_PROCESSING_FEE}%")
    return product


def check_product_limits(product: LoanProduct, amount: Decimal, tenure: int) -> None:
    """Raise ProductLimitError if amount or tenure is outside the product range."""
    if amount < product.min_amount or amount > product.max_amount:
        raise ProductLimitError(
            f"Requested amount must be between {product.min_amount} and {product.max_amount}"
        )
    if tenure < product.min_tenure or tenure > product.max_tenure:
        raise ProductLimitError(
            f"Tenure must be between {product.min_tenure} and {product.max_tenure} months"
        )


class ProductCatalog:
    """Register and maintain loan products."""

    COLLECTION = "products"

    def __init__(
        self,
        store: DocumentStore,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self.clock = clock

    def get(self, product_id: str) -> LoanProduct:
        """Return a product or raise EntityNotFoundError."""
        product = self.store.find_by_id(self.COLLECTION, product_id)
        if product is None:
            raise EntityNotFoundError(f"Loan product {product_id} not found")
        return product

    def register(self, product: LoanProduct) -> LoanProduct:
        """Validate and store a new product."""
        validate_product(product)
        now = self.clock()
        product.created_at = now
        product.updated_at = now

        with self.store.transaction():
            if self.store.find_by_id(self.COLLECTION, product.product_id) is not None:
                raise ValidationError(f"Loan product {product.product_id} already exists")
            self.store.create(self.COLLECTION, product)

        logger.info("Registered loan product %s (%s)", product.product_id, product.name)
        return product

    def update(self, product_id: str, **changes: Any) -> LoanProduct:
        """Apply field changes to a product and re-validate it."""
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update product fields: {', '.join(sorted(unknown))}")

        with self.store.transaction():
            product = dataclasses.replace(self.get(product_id), **changes)
            validate_product(product)
            product.updated_at = self.clock()
            self.store.save(self.COLLECTION, product)

        logger.info("Updated loan product %s: %s", product_id, ", ".join(sorted(changes)))
        return product

    def activate(self, product_id: str) -> LoanProduct:
        return self.update(product_id, status=ProductStatus.ACTIVE)

    def deactivate(self, product_id: str) -> LoanProduct:
        return self.update(product_id, status=ProductStatus.INACTIVE)
