"""Tests for custom exception hierarchy."""

import pytest

from lamf_core.exceptions import (
    ActiveLoanBlockError,
    AlreadyMarkedError,
    AlreadyPaidError,
    ConfigurationError,
    ConsistencyViolationError,
    DuplicateFolioError,
    DuplicateKeyError,
    EntityNotFoundError,
    InvalidEntityStateError,
    InvalidOrPledgedCollateralError,
    InvalidTransitionError,
    LoanClosedError,
    LoanEngineError,
    LtvExceededError,
    NotMarkedError,
    ProductInactiveError,
    ProductLimitError,
    ReferentialIntegrityError,
    SinkError,
    StaleEntityError,
    StorageError,
    ValidationError,
)


class TestExceptionHierarchy:
    """Test exception inheritance chain."""

    def test_loan_engine_error_is_exception(self) -> None:
        assert isinstance(LoanEngineError("test"), Exception)

    @pytest.mark.parametrize(
        "error_class",
        [ProductLimitError, LtvExceededError, DuplicateFolioError],
    )
    def test_validation_family(self, error_class: type) -> None:
        err = error_class("test")
        assert isinstance(err, ValidationError)
        assert err.kind == "validation"

    @pytest.mark.parametrize(
        "error_class",
        [
            InvalidTransitionError,
            ProductInactiveError,
            AlreadyMarkedError,
            NotMarkedError,
            ActiveLoanBlockError,
            AlreadyPaidError,
            LoanClosedError,
        ],
    )
    def test_state_family(self, error_class: type) -> None:
        err = error_class("test")
        assert isinstance(err, InvalidEntityStateError)
        assert err.kind == "state"

    def test_referential_integrity_is_entity_not_found(self) -> None:
        err = InvalidOrPledgedCollateralError("test")
        assert isinstance(err, ReferentialIntegrityError)
        assert isinstance(err, EntityNotFoundError)
        assert err.kind == "referential"

    def test_stale_entity_is_consistency_violation(self) -> None:
        err = StaleEntityError("test")
        assert isinstance(err, ConsistencyViolationError)
        assert err.kind == "consistency"

    def test_duplicate_key_is_storage_error(self) -> None:
        assert DuplicateKeyError("test").kind == "storage"
        assert isinstance(DuplicateKeyError("test"), StorageError)

    def test_configuration_and_sink_kinds(self) -> None:
        assert ConfigurationError("test").kind == "configuration"
        assert SinkError("test").kind == "sink"

    def test_every_error_is_loan_engine_error(self) -> None:
        for error_class in (ValidationError, InvalidEntityStateError, EntityNotFoundError,
                            ConsistencyViolationError, StorageError, ConfigurationError, SinkError):
            assert isinstance(error_class("test"), LoanEngineError)

    def test_exception_message(self) -> None:
        err = InvalidTransitionError("Cannot transition from draft to approved")
        assert str(err) == "Cannot transition from draft to approved"
