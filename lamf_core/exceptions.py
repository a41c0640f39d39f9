"""Custom exception hierarchy for lamf-core.

Every error carries a ``kind`` so an outer API layer can map it to a stable
response without inspecting the concrete class. ``str(err)`` is the reason.
"""


class LoanEngineError(Exception):
    """Base exception for all lamf-core errors."""

    kind = "error"


class ValidationError(LoanEngineError):
    """Raised when input is malformed or outside allowed ranges."""

    kind = "validation"


class ProductLimitError(ValidationError):
    """Raised when amount or tenure falls outside the product limits."""


class LtvExceededError(ValidationError):
    """Raised when the loan-to-value ratio exceeds the product maximum."""


class DuplicateFolioError(ValidationError):
    """Raised when registering a folio number that already exists."""


class InvalidEntityStateError(LoanEngineError):
    """Raised when an entity is in an invalid state for the operation."""

    kind = "state"


class InvalidTransitionError(InvalidEntityStateError):
    """Raised when a status transition is not in the allowed table."""


class ProductInactiveError(InvalidEntityStateError):
    """Raised when applying against an inactive loan product."""


class AlreadyMarkedError(InvalidEntityStateError):
    """Raised when pledging collateral that already carries a lien."""


class NotMarkedError(InvalidEntityStateError):
    """Raised when releasing collateral that carries no lien."""


class ActiveLoanBlockError(InvalidEntityStateError):
    """Raised when releasing collateral held by an active loan."""


class AlreadyPaidError(InvalidEntityStateError):
    """Raised when recording a payment for an installment already paid."""


class LoanClosedError(InvalidEntityStateError):
    """Raised when recording a payment against a closed loan."""


class EntityNotFoundError(LoanEngineError):
    """Raised when a referenced entity does not exist."""

    kind = "referential"


class ReferentialIntegrityError(EntityNotFoundError):
    """Raised when a reference resolves to a record that cannot be used."""


class InvalidOrPledgedCollateralError(ReferentialIntegrityError):
    """Raised when requested folios are unknown or already pledged."""


class ConsistencyViolationError(LoanEngineError):
    """Raised when an operation would break a cross-entity invariant."""

    kind = "consistency"


class StaleEntityError(ConsistencyViolationError):
    """Raised when saving an entity whose version is no longer current."""


class StorageError(LoanEngineError):
    """Raised when the persistence layer fails."""

    kind = "storage"


class DuplicateKeyError(StorageError):
    """Raised when creating a record whose key is already taken."""


class ConfigurationError(LoanEngineError):
    """Raised when configuration is invalid or missing."""

    kind = "configuration"


class SinkError(LoanEngineError):
    """Raised when an event sink operation fails."""

    kind = "sink"
