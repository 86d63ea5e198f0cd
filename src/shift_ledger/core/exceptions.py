class DomainError(Exception):
    """Base exception for ledger rule violations."""


class ValidationError(DomainError):
    """Raised when input is malformed or out of range."""


class ConflictError(DomainError):
    """Raised when an operation is not valid for the current ledger state."""


class NotFoundError(DomainError):
    """Raised when a shift, break or action id is unknown."""


class ResourceExhaustedError(DomainError):
    """Raised when a bulk operation would touch too many rows."""


class StorageError(DomainError):
    """Raised when the underlying store is unavailable or fails."""
