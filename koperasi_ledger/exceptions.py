"""Custom exception hierarchy for koperasi-ledger."""


class LedgerError(Exception):
    """Base exception for all koperasi-ledger errors."""


class FetchError(LedgerError):
    """Raised when a whole data refresh fails at the backend."""


class EntityNotFoundError(LedgerError):
    """Raised when a referenced entity does not exist."""


class InvalidEntityStateError(LedgerError):
    """Raised when an entity is in an invalid state for the operation."""


class ConfigurationError(LedgerError):
    """Raised when configuration is invalid or missing."""


class SinkError(LedgerError):
    """Raised when a sink operation fails."""
