"""Error taxonomy shared by the data layer, live queries and the importer."""

from __future__ import annotations


class ChatVaultError(RuntimeError):
    """Base class for errors raised by the chat store core."""


class ValidationError(ChatVaultError):
    """Raised for malformed input before any write happens."""


class TransactionError(ChatVaultError):
    """Raised when a multi-statement mutation failed and was rolled back."""


class StoreCorruptionError(ChatVaultError):
    """Raised when the database file fails its integrity check."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("Database integrity check failed: " + "; ".join(self.errors))


class SubscriptionError(ChatVaultError):
    """Raised when a live query's dependency set cannot be determined."""


class ImporterFailure(ChatVaultError):
    """Raised when the external importer reports a failure."""


class ImporterCancelled(ChatVaultError):
    """Raised when the external importer honored a cancel request."""
