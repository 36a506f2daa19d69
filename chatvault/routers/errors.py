"""Translate core errors into HTTP errors."""

from fastapi import HTTPException

from chatvault.errors import (
    ChatVaultError,
    ImporterFailure,
    StoreCorruptionError,
    SubscriptionError,
    TransactionError,
    ValidationError,
)

_STATUS_CODES: list[tuple[type[ChatVaultError], int]] = [
    (ValidationError, 422),
    (TransactionError, 409),
    (ImporterFailure, 503),
    (StoreCorruptionError, 503),
    (SubscriptionError, 500),
]


def to_http_exception(exc: ChatVaultError) -> HTTPException:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
