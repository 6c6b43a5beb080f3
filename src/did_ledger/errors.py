"""Exception hierarchy for did-ledger.

Every exception raised by this package derives from :class:`LedgerError`,
so callers that do not care about the precise failure class can catch a
single type.
"""
from __future__ import annotations


class LedgerError(Exception):
    """Base exception for all did-ledger errors."""


class StoreError(LedgerError):
    """Raised when the world-state store fails a get, put, or scan call.

    Parameters
    ----------
    message:
        Human-readable description of the failed operation.
    cause:
        The underlying exception reported by the store, if any.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        if cause is not None:
            message = f"{message} {cause}"
        super().__init__(message)
        self.cause = cause


class RecordNotFoundError(LedgerError):
    """Raised when a storage key or DID identifier has no record."""

    def __init__(self, subject: str) -> None:
        super().__init__(f"{subject} does not exist")
        self.subject = subject


class SerializationFault(LedgerError):
    """Raised when stored bytes cannot be decoded into a DID record."""

    def __init__(self, key: str | None, reason: str) -> None:
        where = f"value at key {key!r}" if key is not None else "value"
        super().__init__(f"Malformed DID record {where}: {reason}")
        self.key = key
        self.reason = reason


class InvocationError(LedgerError):
    """Raised when a transaction names an unknown function or has the wrong arity."""
