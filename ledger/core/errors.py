"""Domain errors raised by the ledger services.

The HTTP layer maps each class to a status code; services never build
HTTP responses themselves.
"""


class LedgerError(Exception):
    """Base class for all ledger errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Malformed or out-of-range input."""

    status_code = 400


class OverpaymentError(LedgerError):
    """Payment would drive the pending amount below zero."""

    status_code = 400


class NotFoundError(LedgerError):
    """Obligation missing, or not owned by the requesting user."""

    status_code = 404


class ObligationHasHistoryError(LedgerError):
    """Obligation cannot be deleted while payment history references it."""

    status_code = 409


class StorageError(LedgerError):
    """Transaction or connection failure; the unit of work was rolled back."""

    status_code = 500
