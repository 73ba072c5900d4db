from ledger.repositories.idempotency_repository import IdempotencyRepository
from ledger.repositories.outstanding_history_repository import OutstandingHistoryRepository
from ledger.repositories.outstanding_repository import OutstandingRepository

__all__ = [
    "IdempotencyRepository",
    "OutstandingHistoryRepository",
    "OutstandingRepository",
]
