from ledger.models.idempotency_record import IdempotencyRecord
from ledger.models.outstanding import Outstanding
from ledger.models.outstanding_history import HistoryStatus, OutstandingHistory
from ledger.models.settlement_status import DisplayStatus, SettlementStatus

__all__ = [
    "DisplayStatus",
    "HistoryStatus",
    "IdempotencyRecord",
    "Outstanding",
    "OutstandingHistory",
    "SettlementStatus",
]
