from ledger.schemas.outstanding import (
    DeleteResponse,
    OutstandingCreate,
    OutstandingResponse,
    OutstandingSummary,
    OutstandingUpdate,
)
from ledger.schemas.outstanding_history import OutstandingHistoryResponse, PaymentCreate

__all__ = [
    "DeleteResponse",
    "OutstandingCreate",
    "OutstandingHistoryResponse",
    "OutstandingResponse",
    "OutstandingSummary",
    "OutstandingUpdate",
    "PaymentCreate",
]
