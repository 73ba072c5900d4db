"""Outstanding history repository for data access."""

from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from ledger.models.outstanding_history import OutstandingHistory


class OutstandingHistoryRepository:
    """Repository for OutstandingHistory model. Insert and read only."""

    def __init__(self, db: Session):
        self.db = db

    def append(self, entry: OutstandingHistory) -> OutstandingHistory:
        self.db.add(entry)
        self.db.flush()
        return entry

    def get_all(
        self,
        outstanding_id: UUID | None = None,
        user_id: str | None = None,
        payment_method: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[OutstandingHistory]:
        """Get history rows with optional filters, newest first."""
        query = self.db.query(OutstandingHistory)

        if outstanding_id is not None:
            query = query.filter(OutstandingHistory.outstanding_id == outstanding_id)
        if user_id is not None:
            query = query.filter(OutstandingHistory.user_id == user_id)
        if payment_method is not None:
            query = query.filter(OutstandingHistory.payment_method == payment_method)
        if date_from is not None:
            query = query.filter(OutstandingHistory.payment_date >= date_from)
        if date_to is not None:
            query = query.filter(OutstandingHistory.payment_date <= date_to)

        query = query.order_by(OutstandingHistory.created_at.desc())
        if skip:
            query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def get_by_transaction_id(
        self, outstanding_id: UUID, transaction_id: str
    ) -> OutstandingHistory | None:
        return (
            self.db.query(OutstandingHistory)
            .filter(
                OutstandingHistory.outstanding_id == outstanding_id,
                OutstandingHistory.transaction_id == transaction_id,
            )
            .first()
        )

    def exists_for(self, outstanding_id: UUID) -> bool:
        return (
            self.db.query(OutstandingHistory.id)
            .filter(OutstandingHistory.outstanding_id == outstanding_id)
            .first()
            is not None
        )
