"""Read-side rollups over obligations."""

from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from ledger.core.database import unit_of_work
from ledger.models.shared import business_today
from ledger.repositories.outstanding_repository import OutstandingRepository
from ledger.schemas.outstanding import OutstandingSummary
from ledger.services.amounts import CENT


class SummaryService:
    """Computes summaries straight from the stored obligations on every call."""

    def __init__(self, db: Session):
        self.db = db
        self.outstanding_repo = OutstandingRepository(db)

    def get_summary(self, user_id: str | None = None, today: date | None = None) -> OutstandingSummary:
        """Summary for one user, or for every obligation when ``user_id`` is None."""
        with unit_of_work(self.db, "summarize obligations"):
            row = self.outstanding_repo.summarize(today or business_today(), user_id=user_id)

        return OutstandingSummary(
            total_amount=_money(row["total_amount"]),
            total_pending=_money(row["total_pending"]),
            total_cleared=_money(row["total_cleared"]),
            total_count=int(row["total_count"] or 0),
            pending_count=int(row["pending_count"] or 0),
            partial_count=int(row["partial_count"] or 0),
            overdue_count=int(row["overdue_count"] or 0),
            cleared_count=int(row["cleared_count"] or 0),
        )


def _money(value: object) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT)
