"""Outstanding repository for data access.

Repositories never commit; the calling service owns the transaction.
"""

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import case
from sqlalchemy import func as sa_func
from sqlalchemy.orm import Query, Session

from ledger.models.outstanding import Outstanding
from ledger.models.settlement_status import (
    DisplayStatus,
    SettlementStatus,
    overdue_condition,
)
from ledger.models.shared import utc_now


class OutstandingRepository:
    """Repository for Outstanding model."""

    def __init__(self, db: Session):
        self.db = db

    def _filtered(
        self,
        user_id: str | None,
        status: DisplayStatus | None,
        today: date,
    ) -> Query:  # type: ignore[type-arg]
        query = self.db.query(Outstanding)
        if user_id is not None:
            query = query.filter(Outstanding.user_id == user_id)
        if status == DisplayStatus.OVERDUE:
            query = query.filter(overdue_condition(Outstanding.status, Outstanding.due_date, today))
        elif status is not None:
            query = query.filter(Outstanding.status == status.value)
        return query

    def get_all(
        self,
        today: date,
        user_id: str | None = None,
        status: DisplayStatus | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Outstanding]:
        """Obligations ordered by due date (undated last), newest first within a date."""
        query = self._filtered(user_id, status, today).order_by(
            Outstanding.due_date.is_(None).asc(),
            Outstanding.due_date.asc(),
            Outstanding.created_at.desc(),
        )
        if skip:
            query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count(
        self,
        today: date,
        user_id: str | None = None,
        status: DisplayStatus | None = None,
    ) -> int:
        return self._filtered(user_id, status, today).count()

    def get_by_id(self, outstanding_id: UUID, for_update: bool = False) -> Outstanding | None:
        query = self.db.query(Outstanding).filter(Outstanding.id == outstanding_id)
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def get_for_user(
        self, outstanding_id: UUID, user_id: str, for_update: bool = False
    ) -> Outstanding | None:
        """Get an obligation only if it belongs to ``user_id``."""
        query = self.db.query(Outstanding).filter(
            Outstanding.id == outstanding_id,
            Outstanding.user_id == user_id,
        )
        if for_update:
            query = query.with_for_update().populate_existing()
        return query.first()

    def add(self, outstanding: Outstanding) -> Outstanding:
        self.db.add(outstanding)
        self.db.flush()
        return outstanding

    def update_fields(self, outstanding: Outstanding, fields: dict[str, Any]) -> Outstanding:
        for key, value in fields.items():
            setattr(outstanding, key, value)
        self.db.flush()
        return outstanding

    def compare_and_set_balances(
        self,
        outstanding_id: UUID,
        *,
        expected_pending: Decimal,
        expected_cleared: Decimal,
        pending_amount: Decimal,
        cleared_amount: Decimal,
        status: SettlementStatus,
        amount: Decimal | None = None,
    ) -> bool:
        """Write new balances only if the stored ones are still the ones we read.

        ``amount`` is only rewritten when given. Returns False when another
        transaction changed the row first.
        """
        values: dict[Any, Any] = {
            Outstanding.pending_amount: pending_amount,
            Outstanding.cleared_amount: cleared_amount,
            Outstanding.status: status.value,
            Outstanding.updated_at: utc_now(),
        }
        if amount is not None:
            values[Outstanding.amount] = amount
        updated = (
            self.db.query(Outstanding)
            .filter(
                Outstanding.id == outstanding_id,
                Outstanding.pending_amount == expected_pending,
                Outstanding.cleared_amount == expected_cleared,
            )
            .update(values, synchronize_session=False)
        )
        return bool(updated == 1)

    def delete(self, outstanding: Outstanding) -> None:
        self.db.delete(outstanding)
        self.db.flush()

    def summarize(self, today: date, user_id: str | None = None) -> dict[str, Any]:
        """Totals and per-status counts in one aggregate query."""

        def count_where(condition: Any) -> Any:
            return sa_func.coalesce(sa_func.sum(case((condition, 1), else_=0)), 0)

        query = self.db.query(
            sa_func.coalesce(sa_func.sum(Outstanding.amount), 0).label("total_amount"),
            sa_func.coalesce(sa_func.sum(Outstanding.pending_amount), 0).label("total_pending"),
            sa_func.coalesce(sa_func.sum(Outstanding.cleared_amount), 0).label("total_cleared"),
            sa_func.count(Outstanding.id).label("total_count"),
            count_where(Outstanding.status == SettlementStatus.PENDING.value).label("pending_count"),
            count_where(Outstanding.status == SettlementStatus.PARTIAL.value).label("partial_count"),
            count_where(
                overdue_condition(Outstanding.status, Outstanding.due_date, today)
            ).label("overdue_count"),
            count_where(Outstanding.status == SettlementStatus.CLEARED.value).label("cleared_count"),
        )
        if user_id is not None:
            query = query.filter(Outstanding.user_id == user_id)

        row = query.one()
        return dict(row._mapping)
