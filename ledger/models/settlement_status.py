"""Settlement status variants and the single place they are derived.

Only ``pending``, ``partial`` and ``cleared`` are ever stored. ``overdue`` is a
view label computed from the stored status and the due date; both the Python
and the SQL form of that rule live here.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from sqlalchemy import and_


class SettlementStatus(str, Enum):
    """Persisted settlement state of an obligation."""

    PENDING = "pending"
    PARTIAL = "partial"
    CLEARED = "cleared"


class DisplayStatus(str, Enum):
    """Status shown to callers; adds the derived ``overdue`` label."""

    PENDING = "pending"
    PARTIAL = "partial"
    CLEARED = "cleared"
    OVERDUE = "overdue"


UNSETTLED_STATUSES = (SettlementStatus.PENDING, SettlementStatus.PARTIAL)


def derive_settlement_status(pending_amount: Decimal, cleared_amount: Decimal) -> SettlementStatus:
    """Status implied by the balances of an obligation."""
    if pending_amount == 0:
        return SettlementStatus.CLEARED
    if cleared_amount > 0:
        return SettlementStatus.PARTIAL
    return SettlementStatus.PENDING


def is_overdue(status: SettlementStatus | str, due_date: date | None, today: date) -> bool:
    if due_date is None:
        return False
    return SettlementStatus(status) in UNSETTLED_STATUSES and due_date < today


def derive_display_status(
    status: SettlementStatus | str, due_date: date | None, today: date
) -> DisplayStatus:
    if is_overdue(status, due_date, today):
        return DisplayStatus.OVERDUE
    return DisplayStatus(SettlementStatus(status).value)


def overdue_condition(status_column: Any, due_date_column: Any, today: date) -> Any:
    """SQL form of :func:`is_overdue` for filters and aggregates."""
    return and_(
        status_column.in_([s.value for s in UNSETTLED_STATUSES]),
        due_date_column.isnot(None),
        due_date_column < today,
    )
