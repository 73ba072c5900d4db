"""OutstandingHistory model: append-only trail of settlement events."""

from enum import Enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Numeric, String, Text, UniqueConstraint

from ledger.core.database import Base
from ledger.models.shared import UUIDType, generate_uuid, utc_now

DEFAULT_PAYMENT_DESCRIPTION = "Payment received"


class HistoryStatus(str, Enum):
    """Outcome of a settlement event."""

    COMPLETED = "completed"


class OutstandingHistory(Base):
    """One payment applied to an obligation. Rows are never updated or deleted."""

    __tablename__ = "outstanding_history"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    outstanding_id = Column(
        UUIDType, ForeignKey("outstanding.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    user_id = Column(String(64), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(50), nullable=True)
    transaction_id = Column(String(255), nullable=True)
    payment_date = Column(Date, nullable=False)
    description = Column(Text, nullable=True, default=DEFAULT_PAYMENT_DESCRIPTION)
    status = Column(String(20), nullable=False, default=HistoryStatus.COMPLETED.value)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        UniqueConstraint(
            "outstanding_id", "transaction_id", name="uq_outstanding_history_transaction"
        ),
        Index("ix_outstanding_history_created", "outstanding_id", "created_at"),
    )
