"""Outstanding model: one obligation owed by a retailer for an order or invoice."""

from sqlalchemy import CheckConstraint, Column, Date, DateTime, Index, Numeric, String, Text

from ledger.core.database import Base
from ledger.models.settlement_status import (
    DisplayStatus,
    SettlementStatus,
    derive_display_status,
)
from ledger.models.shared import UUIDType, business_today, generate_uuid, utc_now


class Outstanding(Base):
    """Outstanding model - amount owed, amount cleared and amount still pending.

    ``amount == pending_amount + cleared_amount`` must hold after every write.
    Balances change through the reconciliation service; everything else about
    the row is plain data.
    """

    __tablename__ = "outstanding"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(String(64), nullable=False, index=True)
    order_id = Column(String(64), nullable=True, index=True)
    invoice_number = Column(String(64), nullable=True)

    amount = Column(Numeric(12, 2), nullable=False)
    pending_amount = Column(Numeric(12, 2), nullable=False)
    cleared_amount = Column(Numeric(12, 2), nullable=False, default=0)

    due_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default=SettlementStatus.PENDING.value)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_outstanding_amount_pos"),
        CheckConstraint("pending_amount >= 0", name="ck_outstanding_pending_nonneg"),
        CheckConstraint("cleared_amount >= 0", name="ck_outstanding_cleared_nonneg"),
        Index("ix_outstanding_user_status", "user_id", "status"),
    )

    @property
    def display_status(self) -> DisplayStatus:
        return derive_display_status(self.status, self.due_date, business_today())  # type: ignore[arg-type]
