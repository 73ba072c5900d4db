"""Outstanding obligation schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ledger.models.settlement_status import DisplayStatus, SettlementStatus


class CamelModel(BaseModel):
    """Base schema exposing camelCase JSON names over snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OutstandingCreate(CamelModel):
    user_id: str = Field(min_length=1, max_length=64)
    order_id: str | None = Field(default=None, max_length=64)
    invoice_number: str | None = Field(default=None, max_length=64)
    amount: Decimal
    pending_amount: Decimal | None = None
    due_date: date | None = None
    notes: str | None = None


class OutstandingUpdate(CamelModel):
    """Administrative correction. Only the fields sent are touched."""

    amount: Decimal | None = None
    pending_amount: Decimal | None = None
    cleared_amount: Decimal | None = None
    due_date: date | None = None
    status: SettlementStatus | None = None
    notes: str | None = None


class OutstandingResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: str
    order_id: str | None = None
    invoice_number: str | None = None
    amount: Decimal
    pending_amount: Decimal
    cleared_amount: Decimal
    due_date: date | None = None
    status: SettlementStatus
    display_status: DisplayStatus
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class OutstandingSummary(CamelModel):
    """Rollup over a set of obligations. Every field is zero when the set is empty."""

    total_amount: Decimal = Decimal("0")
    total_pending: Decimal = Decimal("0")
    total_cleared: Decimal = Decimal("0")
    total_count: int = 0
    pending_count: int = 0
    partial_count: int = 0
    overdue_count: int = 0
    cleared_count: int = 0


class DeleteResponse(CamelModel):
    success: bool = True
