"""Payment and payment history schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import ConfigDict, Field

from ledger.schemas.outstanding import CamelModel


class PaymentCreate(CamelModel):
    """Body of a payment request.

    ``amount`` is range-checked by the reconciliation service so that every
    caller gets the same error for a non-positive amount.
    """

    outstanding_id: UUID
    amount: Decimal
    payment_method: str | None = Field(default=None, max_length=50)
    transaction_id: str | None = Field(default=None, max_length=255)
    description: str | None = None
    payment_date: date | None = None


class OutstandingHistoryResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    outstanding_id: UUID
    user_id: str
    amount: Decimal
    payment_method: str | None = None
    transaction_id: str | None = None
    payment_date: date
    description: str | None = None
    status: str
    created_at: datetime
