"""Outstanding balance API endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ledger.core.database import get_db
from ledger.core.idempotency import (
    REPLAYED_HEADER,
    IdempotencyResult,
    check_idempotency,
    record_idempotency_response,
)
from ledger.models.outstanding import Outstanding
from ledger.models.outstanding_history import OutstandingHistory
from ledger.models.settlement_status import DisplayStatus
from ledger.schemas.outstanding import (
    DeleteResponse,
    OutstandingCreate,
    OutstandingResponse,
    OutstandingSummary,
    OutstandingUpdate,
)
from ledger.schemas.outstanding_history import OutstandingHistoryResponse, PaymentCreate
from ledger.services.outstanding_service import OutstandingService
from ledger.services.reconciliation_service import ReconciliationService
from ledger.services.summary_service import SummaryService

router = APIRouter()

ADMIN_SCOPE = "admin"


def _outstanding_body(obligation: Outstanding) -> dict:  # type: ignore[type-arg]
    return OutstandingResponse.model_validate(obligation).model_dump(mode="json", by_alias=True)


@router.get(
    "",
    response_model=list[OutstandingResponse],
    summary="List all obligations",
    responses={400: {"description": "Invalid filter"}},
)
async def list_all_outstanding(
    response: Response,
    status: DisplayStatus | None = None,
    user_id: str | None = Query(default=None, alias="userId"),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> list[Outstanding]:
    """List every obligation, optionally filtered by retailer and status."""
    service = OutstandingService(db)
    response.headers["X-Total-Count"] = str(service.count_obligations(user_id=user_id, status=status))
    return service.list_obligations(user_id=user_id, status=status, skip=skip, limit=limit)


@router.get(
    "/summary/all",
    response_model=OutstandingSummary,
    summary="Global summary",
)
async def get_global_summary(db: Session = Depends(get_db)) -> OutstandingSummary:
    """Totals and per-status counts across every retailer."""
    return SummaryService(db).get_summary()


@router.get(
    "/history/all",
    response_model=list[OutstandingHistoryResponse],
    summary="List all payment history",
    responses={400: {"description": "Invalid filter"}},
)
async def list_all_history(
    outstanding_id: UUID | None = Query(default=None, alias="outstandingId"),
    user_id: str | None = Query(default=None, alias="userId"),
    payment_method: str | None = Query(default=None, alias="paymentMethod"),
    date_from: date | None = Query(default=None, alias="dateFrom"),
    date_to: date | None = Query(default=None, alias="dateTo"),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> list[OutstandingHistory]:
    """Payment events across obligations, newest first."""
    return OutstandingService(db).list_history(
        outstanding_id=outstanding_id,
        user_id=user_id,
        payment_method=payment_method,
        date_from=date_from,
        date_to=date_to,
        skip=skip,
        limit=limit,
    )


@router.post(
    "",
    response_model=OutstandingResponse,
    status_code=201,
    summary="Create obligation",
    responses={400: {"description": "Invalid amount or missing user"}},
)
async def create_outstanding(
    data: OutstandingCreate,
    request: Request,
    db: Session = Depends(get_db),
) -> Outstanding | JSONResponse:
    """Record a new amount owed by a retailer."""
    idempotency = check_idempotency(request, db, ADMIN_SCOPE)
    if isinstance(idempotency, JSONResponse):
        return idempotency

    obligation = OutstandingService(db).create_obligation(
        user_id=data.user_id,
        amount=data.amount,
        order_id=data.order_id,
        invoice_number=data.invoice_number,
        due_date=data.due_date,
        notes=data.notes,
        pending_amount=data.pending_amount,
    )

    if isinstance(idempotency, IdempotencyResult):
        record_idempotency_response(db, idempotency, 201, _outstanding_body(obligation))

    return obligation


@router.get(
    "/{user_id}/summary",
    response_model=OutstandingSummary,
    summary="Retailer summary",
)
async def get_user_summary(user_id: str, db: Session = Depends(get_db)) -> OutstandingSummary:
    """Totals and per-status counts for one retailer. All zeros when they owe nothing."""
    return SummaryService(db).get_summary(user_id=user_id)


@router.get(
    "/{outstanding_id}/history",
    response_model=list[OutstandingHistoryResponse],
    summary="Obligation payment history",
    responses={404: {"description": "Outstanding record not found"}},
)
async def get_outstanding_history(
    outstanding_id: UUID,
    db: Session = Depends(get_db),
) -> list[OutstandingHistory]:
    return OutstandingService(db).get_obligation_history(outstanding_id)


@router.post(
    "/{user_id}/pay",
    response_model=OutstandingResponse,
    summary="Apply payment",
    responses={
        400: {"description": "Invalid amount, reused transaction id or overpayment"},
        404: {"description": "Outstanding record not found"},
    },
)
async def pay_outstanding(
    user_id: str,
    data: PaymentCreate,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
) -> Outstanding | JSONResponse:
    """Apply a payment to one of the retailer's obligations.

    Resending a ``transactionId`` that was already applied returns the current
    obligation unchanged with ``Idempotency-Replayed: true``.
    """
    idempotency = check_idempotency(request, db, f"user:{user_id}")
    if isinstance(idempotency, JSONResponse):
        return idempotency

    result = ReconciliationService(db).apply_payment(
        outstanding_id=data.outstanding_id,
        user_id=user_id,
        amount=data.amount,
        payment_method=data.payment_method,
        transaction_id=data.transaction_id,
        description=data.description,
        payment_date=data.payment_date,
    )
    if result.replayed:
        response.headers[REPLAYED_HEADER] = "true"

    if isinstance(idempotency, IdempotencyResult):
        record_idempotency_response(db, idempotency, 200, _outstanding_body(result.obligation))

    return result.obligation


@router.get(
    "/{user_id}",
    response_model=list[OutstandingResponse],
    summary="List retailer obligations",
    responses={400: {"description": "Invalid status filter"}},
)
async def list_user_outstanding(
    user_id: str,
    status: DisplayStatus | None = None,
    db: Session = Depends(get_db),
) -> list[Outstanding]:
    """Obligations of one retailer, soonest due first."""
    return OutstandingService(db).list_obligations(user_id=user_id, status=status)


@router.put(
    "/{outstanding_id}",
    response_model=OutstandingResponse,
    summary="Correct obligation",
    responses={
        400: {"description": "Balances or status inconsistent"},
        404: {"description": "Outstanding record not found"},
    },
)
async def update_outstanding(
    outstanding_id: UUID,
    data: OutstandingUpdate,
    db: Session = Depends(get_db),
) -> Outstanding:
    """Back-office correction. Only the fields sent are changed."""
    return OutstandingService(db).update_obligation_fields(
        outstanding_id, data.model_dump(exclude_unset=True)
    )


@router.delete(
    "/{outstanding_id}",
    response_model=DeleteResponse,
    summary="Delete obligation",
    responses={
        404: {"description": "Outstanding record not found"},
        409: {"description": "Obligation has payment history"},
    },
)
async def delete_outstanding(
    outstanding_id: UUID,
    db: Session = Depends(get_db),
) -> DeleteResponse:
    OutstandingService(db).delete_obligation(outstanding_id)
    return DeleteResponse(success=True)
