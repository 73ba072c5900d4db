"""Payment reconciliation: the only path that moves money on an obligation.

A payment is applied in one transaction:

1. validate the amount before touching storage,
2. load the obligation for the paying user (row lock where supported),
3. answer a repeated ``transaction_id`` as a replay instead of applying it again,
4. reject anything that would push ``pending_amount`` below zero,
5. swap in the new balances only if the stored ones are unchanged since step 2,
6. append the history row and commit.

If step 5 finds the row changed (a concurrent payment won), the transaction
re-reads the committed balances and validates again.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ledger.core.config import settings
from ledger.core.errors import (
    LedgerError,
    NotFoundError,
    OverpaymentError,
    StorageError,
    ValidationError,
)
from ledger.models.outstanding import Outstanding
from ledger.models.outstanding_history import (
    DEFAULT_PAYMENT_DESCRIPTION,
    HistoryStatus,
    OutstandingHistory,
)
from ledger.models.settlement_status import derive_settlement_status
from ledger.models.shared import business_today
from ledger.repositories.outstanding_history_repository import OutstandingHistoryRepository
from ledger.repositories.outstanding_repository import OutstandingRepository
from ledger.services.amounts import to_positive_money
from ledger.services.outstanding_service import NOT_FOUND_MESSAGE, OutstandingService

logger = logging.getLogger(__name__)


@dataclass
class PaymentResult:
    """Outcome of ``apply_payment``.

    ``replayed`` is True when the transaction id had already been applied and
    nothing changed.
    """

    obligation: Outstanding
    history: OutstandingHistory
    replayed: bool = False


class ReconciliationService:
    """Applies payments to obligations."""

    def __init__(self, db: Session, max_attempts: int | None = None):
        self.db = db
        self.max_attempts = max_attempts or settings.PAYMENT_MAX_ATTEMPTS
        self.outstanding_repo = OutstandingRepository(db)
        self.history_repo = OutstandingHistoryRepository(db)
        self.store = OutstandingService(db)

    def apply_payment(
        self,
        outstanding_id: UUID,
        user_id: str,
        amount: Any,
        payment_method: str | None = None,
        transaction_id: str | None = None,
        description: str | None = None,
        payment_date: date | None = None,
    ) -> PaymentResult:
        """Apply a payment to one of ``user_id``'s obligations.

        Raises:
            ValidationError: amount is not a positive two-decimal number, or the
                transaction id was already used with a different amount.
            NotFoundError: no such obligation for this user.
            OverpaymentError: amount exceeds the pending balance.
            StorageError: the transaction failed and was rolled back.
        """
        payment = to_positive_money(amount)
        transaction_id = transaction_id or None

        try:
            return self._apply(
                outstanding_id,
                user_id,
                payment,
                payment_method=payment_method,
                transaction_id=transaction_id,
                description=description,
                payment_date=payment_date,
            )
        except LedgerError:
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            if transaction_id is not None:
                replay = self._replay_after_conflict(outstanding_id, user_id, transaction_id, payment)
                if replay is not None:
                    return replay
            logger.exception("Integrity failure applying payment to %s", outstanding_id)
            raise StorageError("Database error") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Storage failure applying payment to %s", outstanding_id)
            raise StorageError("Database error") from e

    def _apply(
        self,
        outstanding_id: UUID,
        user_id: str,
        payment: Decimal,
        *,
        payment_method: str | None,
        transaction_id: str | None,
        description: str | None,
        payment_date: date | None,
    ) -> PaymentResult:
        for attempt in range(1, self.max_attempts + 1):
            obligation = self.outstanding_repo.get_for_user(outstanding_id, user_id, for_update=True)
            if obligation is None:
                raise NotFoundError(NOT_FOUND_MESSAGE)

            if transaction_id is not None:
                previous = self.history_repo.get_by_transaction_id(obligation.id, transaction_id)  # type: ignore[arg-type]
                if previous is not None:
                    result = self._replay(obligation, previous, payment)
                    self.db.commit()
                    return result

            pending = Decimal(str(obligation.pending_amount))
            cleared = Decimal(str(obligation.cleared_amount))
            new_pending = pending - payment
            new_cleared = cleared + payment
            if new_pending < 0:
                logger.warning(
                    "Rejected payment of %s on %s: pending is %s", payment, outstanding_id, pending
                )
                raise OverpaymentError("Payment amount exceeds pending amount")

            new_status = derive_settlement_status(new_pending, new_cleared)
            swapped = self.outstanding_repo.compare_and_set_balances(
                obligation.id,  # type: ignore[arg-type]
                expected_pending=pending,
                expected_cleared=cleared,
                pending_amount=new_pending,
                cleared_amount=new_cleared,
                status=new_status,
            )
            if not swapped:
                logger.info(
                    "Obligation %s changed during payment, re-reading (attempt %d/%d)",
                    outstanding_id,
                    attempt,
                    self.max_attempts,
                )
                self.db.rollback()
                continue

            history = self.store.append_history(
                OutstandingHistory(
                    outstanding_id=obligation.id,
                    user_id=obligation.user_id,
                    amount=payment,
                    payment_method=payment_method,
                    transaction_id=transaction_id,
                    payment_date=payment_date or business_today(),
                    description=description or DEFAULT_PAYMENT_DESCRIPTION,
                    status=HistoryStatus.COMPLETED.value,
                )
            )
            self.db.commit()
            self.db.refresh(obligation)
            logger.info(
                "Applied payment of %s to %s: pending %s -> %s (%s)",
                payment,
                outstanding_id,
                pending,
                new_pending,
                new_status.value,
            )
            return PaymentResult(obligation=obligation, history=history)

        raise StorageError("Outstanding record is being modified concurrently, retry the payment")

    def _replay(
        self, obligation: Outstanding, previous: OutstandingHistory, payment: Decimal
    ) -> PaymentResult:
        if Decimal(str(previous.amount)) != payment:
            raise ValidationError(
                f"transactionId '{previous.transaction_id}' was already used for a different amount"
            )
        logger.info(
            "Payment %s on %s already applied, returning prior result",
            previous.transaction_id,
            obligation.id,
        )
        return PaymentResult(obligation=obligation, history=previous, replayed=True)

    def _replay_after_conflict(
        self, outstanding_id: UUID, user_id: str, transaction_id: str, payment: Decimal
    ) -> PaymentResult | None:
        """A concurrent request inserted the same transaction id first."""
        obligation = self.outstanding_repo.get_for_user(outstanding_id, user_id)
        if obligation is None:
            return None
        previous = self.history_repo.get_by_transaction_id(outstanding_id, transaction_id)
        if previous is None:
            return None
        return self._replay(obligation, previous, payment)
