"""Ledger store operations on obligations and their history.

Creation, lookup, listing, administrative correction and deletion. Payments
never go through here; see ``reconciliation_service``.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from ledger.core.config import settings
from ledger.core.database import unit_of_work
from ledger.core.errors import (
    NotFoundError,
    ObligationHasHistoryError,
    StorageError,
    ValidationError,
)
from ledger.models.outstanding import Outstanding
from ledger.models.outstanding_history import OutstandingHistory
from ledger.models.settlement_status import DisplayStatus, SettlementStatus, derive_settlement_status
from ledger.models.shared import business_today
from ledger.repositories.outstanding_history_repository import OutstandingHistoryRepository
from ledger.repositories.outstanding_repository import OutstandingRepository
from ledger.services.amounts import to_money, to_positive_money

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Outstanding record not found"

BALANCE_FIELDS = ("amount", "pending_amount", "cleared_amount", "status")


class OutstandingService:
    """Service for obligation records."""

    def __init__(self, db: Session):
        self.db = db
        self.outstanding_repo = OutstandingRepository(db)
        self.history_repo = OutstandingHistoryRepository(db)

    def create_obligation(
        self,
        user_id: str,
        amount: Any,
        order_id: str | None = None,
        invoice_number: str | None = None,
        due_date: date | None = None,
        notes: str | None = None,
        pending_amount: Any = None,
    ) -> Outstanding:
        """Create an obligation in the ``pending`` state.

        ``pending_amount`` is only for importing obligations that were already
        partly paid elsewhere; the difference is recorded as cleared.
        """
        if not user_id or not str(user_id).strip():
            raise ValidationError("userId is required")
        total = to_positive_money(amount)

        pending = total if pending_amount is None else to_money(pending_amount, "pendingAmount")
        if pending < 0 or pending > total:
            raise ValidationError("pendingAmount must be between 0 and amount")
        cleared = total - pending

        obligation = Outstanding(
            user_id=str(user_id).strip(),
            order_id=order_id,
            invoice_number=invoice_number,
            amount=total,
            pending_amount=pending,
            cleared_amount=cleared,
            due_date=due_date,
            status=derive_settlement_status(pending, cleared).value,
            notes=notes,
        )
        with unit_of_work(self.db, "create obligation"):
            self.outstanding_repo.add(obligation)
        logger.info("Created obligation %s for user %s: %s", obligation.id, obligation.user_id, total)
        return obligation

    def get_obligation(self, outstanding_id: UUID) -> Outstanding:
        obligation = self.outstanding_repo.get_by_id(outstanding_id)
        if obligation is None:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        return obligation

    def list_obligations(
        self,
        user_id: str | None = None,
        status: DisplayStatus | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Outstanding]:
        return self.outstanding_repo.get_all(
            business_today(), user_id=user_id, status=status, skip=skip, limit=limit
        )

    def count_obligations(
        self, user_id: str | None = None, status: DisplayStatus | None = None
    ) -> int:
        return self.outstanding_repo.count(business_today(), user_id=user_id, status=status)

    def update_obligation_fields(self, outstanding_id: UUID, fields: dict[str, Any]) -> Outstanding:
        """Back-office correction of an obligation.

        Missing balances are derived from the ones supplied, and the result
        must still satisfy ``amount == pending + cleared``. A supplied status
        must agree with the balances.

        New balances are only written if no payment moved the stored ones since
        they were read; otherwise the correction is validated again against the
        fresh row.
        """
        with unit_of_work(self.db, "update obligation"):
            obligation, changes = self._apply_correction(outstanding_id, fields)
        logger.info("Corrected obligation %s: %s", outstanding_id, sorted(changes))
        return obligation

    def _apply_correction(
        self, outstanding_id: UUID, fields: dict[str, Any]
    ) -> tuple[Outstanding, dict[str, Any]]:
        for attempt in range(1, settings.PAYMENT_MAX_ATTEMPTS + 1):
            obligation = self.outstanding_repo.get_by_id(outstanding_id, for_update=True)
            if obligation is None:
                raise NotFoundError(NOT_FOUND_MESSAGE)
            changes = self._validated_changes(obligation, fields)

            plain = {key: value for key, value in changes.items() if key not in BALANCE_FIELDS}
            if "pending_amount" in changes:
                swapped = self.outstanding_repo.compare_and_set_balances(
                    obligation.id,  # type: ignore[arg-type]
                    expected_pending=Decimal(str(obligation.pending_amount)),
                    expected_cleared=Decimal(str(obligation.cleared_amount)),
                    pending_amount=changes["pending_amount"],
                    cleared_amount=changes["cleared_amount"],
                    status=SettlementStatus(changes["status"]),
                    amount=changes["amount"],
                )
                if not swapped:
                    logger.info(
                        "Obligation %s changed during correction, re-reading (attempt %d/%d)",
                        outstanding_id,
                        attempt,
                        settings.PAYMENT_MAX_ATTEMPTS,
                    )
                    self.db.rollback()
                    continue
            elif "status" in changes:
                plain["status"] = changes["status"]

            self.outstanding_repo.update_fields(obligation, plain)
            return obligation, changes

        raise StorageError("Outstanding record is being modified concurrently, retry the update")

    def _validated_changes(self, obligation: Outstanding, fields: dict[str, Any]) -> dict[str, Any]:
        changes: dict[str, Any] = {}
        for key in ("due_date", "notes"):
            if key in fields:
                changes[key] = fields[key]

        touches_balances = any(
            fields.get(key) is not None for key in ("amount", "pending_amount", "cleared_amount")
        )
        amount = Decimal(str(obligation.amount))
        pending = Decimal(str(obligation.pending_amount))
        cleared = Decimal(str(obligation.cleared_amount))

        if touches_balances:
            if fields.get("amount") is not None:
                amount = to_positive_money(fields["amount"])
            new_pending = fields.get("pending_amount")
            new_cleared = fields.get("cleared_amount")
            if new_pending is not None and new_cleared is not None:
                pending = to_money(new_pending, "pendingAmount")
                cleared = to_money(new_cleared, "clearedAmount")
            elif new_pending is not None:
                pending = to_money(new_pending, "pendingAmount")
                cleared = amount - pending
            elif new_cleared is not None:
                cleared = to_money(new_cleared, "clearedAmount")
                pending = amount - cleared
            else:
                pending = amount - cleared

            if pending < 0 or cleared < 0:
                raise ValidationError("pendingAmount and clearedAmount must not be negative")
            if pending + cleared != amount:
                raise ValidationError("amount must equal pendingAmount + clearedAmount")
            changes.update(amount=amount, pending_amount=pending, cleared_amount=cleared)

        derived = derive_settlement_status(pending, cleared)
        requested = fields.get("status")
        if requested is not None and SettlementStatus(requested) != derived:
            raise ValidationError(
                f"status '{SettlementStatus(requested).value}' does not match balances "
                f"(expected '{derived.value}')"
            )
        if touches_balances or requested is not None:
            changes["status"] = derived.value
        return changes

    def delete_obligation(self, outstanding_id: UUID) -> None:
        """Delete an obligation that has no payment history."""
        with unit_of_work(self.db, "delete obligation"):
            obligation = self.outstanding_repo.get_by_id(outstanding_id, for_update=True)
            if obligation is None:
                raise NotFoundError(NOT_FOUND_MESSAGE)
            if self.history_repo.exists_for(outstanding_id):
                raise ObligationHasHistoryError(
                    "Outstanding record has payment history and cannot be deleted"
                )
            self.outstanding_repo.delete(obligation)
        logger.info("Deleted obligation %s", outstanding_id)

    def append_history(self, entry: OutstandingHistory) -> OutstandingHistory:
        """Insert one history row. Flush only; the caller commits with its balance update."""
        return self.history_repo.append(entry)

    def list_history(
        self,
        outstanding_id: UUID | None = None,
        user_id: str | None = None,
        payment_method: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[OutstandingHistory]:
        """History rows, newest first."""
        return self.history_repo.get_all(
            outstanding_id=outstanding_id,
            user_id=user_id,
            payment_method=payment_method,
            date_from=date_from,
            date_to=date_to,
            skip=skip,
            limit=limit,
        )

    def get_obligation_history(self, outstanding_id: UUID) -> list[OutstandingHistory]:
        self.get_obligation(outstanding_id)
        return self.list_history(outstanding_id=outstanding_id)
