"""Concurrent writes against one obligation on a file database."""

import threading
from collections.abc import Iterator
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

import pytest

from ledger.core.database import Database, create_db_engine
from ledger.core.errors import LedgerError, OverpaymentError
from ledger.models.settlement_status import SettlementStatus
from ledger.repositories.outstanding_history_repository import OutstandingHistoryRepository
from ledger.services.outstanding_service import OutstandingService
from ledger.services.reconciliation_service import PaymentResult, ReconciliationService
from tests.conftest import RETAILER_ID


@pytest.fixture
def file_database(tmp_path: Path) -> Iterator[Database]:
    engine = create_db_engine(f"sqlite:///{tmp_path / 'ledger.db'}", connect_args={"timeout": 30})
    database = Database(engine)
    database.create_all()
    yield database
    database.dispose()


def _pay_concurrently(database: Database, outstanding_id, amounts: list[str]) -> list[object]:  # type: ignore[no-untyped-def]
    barrier = threading.Barrier(len(amounts))
    results: list[object] = [None] * len(amounts)

    def worker(index: int, amount: str) -> None:
        session = database.session()
        try:
            barrier.wait()
            results[index] = ReconciliationService(session).apply_payment(outstanding_id, RETAILER_ID, amount)
        except LedgerError as e:
            results[index] = e
        finally:
            session.close()

    threads = [threading.Thread(target=worker, args=(i, a)) for i, a in enumerate(amounts)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return results


class TestConcurrentPayments:
    def test_two_overlapping_payments_only_one_succeeds(self, file_database: Database) -> None:
        session = file_database.session()
        try:
            obligation = OutstandingService(session).create_obligation(
                user_id=RETAILER_ID, amount=Decimal("1000.00")
            )
            outstanding_id = obligation.id
        finally:
            session.close()

        results = _pay_concurrently(file_database, outstanding_id, ["600.00", "600.00"])

        successes = [r for r in results if isinstance(r, PaymentResult)]
        failures = [r for r in results if isinstance(r, OverpaymentError)]
        assert len(successes) == 1
        assert len(failures) == 1

        session = file_database.session()
        try:
            fresh = OutstandingService(session).get_obligation(outstanding_id)
            assert Decimal(str(fresh.pending_amount)) == Decimal("400.00")
            assert Decimal(str(fresh.cleared_amount)) == Decimal("600.00")
            assert fresh.status == SettlementStatus.PARTIAL.value
            history = OutstandingHistoryRepository(session).get_all(outstanding_id=outstanding_id)
            assert len(history) == 1
        finally:
            session.close()

    def test_payments_that_fit_all_apply(self, file_database: Database) -> None:
        session = file_database.session()
        try:
            outstanding_id = OutstandingService(session).create_obligation(
                user_id=RETAILER_ID, amount=Decimal("1000.00")
            ).id
        finally:
            session.close()

        results = _pay_concurrently(file_database, outstanding_id, ["100.00", "200.00", "300.00"])
        assert all(isinstance(r, PaymentResult) for r in results)

        session = file_database.session()
        try:
            fresh = OutstandingService(session).get_obligation(outstanding_id)
            assert Decimal(str(fresh.pending_amount)) == Decimal("400.00")
            assert Decimal(str(fresh.cleared_amount)) == Decimal("600.00")
        finally:
            session.close()


class TestCorrectionDuringPayment:
    def test_payment_committed_mid_correction_is_kept(self, file_database: Database) -> None:
        session = file_database.session()
        try:
            service = OutstandingService(session)
            outstanding_id = service.create_obligation(user_id=RETAILER_ID, amount=Decimal("1000.00")).id

            real_validate = OutstandingService._validated_changes
            calls = {"count": 0}

            def pay_before_first_validation(self, obligation, fields):  # type: ignore[no-untyped-def]
                calls["count"] += 1
                if calls["count"] == 1:
                    other = file_database.session()
                    try:
                        ReconciliationService(other).apply_payment(outstanding_id, RETAILER_ID, "400.00")
                    finally:
                        other.close()
                return real_validate(self, obligation, fields)

            with patch.object(OutstandingService, "_validated_changes", pay_before_first_validation):
                corrected = service.update_obligation_fields(outstanding_id, {"amount": Decimal("1200.00")})

            assert calls["count"] == 2
            assert Decimal(str(corrected.amount)) == Decimal("1200.00")
            assert Decimal(str(corrected.pending_amount)) == Decimal("800.00")
            assert Decimal(str(corrected.cleared_amount)) == Decimal("400.00")
            assert corrected.status == SettlementStatus.PARTIAL.value
            history = OutstandingHistoryRepository(session).get_all(outstanding_id=outstanding_id)
            assert len(history) == 1
        finally:
            session.close()
