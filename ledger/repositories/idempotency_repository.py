"""Repository for IdempotencyRecord CRUD operations."""

from typing import Any

from sqlalchemy.orm import Session

from ledger.models.idempotency_record import IdempotencyRecord


class IdempotencyRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_key(self, scope: str, idempotency_key: str) -> IdempotencyRecord | None:
        return (
            self.db.query(IdempotencyRecord)
            .filter(
                IdempotencyRecord.scope == scope,
                IdempotencyRecord.idempotency_key == idempotency_key,
            )
            .first()
        )

    def create(
        self,
        *,
        scope: str,
        idempotency_key: str,
        request_method: str,
        request_path: str,
    ) -> IdempotencyRecord:
        record = IdempotencyRecord(
            scope=scope,
            idempotency_key=idempotency_key,
            request_method=request_method,
            request_path=request_path,
        )
        self.db.add(record)
        self.db.flush()
        return record

    def update_response(
        self,
        record: IdempotencyRecord,
        response_status: int,
        response_body: dict[str, Any] | list[Any],
    ) -> IdempotencyRecord:
        record.response_status = response_status  # type: ignore[assignment]
        record.response_body = response_body  # type: ignore[assignment]
        self.db.flush()
        return record
