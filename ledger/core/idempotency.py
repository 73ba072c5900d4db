"""Idempotency support for API endpoints.

Provides a helper that checks for the ``Idempotency-Key`` header.
If a cached response exists for the key, the helper returns a JSONResponse
directly; otherwise it returns ``None`` so the endpoint can proceed normally.
After the endpoint completes, call ``record_idempotency_response`` to persist
the response for future replays.

Keys are scoped: a payment key is scoped to the paying user, an admin key to
the admin surface, so two retailers can never collide on the same key.
"""

from dataclasses import dataclass
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ledger.repositories.idempotency_repository import IdempotencyRepository

REPLAYED_HEADER = "Idempotency-Replayed"


@dataclass
class IdempotencyResult:
    """Holds pending idempotency key info for later recording."""

    key: str
    scope: str
    method: str
    path: str


def check_idempotency(
    request: Request,
    db: Session,
    scope: str,
) -> JSONResponse | IdempotencyResult | None:
    """Check the ``Idempotency-Key`` header for a cached response.

    Returns:
        - ``None`` if no ``Idempotency-Key`` header is present (no idempotency).
        - A ``JSONResponse`` with the cached response and ``Idempotency-Replayed: true``
          header if a completed record already exists.
        - An ``IdempotencyResult`` with the key details if this is a new request that
          should be recorded after processing.
    """
    key = request.headers.get("Idempotency-Key")
    if not key:
        return None

    repo = IdempotencyRepository(db)
    existing = repo.get_by_key(scope, key)

    if existing is not None and existing.response_status is not None:
        response = JSONResponse(
            content=existing.response_body,
            status_code=int(existing.response_status),
        )
        response.headers[REPLAYED_HEADER] = "true"
        return response

    if existing is None:
        repo.create(
            scope=scope,
            idempotency_key=key,
            request_method=request.method,
            request_path=request.url.path,
        )
        db.commit()

    return IdempotencyResult(
        key=key,
        scope=scope,
        method=request.method,
        path=request.url.path,
    )


def record_idempotency_response(
    db: Session,
    pending: IdempotencyResult,
    status: int,
    body: dict[str, Any] | list[Any],
) -> None:
    """Persist the endpoint response so subsequent calls return the cached result."""
    repo = IdempotencyRepository(db)
    record = repo.get_by_key(pending.scope, pending.key)
    if record is not None:
        repo.update_response(record, status, body)
        db.commit()
