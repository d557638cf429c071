"""Idempotency support for discount endpoints.

``POST /v1/discounts/evaluate`` may reserve a scarce promo code slot. Clients
retrying a request send the same ``Idempotency-Key`` header; the first response
is stored and replayed so a retry never reserves twice.
"""

from dataclasses import dataclass
from typing import Any
from uuid import UUID

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.repositories.idempotency_repository import IdempotencyRepository


@dataclass
class IdempotencyResult:
    """A key seen for the first time, to be completed with the response."""

    key: str
    method: str
    path: str


def check_idempotency(
    request: Request,
    db: Session,
    organization_id: UUID,
) -> JSONResponse | IdempotencyResult | None:
    """Look up the ``Idempotency-Key`` header.

    Returns:
        - ``None`` when the header is absent.
        - A ``JSONResponse`` replaying the stored response, flagged with
          ``Idempotency-Replayed: true``, when the key has already completed.
        - An ``IdempotencyResult`` when the request should be processed and its
          response recorded with ``record_idempotency_response``.

    Raises ``HTTPException`` (422) when the key was first sent to another endpoint.
    """
    key = request.headers.get("Idempotency-Key")
    if not key:
        return None

    repo = IdempotencyRepository(db)
    existing = repo.get_by_key(organization_id, key)

    if existing is not None and (existing.request_method, existing.request_path) != (
        request.method,
        request.url.path,
    ):
        raise HTTPException(
            status_code=422,
            detail="Idempotency-Key was already used for a different endpoint",
        )

    if existing is not None and existing.response_status is not None:
        response = JSONResponse(
            content=existing.response_body,
            status_code=int(existing.response_status),
        )
        response.headers["Idempotency-Replayed"] = "true"
        return response

    if existing is None:
        repo.create(
            organization_id=organization_id,
            idempotency_key=key,
            request_method=request.method,
            request_path=request.url.path,
        )

    return IdempotencyResult(key=key, method=request.method, path=request.url.path)


def record_idempotency_response(
    db: Session,
    organization_id: UUID,
    key: str,
    status: int,
    body: dict[str, Any],
) -> None:
    repo = IdempotencyRepository(db)
    record = repo.get_by_key(organization_id, key)
    if record is not None:
        repo.store_response(record, status, body)


def discard_idempotency_key(db: Session, organization_id: UUID, key: str) -> None:
    """Forget a key whose request failed, so the client can retry it."""
    repo = IdempotencyRepository(db)
    record = repo.get_by_key(organization_id, key)
    if record is not None and record.response_status is None:
        repo.delete(record)
