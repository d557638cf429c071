"""Repository for cached responses of idempotent discount requests."""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.idempotency_record import IdempotencyRecord


class IdempotencyRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_key(self, organization_id: UUID, idempotency_key: str) -> IdempotencyRecord | None:
        return (
            self.db.query(IdempotencyRecord)
            .filter(
                IdempotencyRecord.organization_id == organization_id,
                IdempotencyRecord.idempotency_key == idempotency_key,
            )
            .first()
        )

    def create(
        self,
        *,
        organization_id: UUID,
        idempotency_key: str,
        request_method: str,
        request_path: str,
    ) -> IdempotencyRecord:
        """Register a key before the request is processed; the response is stored later."""
        record = IdempotencyRecord(
            organization_id=organization_id,
            idempotency_key=idempotency_key,
            request_method=request_method,
            request_path=request_path,
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record

    def store_response(
        self,
        record: IdempotencyRecord,
        response_status: int,
        response_body: dict[str, Any],
    ) -> IdempotencyRecord:
        record.response_status = response_status  # type: ignore[assignment]
        record.response_body = response_body  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(record)
        return record

    def delete(self, record: IdempotencyRecord) -> None:
        self.db.delete(record)
        self.db.commit()

    def purge_older_than(self, max_age_hours: int) -> int:
        cutoff = datetime.now(UTC) - timedelta(hours=max_age_hours)
        count = (
            self.db.query(IdempotencyRecord)
            .filter(IdempotencyRecord.created_at < cutoff)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return int(count)
