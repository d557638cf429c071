"""DiscountApprovalRequest repository for data access."""

from collections.abc import Sequence
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from app.core.sorting import apply_order_by
from app.models.approval_request import OPEN_APPROVAL_STATUSES, DiscountApprovalRequest


class ApprovalRequestRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, **values: Any) -> DiscountApprovalRequest:
        request = DiscountApprovalRequest(**values)
        self.db.add(request)
        self.db.commit()
        self.db.refresh(request)
        return request

    def get_by_id(
        self, request_id: UUID, organization_id: UUID | None = None
    ) -> DiscountApprovalRequest | None:
        query = self.db.query(DiscountApprovalRequest).filter(
            DiscountApprovalRequest.id == request_id
        )
        if organization_id is not None:
            query = query.filter(DiscountApprovalRequest.organization_id == organization_id)
        return query.first()

    def get_all(
        self,
        organization_id: UUID,
        statuses: Sequence[str] = OPEN_APPROVAL_STATUSES,
        skip: int = 0,
        limit: int = 100,
        order_by: str | None = None,
    ) -> list[DiscountApprovalRequest]:
        query = self.db.query(DiscountApprovalRequest).filter(
            DiscountApprovalRequest.organization_id == organization_id,
            DiscountApprovalRequest.status.in_(list(statuses)),
        )
        query = apply_order_by(
            query,
            DiscountApprovalRequest,
            order_by,
            default_field="requested_at",
            default_direction="asc",
        )
        return query.offset(skip).limit(limit).all()

    def count(self, organization_id: UUID, statuses: Sequence[str] = OPEN_APPROVAL_STATUSES) -> int:
        return (
            self.db.query(DiscountApprovalRequest)
            .filter(
                DiscountApprovalRequest.organization_id == organization_id,
                DiscountApprovalRequest.status.in_(list(statuses)),
            )
            .count()
        )

    def get_open_for_order(
        self, organization_id: UUID, order_id: UUID
    ) -> DiscountApprovalRequest | None:
        return (
            self.db.query(DiscountApprovalRequest)
            .filter(
                DiscountApprovalRequest.organization_id == organization_id,
                DiscountApprovalRequest.order_id == order_id,
                DiscountApprovalRequest.status.in_(OPEN_APPROVAL_STATUSES),
            )
            .first()
        )

    def get_open(
        self, after: tuple[datetime, UUID] | None = None, limit: int = 500
    ) -> list[DiscountApprovalRequest]:
        """Open requests across all organizations, oldest first.

        Pages by ``(requested_at, id)``: pass the key of the last row of the
        previous page as ``after``.
        """
        query = self.db.query(DiscountApprovalRequest).filter(
            DiscountApprovalRequest.status.in_(OPEN_APPROVAL_STATUSES)
        )
        if after is not None:
            requested_at, request_id = after
            query = query.filter(
                or_(
                    DiscountApprovalRequest.requested_at > requested_at,
                    and_(
                        DiscountApprovalRequest.requested_at == requested_at,
                        DiscountApprovalRequest.id > request_id,
                    ),
                )
            )
        return (
            query.order_by(
                DiscountApprovalRequest.requested_at.asc(), DiscountApprovalRequest.id.asc()
            )
            .limit(limit)
            .all()
        )

    def transition(
        self,
        request_id: UUID,
        from_statuses: Sequence[str],
        values: dict[str, Any],
        unescalated_only: bool = False,
    ) -> bool:
        """Compare-and-set update that applies only while the status is in ``from_statuses``.

        Does not commit.
        """
        query = self.db.query(DiscountApprovalRequest).filter(
            DiscountApprovalRequest.id == request_id,
            DiscountApprovalRequest.status.in_(list(from_statuses)),
        )
        if unescalated_only:
            query = query.filter(DiscountApprovalRequest.escalated_at.is_(None))
        updates = {getattr(DiscountApprovalRequest, key): value for key, value in values.items()}
        updated = query.update(updates, synchronize_session=False)
        return bool(updated)
