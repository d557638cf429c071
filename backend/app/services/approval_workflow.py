"""Approval workflow for discounts above the requester's role limit.

Requests start ``pending``, may be escalated once by the sweep (still awaiting
a decision) and end in one of the terminal statuses. Every transition is a
compare-and-set on the current status, so a decision racing another decision
or the sweep fails with ``InvalidStateTransition`` instead of being overwritten.
The promo code reservation of a request is committed on approval and released
on every other terminal transition.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.approval_request import (
    OPEN_APPROVAL_STATUSES,
    ApprovalStatus,
    DiscountApprovalRequest,
)
from app.models.shared import ensure_aware, to_decimal, utc_now
from app.repositories.approval_request_repository import ApprovalRequestRepository
from app.schemas.approval import CounterOffer
from app.services.audit_service import AuditResource, AuditService
from app.services.discount_finalizer import DiscountFinalizer
from app.services.discounts.catalog import DiscountCatalog
from app.services.discounts.composer import DiscountComposer
from app.services.discounts.definitions import ApprovalPolicy, StackingPolicy
from app.services.discounts.errors import (
    ApprovalAlreadyPending,
    ApprovalNotFound,
    ApprovalPermissionDenied,
    InvalidStateTransition,
)
from app.services.discounts.types import CandidateSet, ComposedDiscount, compute_discount_amount
from app.services.usage_ledger import UsageLedger

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    escalated: int = 0
    expired: int = 0


def approval_reason(composed: ComposedDiscount, policy: ApprovalPolicy, role: str) -> str | None:
    """Why ``composed`` needs approval for ``role``, or None if it is within every limit."""
    if not policy.require_approval or composed.total_discount_amount <= 0:
        return None
    limit = policy.limit_for(role)
    if composed.total_discount_percent > limit.max_percent:
        return (
            f"Discount of {composed.total_discount_percent}% exceeds the "
            f"{role} limit of {limit.max_percent}%"
        )
    if limit.max_amount is not None and composed.total_discount_amount > limit.max_amount:
        return (
            f"Discount of {composed.total_discount_amount} exceeds the "
            f"{role} limit of {limit.max_amount}"
        )
    if policy.threshold_percent is not None and (
        composed.total_discount_percent > policy.threshold_percent
    ):
        return (
            f"Discount of {composed.total_discount_percent}% exceeds the approval "
            f"threshold of {policy.threshold_percent}%"
        )
    if policy.threshold_amount is not None and (
        composed.total_discount_amount > policy.threshold_amount
    ):
        return (
            f"Discount of {composed.total_discount_amount} exceeds the approval "
            f"threshold of {policy.threshold_amount}"
        )
    if policy.orders_over is not None and composed.order_amount > policy.orders_over:
        return (
            f"Order total of {composed.order_amount} exceeds {policy.orders_over}, "
            "above which every discount needs approval"
        )
    return None


def _stacking_policy_dict(policy: StackingPolicy) -> dict[str, Any]:
    return {
        "allow_code_rule_stacking": policy.allow_code_rule_stacking,
        "max_combined_percent": str(policy.max_combined_percent),
    }


def _stacking_policy_from(data: dict[str, Any] | None) -> StackingPolicy | None:
    if not data:
        return None
    return StackingPolicy(
        allow_code_rule_stacking=bool(data["allow_code_rule_stacking"]),
        max_combined_percent=Decimal(data["max_combined_percent"]),
    )


class ApprovalWorkflow:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ApprovalRequestRepository(db)
        self.ledger = UsageLedger(db)
        self.finalizer = DiscountFinalizer(db)
        self.composer = DiscountComposer()
        self.audit = AuditService(db)

    def open_request(
        self,
        organization_id: UUID,
        order_id: UUID,
        composed: ComposedDiscount,
        candidates: CandidateSet,
        stacking_policy: StackingPolicy,
        approval_policy: ApprovalPolicy,
        requested_by: str,
        requester_role: str,
        customer_id: UUID | None = None,
        reason: str | None = None,
        reservation_id: UUID | None = None,
    ) -> DiscountApprovalRequest:
        """Hold ``composed`` as a pending request.

        Raises:
            ApprovalAlreadyPending: If the order already has an open request.
        """
        try:
            request = self.repo.create(
                organization_id=organization_id,
                order_id=order_id,
                customer_id=customer_id,
                order_amount=composed.order_amount,
                requested_by=requested_by,
                requester_role=requester_role,
                requested_at=utc_now(),
                requested_discount_amount=composed.total_discount_amount,
                requested_discount_percent=composed.total_discount_percent,
                reason=reason,
                status=ApprovalStatus.PENDING.value,
                assigned_to=approval_policy.default_approver_id,
                reservation_id=reservation_id,
                evaluation={
                    "candidates": candidates.to_dict(),
                    "stacking_policy": _stacking_policy_dict(stacking_policy),
                },
            )
        except IntegrityError:
            self.db.rollback()
            raise ApprovalAlreadyPending(order_id) from None

        self.audit.log_create(
            AuditResource.APPROVAL_REQUEST,
            request.id,  # type: ignore[arg-type]
            organization_id,
            actor_id=requested_by,
            data={
                "order_id": order_id,
                "requested_discount_amount": composed.total_discount_amount,
                "requested_discount_percent": composed.total_discount_percent,
            },
        )
        logger.info(
            "Discount of %s on order %s held for approval (request %s)",
            composed.total_discount_amount,
            order_id,
            request.id,
        )
        return request

    def get(self, organization_id: UUID, request_id: UUID) -> DiscountApprovalRequest:
        request = self.repo.get_by_id(request_id, organization_id)
        if request is None:
            raise ApprovalNotFound(request_id)
        return request

    def list_requests(
        self,
        organization_id: UUID,
        status: ApprovalStatus | None = None,
        skip: int = 0,
        limit: int = 100,
        order_by: str | None = None,
    ) -> tuple[list[DiscountApprovalRequest], int]:
        """Requests with ``status``; without one, every request still awaiting a decision."""
        statuses = OPEN_APPROVAL_STATUSES if status is None else (status.value,)
        items = self.repo.get_all(
            organization_id, statuses=statuses, skip=skip, limit=limit, order_by=order_by
        )
        return items, self.repo.count(organization_id, statuses=statuses)

    def _transition(
        self,
        request: DiscountApprovalRequest,
        to_status: ApprovalStatus,
        action: str,
        values: dict[str, Any],
    ) -> None:
        """Move an open request to ``to_status``. Does not commit."""
        if request.status not in OPEN_APPROVAL_STATUSES:
            raise InvalidStateTransition(request.id, str(request.status), action)  # type: ignore[arg-type]
        values = {"status": to_status.value, "updated_at": utc_now(), **values}
        if not self.repo.transition(request.id, OPEN_APPROVAL_STATUSES, values):  # type: ignore[arg-type]
            self.db.rollback()
            self.db.refresh(request)
            raise InvalidStateTransition(request.id, str(request.status), action)  # type: ignore[arg-type]

    def _release_reservation(self, request: DiscountApprovalRequest, reason: str) -> None:
        if request.reservation_id is not None:
            self.ledger.release_usage(request.reservation_id, reason=reason)  # type: ignore[arg-type]

    def approve(
        self,
        organization_id: UUID,
        request_id: UUID,
        reviewer_id: str,
        counter_offer: CounterOffer | None = None,
        notes: str | None = None,
    ) -> DiscountApprovalRequest:
        """Approve a request and apply the discount to its order.

        With a counter-offer, the stored candidates are composed again, capped
        at the counter-offered amount.

        Raises:
            ApprovalNotFound, InvalidStateTransition, OrderAlreadyFinalized.
            ValueError: If the counter-offer exceeds the requested discount.
        """
        request = self.get(organization_id, request_id)
        if request.status not in OPEN_APPROVAL_STATUSES:
            raise InvalidStateTransition(request_id, str(request.status), "approve")

        order_amount = to_decimal(request.order_amount)
        requested = to_decimal(request.requested_discount_amount)
        evaluation: dict[str, Any] = request.evaluation or {}  # type: ignore[assignment]
        candidates = CandidateSet.from_dict(evaluation.get("candidates") or {})
        stacking = _stacking_policy_from(evaluation.get("stacking_policy"))
        if stacking is None:
            stacking, _ = DiscountCatalog(self.db).load_policies(organization_id)

        approved_cap: Decimal | None = None
        values: dict[str, Any] = {
            "reviewed_by": reviewer_id,
            "reviewed_at": utc_now(),
            "reviewer_notes": notes,
        }
        if counter_offer is not None:
            approved_cap = compute_discount_amount(
                counter_offer.discount_type, counter_offer.discount_value, order_amount
            )
            if approved_cap > requested:
                raise ValueError("Counter-offer cannot exceed the requested discount")
            values["counter_discount_type"] = counter_offer.discount_type.value
            values["counter_discount_value"] = counter_offer.discount_value

        composed = self.composer.compose(candidates, stacking, order_amount, approved_cap)
        values["approved_discount_amount"] = composed.total_discount_amount

        old_status = str(request.status)
        self._transition(request, ApprovalStatus.APPROVED, "approve", values)
        try:
            self.finalizer.finalize(
                organization_id,
                request.order_id,  # type: ignore[arg-type]
                composed,
                customer_id=request.customer_id,  # type: ignore[arg-type]
                reservation_id=request.reservation_id,  # type: ignore[arg-type]
                applied_by=reviewer_id,
                approval_request_id=request.id,  # type: ignore[arg-type]
            )
        except ValueError:
            self.db.rollback()
            raise

        self.audit.log_status_change(
            AuditResource.APPROVAL_REQUEST,
            request_id,
            organization_id,
            old_status=old_status,
            new_status=ApprovalStatus.APPROVED.value,
            actor_type="user",
            actor_id=reviewer_id,
            metadata={"approved_discount_amount": composed.total_discount_amount},
        )
        self.db.refresh(request)
        return request

    def reject(
        self,
        organization_id: UUID,
        request_id: UUID,
        reviewer_id: str,
        notes: str | None = None,
    ) -> DiscountApprovalRequest:
        request = self.get(organization_id, request_id)
        old_status = str(request.status)
        self._transition(
            request,
            ApprovalStatus.REJECTED,
            "reject",
            {"reviewed_by": reviewer_id, "reviewed_at": utc_now(), "reviewer_notes": notes},
        )
        self.db.commit()
        self._release_reservation(request, "approval_rejected")
        self.audit.log_status_change(
            AuditResource.APPROVAL_REQUEST,
            request_id,
            organization_id,
            old_status=old_status,
            new_status=ApprovalStatus.REJECTED.value,
            actor_type="user",
            actor_id=reviewer_id,
        )
        self.db.refresh(request)
        return request

    def cancel(
        self, organization_id: UUID, request_id: UUID, requester_id: str
    ) -> DiscountApprovalRequest:
        """Withdraw a request; only its requester may do so.

        Raises:
            ApprovalPermissionDenied: If ``requester_id`` did not open the request.
        """
        request = self.get(organization_id, request_id)
        if request.requested_by != requester_id:
            raise ApprovalPermissionDenied(
                f"Only {request.requested_by} can cancel approval request {request_id}"
            )
        old_status = str(request.status)
        self._transition(request, ApprovalStatus.CANCELLED, "cancel", {})
        self.db.commit()
        self._release_reservation(request, "approval_cancelled")
        self.audit.log_status_change(
            AuditResource.APPROVAL_REQUEST,
            request_id,
            organization_id,
            old_status=old_status,
            new_status=ApprovalStatus.CANCELLED.value,
            actor_type="user",
            actor_id=requester_id,
        )
        self.db.refresh(request)
        return request

    def sweep(self, now: datetime | None = None, batch_size: int = 500) -> SweepResult:
        """Escalate stale requests once and expire abandoned ones.

        Walks every open request in ``(requested_at, id)`` order, one page of
        ``batch_size`` at a time. Safe to run any number of times: already
        escalated or expired requests are left alone.
        """
        now = ensure_aware(now) if now is not None else utc_now()
        result = SweepResult()
        catalog = DiscountCatalog(self.db)
        policies: dict[UUID, ApprovalPolicy] = {}

        after: tuple[datetime, UUID] | None = None
        while batch := self.repo.get_open(after=after, limit=batch_size):
            last = batch[-1]
            after = (last.requested_at, last.id)  # type: ignore[assignment]
            for request in batch:
                organization_id: UUID = request.organization_id  # type: ignore[assignment]
                if organization_id not in policies:
                    policies[organization_id] = catalog.load_policies(organization_id)[1]
                self._sweep_request(request, policies[organization_id], now, result)

        if result.escalated or result.expired:
            logger.info(
                "Approval sweep escalated %d and expired %d request(s)",
                result.escalated,
                result.expired,
            )
        return result

    def _sweep_request(
        self,
        request: DiscountApprovalRequest,
        policy: ApprovalPolicy,
        now: datetime,
        result: SweepResult,
    ) -> None:
        request_id: UUID = request.id  # type: ignore[assignment]
        organization_id: UUID = request.organization_id  # type: ignore[assignment]
        age = now - ensure_aware(request.requested_at)  # type: ignore[arg-type]
        old_status = str(request.status)

        if age >= timedelta(hours=policy.auto_reject_after_hours):
            if self.repo.transition(
                request_id,
                OPEN_APPROVAL_STATUSES,
                {"status": ApprovalStatus.EXPIRED.value, "updated_at": now},
            ):
                self.db.commit()
                self._release_reservation(request, "approval_expired")
                self.audit.log_status_change(
                    AuditResource.APPROVAL_REQUEST,
                    request_id,
                    organization_id,
                    old_status=old_status,
                    new_status=ApprovalStatus.EXPIRED.value,
                )
                result.expired += 1
            return

        if age >= timedelta(hours=policy.escalation_after_hours) and request.escalated_at is None:
            escalated_to = policy.escalation_approver_id
            if self.repo.transition(
                request_id,
                (ApprovalStatus.PENDING.value,),
                {
                    "status": ApprovalStatus.ESCALATED.value,
                    "escalated_at": now,
                    "escalated_to": escalated_to,
                    "assigned_to": escalated_to or request.assigned_to,
                    "updated_at": now,
                },
                unescalated_only=True,
            ):
                self.db.commit()
                self.audit.log_status_change(
                    AuditResource.APPROVAL_REQUEST,
                    request_id,
                    organization_id,
                    old_status=ApprovalStatus.PENDING.value,
                    new_status=ApprovalStatus.ESCALATED.value,
                    metadata={"escalated_to": escalated_to},
                )
                result.escalated += 1
