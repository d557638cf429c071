"""Discount evaluation and approval API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.auth import get_current_organization
from app.core.config import settings
from app.core.database import get_db
from app.core.idempotency import (
    IdempotencyResult,
    check_idempotency,
    discard_idempotency_key,
    record_idempotency_response,
)
from app.core.rate_limiter import RateLimiter
from app.models.applied_discount import AppliedDiscount
from app.models.approval_request import ApprovalStatus, DiscountApprovalRequest
from app.schemas.approval import (
    ApprovalApproveRequest,
    ApprovalCancelRequest,
    ApprovalRejectRequest,
    ApprovalRequestResponse,
)
from app.schemas.discount import (
    AppliedDiscountResponse,
    ComposedDiscountResponse,
    DiscountEvaluationRequest,
    DiscountSourceResponse,
    NextVolumeTierResponse,
    PromoCodeResultResponse,
    RejectedSourceResponse,
)
from app.services.approval_workflow import ApprovalWorkflow
from app.services.discount_service import DiscountService, EvaluationOutcome
from app.services.discounts.errors import (
    ApprovalAlreadyPending,
    ApprovalNotFound,
    ApprovalPermissionDenied,
    InvalidStateTransition,
    OrderAlreadyFinalized,
    OrganizationNotFound,
)
from app.tasks import enqueue_approval_sweep, enqueue_release_expired_reservations

router = APIRouter()

evaluate_rate_limiter = RateLimiter(
    max_requests=settings.DISCOUNT_EVALUATE_RATE_LIMIT_PER_MINUTE,
    window_seconds=60,
)


def _check_rate_limit(organization_id: UUID = Depends(get_current_organization)) -> UUID:
    """Dependency that throttles discount evaluation per organization."""
    key = str(organization_id)
    if not evaluate_rate_limiter.is_allowed(key):
        raise HTTPException(
            status_code=429,
            detail="Rate limit exceeded. Maximum "
            f"{settings.DISCOUNT_EVALUATE_RATE_LIMIT_PER_MINUTE} evaluations per minute.",
            headers={"Retry-After": str(evaluate_rate_limiter.retry_after(key))},
        )
    return organization_id


def _http_error(error: ValueError) -> HTTPException:
    if isinstance(error, OrganizationNotFound | ApprovalNotFound):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, InvalidStateTransition | ApprovalAlreadyPending | OrderAlreadyFinalized):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, ApprovalPermissionDenied):
        return HTTPException(status_code=403, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))


def _composed_response(outcome: EvaluationOutcome) -> ComposedDiscountResponse:
    composed = outcome.composed
    promo = outcome.promo_result
    hint = outcome.next_volume_tier
    return ComposedDiscountResponse(
        order_id=outcome.order_id,
        order_amount=composed.order_amount,
        sources=[
            DiscountSourceResponse(
                source_type=source.source_type.value,
                source_id=source.source_id,
                source_name=source.source_name,
                discount_type=source.discount_type.value,
                discount_value=source.discount_value,
                discount_amount=source.discount_amount,
                stackable=source.stackable,
            )
            for source in composed.sources
        ],
        rejected=[
            RejectedSourceResponse(
                source_type=item.candidate.source_type.value,
                source_id=item.candidate.source_id,
                source_name=item.candidate.source_name,
                discount_amount=item.candidate.discount_amount,
                reason=item.reason.value,
                message=item.message,
            )
            for item in composed.rejected
        ],
        total_discount_amount=composed.total_discount_amount,
        total_discount_percent=composed.total_discount_percent,
        final_amount=composed.final_amount,
        requires_approval=outcome.requires_approval,
        approval_reason=outcome.approval_reason,
        approval_request_id=(
            outcome.approval_request.id  # type: ignore[arg-type]
            if outcome.approval_request is not None
            else None
        ),
        reservation_id=outcome.reservation_id,
        applied=bool(outcome.applied),
        promo_code_result=(
            PromoCodeResultResponse(
                code=promo.code,
                is_valid=promo.is_valid,
                error_code=promo.error_code.value if promo.error_code else None,
                message=promo.message,
                discount_amount=promo.discount_amount,
            )
            if promo is not None
            else None
        ),
        next_volume_tier=(
            NextVolumeTierResponse(
                label=hint.label,
                amount_to_reach=hint.amount_to_reach,
                additional_percent=hint.additional_percent,
            )
            if hint is not None
            else None
        ),
    )


@router.post(
    "/evaluate",
    response_model=ComposedDiscountResponse,
    summary="Evaluate discounts for an order",
    responses={
        404: {"description": "Organization not found"},
        409: {"description": "Order already finalized or awaiting approval"},
        422: {"description": "Validation error"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def evaluate_discounts(
    data: DiscountEvaluationRequest,
    request: Request,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(_check_rate_limit),
) -> ComposedDiscountResponse | JSONResponse:
    """Compose every applicable discount for an order.

    With ``apply`` set, discounts within the requester's limit are applied and
    larger ones are held for approval; otherwise the call is a preview.
    """
    idempotency = check_idempotency(request, db, organization_id)
    if isinstance(idempotency, JSONResponse):
        return idempotency

    try:
        outcome = DiscountService(db).evaluate(organization_id, data)
    except ValueError as e:
        if isinstance(idempotency, IdempotencyResult):
            discard_idempotency_key(db, organization_id, idempotency.key)
        raise _http_error(e) from None

    body = _composed_response(outcome)
    if isinstance(idempotency, IdempotencyResult):
        record_idempotency_response(
            db, organization_id, idempotency.key, 200, body.model_dump(mode="json")
        )
    return body


@router.get(
    "/approvals",
    response_model=list[ApprovalRequestResponse],
    summary="List approval requests",
    responses={422: {"description": "Validation error"}},
)
async def list_approval_requests(
    response: Response,
    status: ApprovalStatus | None = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    order_by: str | None = Query(default=None),
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[DiscountApprovalRequest]:
    """List approval requests; without a status, those still awaiting a decision."""
    items, total = ApprovalWorkflow(db).list_requests(
        organization_id, status=status, skip=skip, limit=limit, order_by=order_by
    )
    response.headers["X-Total-Count"] = str(total)
    return items


@router.post(
    "/approvals/sweep",
    status_code=202,
    summary="Enqueue approval sweep",
    description="Enqueue the escalation and expiry sweep instead of waiting for the hourly run.",
)
async def enqueue_approvals_sweep() -> dict[str, str]:
    job = await enqueue_approval_sweep()
    return {"job_id": job.job_id}


@router.post(
    "/reservations/release-expired",
    status_code=202,
    summary="Enqueue release of expired reservations",
)
async def enqueue_reservation_release() -> dict[str, str]:
    job = await enqueue_release_expired_reservations()
    return {"job_id": job.job_id}


@router.get(
    "/approvals/{request_id}",
    response_model=ApprovalRequestResponse,
    summary="Get approval request",
    responses={404: {"description": "Approval request not found"}},
)
async def get_approval_request(
    request_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> DiscountApprovalRequest:
    try:
        return ApprovalWorkflow(db).get(organization_id, request_id)
    except ApprovalNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from None


@router.post(
    "/approvals/{request_id}/approve",
    response_model=ApprovalRequestResponse,
    summary="Approve discount",
    responses={
        400: {"description": "Counter-offer exceeds the requested discount"},
        404: {"description": "Approval request not found"},
        409: {"description": "Request already decided or order already finalized"},
    },
)
async def approve_request(
    request_id: UUID,
    data: ApprovalApproveRequest,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> DiscountApprovalRequest:
    """Approve a pending request, optionally with a smaller counter-offer, and apply it."""
    try:
        return ApprovalWorkflow(db).approve(
            organization_id,
            request_id,
            reviewer_id=data.reviewer_id,
            counter_offer=data.counter_offer,
            notes=data.notes,
        )
    except ValueError as e:
        raise _http_error(e) from None


@router.post(
    "/approvals/{request_id}/reject",
    response_model=ApprovalRequestResponse,
    summary="Reject discount",
    responses={
        404: {"description": "Approval request not found"},
        409: {"description": "Request already decided"},
    },
)
async def reject_request(
    request_id: UUID,
    data: ApprovalRejectRequest,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> DiscountApprovalRequest:
    try:
        return ApprovalWorkflow(db).reject(
            organization_id, request_id, reviewer_id=data.reviewer_id, notes=data.notes
        )
    except ValueError as e:
        raise _http_error(e) from None


@router.post(
    "/approvals/{request_id}/cancel",
    response_model=ApprovalRequestResponse,
    summary="Cancel approval request",
    responses={
        403: {"description": "Only the requester may cancel"},
        404: {"description": "Approval request not found"},
        409: {"description": "Request already decided"},
    },
)
async def cancel_request(
    request_id: UUID,
    data: ApprovalCancelRequest,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> DiscountApprovalRequest:
    try:
        return ApprovalWorkflow(db).cancel(
            organization_id, request_id, requester_id=data.requester_id
        )
    except ValueError as e:
        raise _http_error(e) from None


@router.get(
    "/orders/{order_id}",
    response_model=list[AppliedDiscountResponse],
    summary="Get applied discounts of an order",
)
async def get_order_discounts(
    order_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[AppliedDiscount]:
    return DiscountService(db).applied_discounts(organization_id, order_id)
