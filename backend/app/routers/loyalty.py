"""Loyalty program and customer points API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from app.core.auth import get_current_organization
from app.core.database import get_db
from app.models.customer_loyalty import CustomerLoyalty
from app.models.loyalty_program import LoyaltyProgram
from app.models.loyalty_transaction import LoyaltyTransaction
from app.repositories.customer_loyalty_repository import CustomerLoyaltyRepository
from app.schemas.loyalty import (
    CustomerLoyaltyResponse,
    LoyaltyAdjustRequest,
    LoyaltyEarnRequest,
    LoyaltyEnrollRequest,
    LoyaltyProgramResponse,
    LoyaltyProgramUpsert,
    LoyaltyReconciliationResponse,
    LoyaltyRedeemRequest,
    LoyaltyRedeemResponse,
    LoyaltyTransactionResponse,
)
from app.services.audit_service import AuditResource, AuditService, snapshot
from app.services.loyalty_service import LoyaltyService

router = APIRouter()

_AUDITED_FIELDS = [
    "is_active",
    "points_per_dollar",
    "points_for_signup",
    "points_for_referral",
    "points_to_dollar_ratio",
    "min_points_to_redeem",
    "tiers",
    "stackable",
]


def _member_response(
    service: LoyaltyService, organization_id: UUID, loyalty: CustomerLoyalty
) -> CustomerLoyaltyResponse:
    response = CustomerLoyaltyResponse.model_validate(loyalty)
    return response.model_copy(
        update={"current_tier": service.current_tier(organization_id, loyalty)}
    )


@router.get(
    "/program",
    response_model=LoyaltyProgramResponse,
    summary="Get loyalty program",
    responses={404: {"description": "Loyalty program not configured"}},
)
async def get_loyalty_program(
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> LoyaltyProgram:
    program = LoyaltyService(db).get_program(organization_id)
    if not program:
        raise HTTPException(status_code=404, detail="Loyalty program not configured")
    return program


@router.put(
    "/program",
    response_model=LoyaltyProgramResponse,
    summary="Configure loyalty program",
    responses={422: {"description": "Validation error"}},
)
async def upsert_loyalty_program(
    data: LoyaltyProgramUpsert,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> LoyaltyProgram:
    """Create the organization's loyalty program or replace its configuration."""
    service = LoyaltyService(db)
    existing = service.get_program(organization_id)
    old_data = snapshot(existing, _AUDITED_FIELDS) if existing is not None else None
    program = service.upsert_program(organization_id, data)
    audit = AuditService(db)
    if old_data is None:
        audit.log_create(
            AuditResource.LOYALTY_PROGRAM,
            program.id,  # type: ignore[arg-type]
            organization_id,
            data=snapshot(program, _AUDITED_FIELDS),
        )
    else:
        audit.log_update(
            AuditResource.LOYALTY_PROGRAM,
            program.id,  # type: ignore[arg-type]
            organization_id,
            old_data=old_data,
            new_data=snapshot(program, _AUDITED_FIELDS),
        )
    return program


@router.post(
    "/enroll",
    response_model=CustomerLoyaltyResponse,
    status_code=201,
    summary="Enroll customer",
    responses={400: {"description": "Program inactive or customer already enrolled"}},
)
async def enroll_customer(
    data: LoyaltyEnrollRequest,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> CustomerLoyaltyResponse:
    service = LoyaltyService(db)
    try:
        loyalty = service.enroll(organization_id, data.customer_id, data.referred_by_code)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return _member_response(service, organization_id, loyalty)


@router.get(
    "/customers",
    response_model=list[CustomerLoyaltyResponse],
    summary="List loyalty members",
)
async def list_loyalty_members(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    order_by: str | None = Query(default=None),
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[CustomerLoyalty]:
    repo = CustomerLoyaltyRepository(db)
    response.headers["X-Total-Count"] = str(repo.count(organization_id))
    return repo.get_all(organization_id, skip=skip, limit=limit, order_by=order_by)


@router.get(
    "/customers/{customer_id}",
    response_model=CustomerLoyaltyResponse,
    summary="Get customer loyalty account",
    responses={404: {"description": "Customer not enrolled"}},
)
async def get_loyalty_member(
    customer_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> CustomerLoyaltyResponse:
    """Get a customer's balance, statistics and current tier."""
    service = LoyaltyService(db)
    loyalty = service.get_member(organization_id, customer_id)
    if not loyalty:
        raise HTTPException(status_code=404, detail="Customer not enrolled")
    return _member_response(service, organization_id, loyalty)


@router.post(
    "/earn",
    response_model=CustomerLoyaltyResponse,
    summary="Earn points for an order",
    responses={400: {"description": "Loyalty program is not active"}},
)
async def earn_points(
    data: LoyaltyEarnRequest,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> CustomerLoyaltyResponse:
    service = LoyaltyService(db)
    try:
        loyalty = service.earn(
            organization_id,
            data.customer_id,
            data.order_amount,
            order_id=data.order_id,
            bonus_points=data.bonus_points,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return _member_response(service, organization_id, loyalty)


@router.post(
    "/redeem",
    response_model=LoyaltyRedeemResponse,
    summary="Redeem points",
    responses={400: {"description": "Below minimum, insufficient points or not enrolled"}},
)
async def redeem_points(
    data: LoyaltyRedeemRequest,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> LoyaltyRedeemResponse:
    try:
        result = LoyaltyService(db).redeem(
            organization_id, data.customer_id, data.points, order_id=data.order_id
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return LoyaltyRedeemResponse(
        points_redeemed=result.points_redeemed,
        discount_value=result.discount_value,
        balance_after=result.balance_after,
    )


@router.post(
    "/adjust",
    response_model=LoyaltyTransactionResponse,
    status_code=201,
    summary="Adjust points",
    responses={400: {"description": "Balance would become negative or not enrolled"}},
)
async def adjust_points(
    data: LoyaltyAdjustRequest,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> LoyaltyTransaction:
    """Administrative correction of a customer's balance."""
    try:
        return LoyaltyService(db).adjust(
            organization_id,
            data.customer_id,
            data.points,
            reason=data.reason,
            adjusted_by=data.adjusted_by,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None


@router.get(
    "/customers/{customer_id}/transactions",
    response_model=list[LoyaltyTransactionResponse],
    summary="List points transactions",
    responses={404: {"description": "Customer not enrolled"}},
)
async def list_loyalty_transactions(
    customer_id: UUID,
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[LoyaltyTransaction]:
    try:
        items, total = LoyaltyService(db).transactions(
            organization_id, customer_id, skip=skip, limit=limit
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    response.headers["X-Total-Count"] = str(total)
    return items


@router.get(
    "/customers/{customer_id}/reconciliation",
    response_model=LoyaltyReconciliationResponse,
    summary="Reconcile points balance",
    responses={404: {"description": "Customer not enrolled"}},
)
async def reconcile_points(
    customer_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> LoyaltyReconciliationResponse:
    """Compare the stored balance with the sum of the transaction ledger."""
    try:
        result = LoyaltyService(db).reconcile(organization_id, customer_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    return LoyaltyReconciliationResponse(
        customer_id=result.customer_id,
        current_points=result.current_points,
        ledger_points=result.ledger_points,
        transaction_count=result.transaction_count,
        is_consistent=result.is_consistent,
    )
