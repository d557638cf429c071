"""Discount code (promo code) API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from app.core.auth import get_current_organization
from app.core.database import get_db
from app.models.discount_code import DiscountCode
from app.models.discount_code_usage import DiscountCodeUsage, UsageStatus
from app.models.shared import to_decimal
from app.repositories.discount_code_repository import DiscountCodeRepository
from app.repositories.discount_code_usage_repository import DiscountCodeUsageRepository
from app.schemas.discount_code import (
    DiscountCodeAnalyticsResponse,
    DiscountCodeBulkCreate,
    DiscountCodeCreate,
    DiscountCodeResponse,
    DiscountCodeUpdate,
    DiscountCodeUsageResponse,
)
from app.services.audit_service import AuditResource, AuditService, snapshot
from app.services.discount_code_service import DiscountCodeService
from app.services.discounts.errors import CodeGenerationConflict

router = APIRouter()


def _get_code_or_404(repo: DiscountCodeRepository, code: str, organization_id: UUID) -> DiscountCode:
    discount_code = repo.get_by_code(code, organization_id)
    if not discount_code:
        raise HTTPException(status_code=404, detail="Discount code not found")
    return discount_code


@router.post(
    "/",
    response_model=DiscountCodeResponse,
    status_code=201,
    summary="Create discount code",
    responses={
        409: {"description": "Discount code with this code already exists"},
        422: {"description": "Validation error"},
    },
)
async def create_discount_code(
    data: DiscountCodeCreate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> DiscountCode:
    repo = DiscountCodeRepository(db)
    if repo.get_by_code(data.code, organization_id):
        raise HTTPException(status_code=409, detail="Discount code with this code already exists")
    discount_code = repo.create(data, organization_id)
    AuditService(db).log_create(
        AuditResource.DISCOUNT_CODE,
        discount_code.id,  # type: ignore[arg-type]
        organization_id,
        data={
            "code": discount_code.code,
            "discount_type": discount_code.discount_type,
            "discount_value": discount_code.discount_value,
        },
    )
    return discount_code


@router.post(
    "/bulk",
    response_model=list[DiscountCodeResponse],
    status_code=201,
    summary="Generate discount codes in bulk",
    responses={
        409: {"description": "Generated codes collide with existing codes"},
        422: {"description": "Validation error"},
    },
)
async def bulk_create_discount_codes(
    data: DiscountCodeBulkCreate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[DiscountCode]:
    """Generate ``quantity`` codes that share one discount configuration."""
    try:
        return DiscountCodeService(db).bulk_create(organization_id, data)
    except CodeGenerationConflict as e:
        raise HTTPException(status_code=409, detail=str(e)) from None


@router.get(
    "/",
    response_model=list[DiscountCodeResponse],
    summary="List discount codes",
)
async def list_discount_codes(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    order_by: str | None = Query(default=None),
    is_active: bool | None = None,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[DiscountCode]:
    """List discount codes with optional active filter."""
    repo = DiscountCodeRepository(db)
    response.headers["X-Total-Count"] = str(repo.count(organization_id, is_active=is_active))
    return repo.get_all(
        organization_id, skip=skip, limit=limit, is_active=is_active, order_by=order_by
    )


@router.get(
    "/{code}",
    response_model=DiscountCodeResponse,
    summary="Get discount code",
    responses={404: {"description": "Discount code not found"}},
)
async def get_discount_code(
    code: str,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> DiscountCode:
    """Get a discount code by code (case-insensitive)."""
    return _get_code_or_404(DiscountCodeRepository(db), code, organization_id)


@router.put(
    "/{code}",
    response_model=DiscountCodeResponse,
    summary="Update discount code",
    responses={
        404: {"description": "Discount code not found"},
        422: {"description": "Validation error"},
    },
)
async def update_discount_code(
    code: str,
    data: DiscountCodeUpdate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> DiscountCode:
    repo = DiscountCodeRepository(db)
    fields = list(data.model_dump(exclude_unset=True))
    old_data = snapshot(_get_code_or_404(repo, code, organization_id), fields)
    discount_code = repo.update(code, data, organization_id)
    if not discount_code:  # pragma: no cover - race condition
        raise HTTPException(status_code=404, detail="Discount code not found")
    AuditService(db).log_update(
        AuditResource.DISCOUNT_CODE,
        discount_code.id,  # type: ignore[arg-type]
        organization_id,
        old_data=old_data,
        new_data=snapshot(discount_code, fields),
    )
    return discount_code


@router.delete(
    "/{code}",
    status_code=204,
    summary="Deactivate discount code",
    responses={404: {"description": "Discount code not found"}},
)
async def deactivate_discount_code(
    code: str,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> None:
    """Deactivate a discount code; its usage history is kept."""
    discount_code = DiscountCodeRepository(db).deactivate(code, organization_id)
    if not discount_code:
        raise HTTPException(status_code=404, detail="Discount code not found")


@router.get(
    "/{code}/usages",
    response_model=list[DiscountCodeUsageResponse],
    summary="List discount code usages",
    responses={404: {"description": "Discount code not found"}},
)
async def list_discount_code_usages(
    code: str,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[DiscountCodeUsage]:
    """Reservations and redemptions of a code, newest first."""
    discount_code = _get_code_or_404(DiscountCodeRepository(db), code, organization_id)
    return DiscountCodeUsageRepository(db).get_by_code(
        discount_code.id,  # type: ignore[arg-type]
        skip=skip,
        limit=limit,
    )


@router.get(
    "/{code}/analytics",
    response_model=DiscountCodeAnalyticsResponse,
    summary="Get discount code analytics",
    responses={404: {"description": "Discount code not found"}},
)
async def get_discount_code_analytics(
    code: str,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> DiscountCodeAnalyticsResponse:
    discount_code = _get_code_or_404(DiscountCodeRepository(db), code, organization_id)
    usage_repo = DiscountCodeUsageRepository(db)
    remaining = None
    if discount_code.max_uses_total is not None:
        claimed = usage_repo.count_claims(discount_code.id)  # type: ignore[arg-type]
        remaining = max(int(discount_code.max_uses_total) - claimed, 0)
    return DiscountCodeAnalyticsResponse(
        times_used=int(discount_code.times_used or 0),
        outstanding_reservations=usage_repo.count_by_status(
            discount_code.id,  # type: ignore[arg-type]
            UsageStatus.RESERVED,
        ),
        total_discount_given=to_decimal(discount_code.total_discount_given),
        remaining_uses=remaining,
    )
