"""Volume discount tier API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from app.core.auth import get_current_organization
from app.core.database import get_db
from app.models.volume_discount_tier import VolumeDiscountTier
from app.repositories.volume_tier_repository import VolumeTierRepository
from app.schemas.volume_tier import VolumeTierCreate, VolumeTierResponse, VolumeTierUpdate
from app.services.audit_service import AuditResource, AuditService, snapshot

router = APIRouter()

_AUDITED_FIELDS = ["name", "measurement_type", "service_type", "bands", "stackable", "priority"]


@router.post(
    "/",
    response_model=VolumeTierResponse,
    status_code=201,
    summary="Create volume discount tier",
    responses={422: {"description": "Bands overlap, leave gaps or are otherwise invalid"}},
)
async def create_volume_tier(
    data: VolumeTierCreate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> VolumeDiscountTier:
    tier = VolumeTierRepository(db).create(data, organization_id)
    AuditService(db).log_create(
        AuditResource.VOLUME_TIER,
        tier.id,  # type: ignore[arg-type]
        organization_id,
        data=snapshot(tier, _AUDITED_FIELDS),
    )
    return tier


@router.get(
    "/",
    response_model=list[VolumeTierResponse],
    summary="List volume discount tiers",
)
async def list_volume_tiers(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    order_by: str | None = Query(default=None),
    is_active: bool | None = None,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[VolumeDiscountTier]:
    repo = VolumeTierRepository(db)
    response.headers["X-Total-Count"] = str(repo.count(organization_id))
    return repo.get_all(
        organization_id, skip=skip, limit=limit, is_active=is_active, order_by=order_by
    )


@router.get(
    "/{tier_id}",
    response_model=VolumeTierResponse,
    summary="Get volume discount tier",
    responses={404: {"description": "Volume tier not found"}},
)
async def get_volume_tier(
    tier_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> VolumeDiscountTier:
    tier = VolumeTierRepository(db).get_by_id(tier_id, organization_id)
    if not tier:
        raise HTTPException(status_code=404, detail="Volume tier not found")
    return tier


@router.put(
    "/{tier_id}",
    response_model=VolumeTierResponse,
    summary="Update volume discount tier",
    responses={
        404: {"description": "Volume tier not found"},
        422: {"description": "Validation error"},
    },
)
async def update_volume_tier(
    tier_id: UUID,
    data: VolumeTierUpdate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> VolumeDiscountTier:
    repo = VolumeTierRepository(db)
    existing = repo.get_by_id(tier_id, organization_id)
    if not existing:
        raise HTTPException(status_code=404, detail="Volume tier not found")
    old_data = snapshot(existing, _AUDITED_FIELDS)
    tier = repo.update(tier_id, data, organization_id)
    if not tier:  # pragma: no cover - race condition
        raise HTTPException(status_code=404, detail="Volume tier not found")
    AuditService(db).log_update(
        AuditResource.VOLUME_TIER,
        tier_id,
        organization_id,
        old_data=old_data,
        new_data=snapshot(tier, _AUDITED_FIELDS),
    )
    return tier


@router.delete(
    "/{tier_id}",
    status_code=204,
    summary="Deactivate volume discount tier",
    responses={404: {"description": "Volume tier not found"}},
)
async def deactivate_volume_tier(
    tier_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> None:
    if not VolumeTierRepository(db).deactivate(tier_id, organization_id):
        raise HTTPException(status_code=404, detail="Volume tier not found")
