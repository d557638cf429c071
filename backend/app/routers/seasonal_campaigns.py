"""Seasonal campaign API endpoints."""

from datetime import timedelta
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from app.core.auth import get_current_organization
from app.core.database import get_db
from app.models.seasonal_campaign import SeasonalCampaign
from app.models.shared import utc_now
from app.repositories.seasonal_campaign_repository import SeasonalCampaignRepository
from app.schemas.seasonal_campaign import (
    ActiveSeasonalCampaignResponse,
    SeasonalCampaignCreate,
    SeasonalCampaignResponse,
    SeasonalCampaignUpdate,
)
from app.services.audit_service import AuditResource, AuditService, snapshot
from app.services.discounts.catalog import seasonal_campaign_definition
from app.services.discounts.seasonal import active_window

router = APIRouter()

EXPIRING_SOON = timedelta(hours=48)

_AUDITED_FIELDS = [
    "name",
    "discount_type",
    "discount_value",
    "starts_at",
    "ends_at",
    "is_recurring",
    "recurrence_type",
    "promo_code",
    "is_active",
]


@router.post(
    "/",
    response_model=SeasonalCampaignResponse,
    status_code=201,
    summary="Create seasonal campaign",
    responses={422: {"description": "Validation error"}},
)
async def create_seasonal_campaign(
    data: SeasonalCampaignCreate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SeasonalCampaign:
    campaign = SeasonalCampaignRepository(db).create(data, organization_id)
    AuditService(db).log_create(
        AuditResource.SEASONAL_CAMPAIGN,
        campaign.id,  # type: ignore[arg-type]
        organization_id,
        actor_id=data.created_by,
        data=snapshot(campaign, _AUDITED_FIELDS),
    )
    return campaign


@router.get(
    "/",
    response_model=list[SeasonalCampaignResponse],
    summary="List seasonal campaigns",
)
async def list_seasonal_campaigns(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    order_by: str | None = Query(default=None),
    is_active: bool | None = None,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[SeasonalCampaign]:
    repo = SeasonalCampaignRepository(db)
    response.headers["X-Total-Count"] = str(repo.count(organization_id))
    return repo.get_all(
        organization_id, skip=skip, limit=limit, is_active=is_active, order_by=order_by
    )


@router.get(
    "/active",
    response_model=list[ActiveSeasonalCampaignResponse],
    summary="List campaigns running now",
)
async def list_active_seasonal_campaigns(
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[dict[str, Any]]:
    """Campaigns running now, with their current window, soonest ending first."""
    now = utc_now()
    active: list[dict[str, Any]] = []
    for campaign in SeasonalCampaignRepository(db).get_candidates_as_of(organization_id, now):
        window = active_window(seasonal_campaign_definition(campaign), now)
        if window is None:
            continue
        remaining = window[1] - now
        active.append(
            {
                **SeasonalCampaignResponse.model_validate(campaign).model_dump(),
                "window_starts_at": window[0],
                "window_ends_at": window[1],
                "time_remaining_seconds": int(remaining.total_seconds()),
                "is_expiring_soon": remaining < EXPIRING_SOON,
            }
        )
    active.sort(key=lambda item: item["window_ends_at"])
    return active


@router.get(
    "/{campaign_id}",
    response_model=SeasonalCampaignResponse,
    summary="Get seasonal campaign",
    responses={404: {"description": "Seasonal campaign not found"}},
)
async def get_seasonal_campaign(
    campaign_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SeasonalCampaign:
    campaign = SeasonalCampaignRepository(db).get_by_id(campaign_id, organization_id)
    if not campaign:
        raise HTTPException(status_code=404, detail="Seasonal campaign not found")
    return campaign


@router.put(
    "/{campaign_id}",
    response_model=SeasonalCampaignResponse,
    summary="Update seasonal campaign",
    responses={
        404: {"description": "Seasonal campaign not found"},
        422: {"description": "Validation error"},
    },
)
async def update_seasonal_campaign(
    campaign_id: UUID,
    data: SeasonalCampaignUpdate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> SeasonalCampaign:
    repo = SeasonalCampaignRepository(db)
    existing = repo.get_by_id(campaign_id, organization_id)
    if not existing:
        raise HTTPException(status_code=404, detail="Seasonal campaign not found")
    old_data = snapshot(existing, _AUDITED_FIELDS)
    campaign = repo.update(campaign_id, data, organization_id)
    if not campaign:  # pragma: no cover - race condition
        raise HTTPException(status_code=404, detail="Seasonal campaign not found")
    AuditService(db).log_update(
        AuditResource.SEASONAL_CAMPAIGN,
        campaign_id,
        organization_id,
        old_data=old_data,
        new_data=snapshot(campaign, _AUDITED_FIELDS),
    )
    return campaign


@router.delete(
    "/{campaign_id}",
    status_code=204,
    summary="Deactivate seasonal campaign",
    responses={404: {"description": "Seasonal campaign not found"}},
)
async def deactivate_seasonal_campaign(
    campaign_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> None:
    if not SeasonalCampaignRepository(db).deactivate(campaign_id, organization_id):
        raise HTTPException(status_code=404, detail="Seasonal campaign not found")
