"""Organization (tenant) endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from app.core.auth import get_current_organization
from app.core.database import get_db
from app.models.organization import Organization
from app.repositories.organization_repository import OrganizationRepository
from app.schemas.organization import (
    OrganizationCreate,
    OrganizationResponse,
    OrganizationUpdate,
)

router = APIRouter()


@router.post(
    "/",
    response_model=OrganizationResponse,
    status_code=201,
    summary="Create organization",
    responses={422: {"description": "Validation error"}},
)
async def create_organization(
    data: OrganizationCreate,
    db: Session = Depends(get_db),
) -> Organization:
    """Create a tenant; its id is then sent in the ``X-Organization-Id`` header."""
    return OrganizationRepository(db).create(data)


@router.get(
    "/",
    response_model=list[OrganizationResponse],
    summary="List organizations",
)
async def list_organizations(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    order_by: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[Organization]:
    repo = OrganizationRepository(db)
    response.headers["X-Total-Count"] = str(repo.count())
    return repo.get_all(skip=skip, limit=limit, order_by=order_by)


@router.get(
    "/current",
    response_model=OrganizationResponse,
    summary="Get current organization",
    responses={404: {"description": "Organization not found"}},
)
async def get_current_org(
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> Organization:
    org = OrganizationRepository(db).get_by_id(organization_id)
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")
    return org


@router.put(
    "/current",
    response_model=OrganizationResponse,
    summary="Update current organization",
    responses={
        404: {"description": "Organization not found"},
        422: {"description": "Validation error"},
    },
)
async def update_current_org(
    data: OrganizationUpdate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> Organization:
    org = OrganizationRepository(db).update(organization_id, data)
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")
    return org
