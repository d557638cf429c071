"""Automatic discount rule API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from app.core.auth import get_current_organization
from app.core.database import get_db
from app.models.automatic_rule import AutomaticRule, RuleType
from app.repositories.automatic_rule_repository import AutomaticRuleRepository
from app.schemas.automatic_rule import (
    AutomaticRuleCreate,
    AutomaticRuleResponse,
    AutomaticRuleUpdate,
)
from app.services.audit_service import AuditResource, AuditService, snapshot

router = APIRouter()

_AUDITED_FIELDS = [
    "name",
    "priority",
    "rule_type",
    "conditions",
    "discount_type",
    "discount_value",
    "stackable",
    "stack_with_codes",
    "is_active",
]


@router.post(
    "/",
    response_model=AutomaticRuleResponse,
    status_code=201,
    summary="Create automatic rule",
    responses={422: {"description": "Validation error"}},
)
async def create_automatic_rule(
    data: AutomaticRuleCreate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> AutomaticRule:
    rule = AutomaticRuleRepository(db).create(data, organization_id)
    AuditService(db).log_create(
        AuditResource.AUTOMATIC_RULE,
        rule.id,  # type: ignore[arg-type]
        organization_id,
        actor_id=data.created_by,
        data=snapshot(rule, _AUDITED_FIELDS),
    )
    return rule


@router.get(
    "/",
    response_model=list[AutomaticRuleResponse],
    summary="List automatic rules",
)
async def list_automatic_rules(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    order_by: str | None = Query(default=None),
    is_active: bool | None = None,
    rule_type: RuleType | None = None,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[AutomaticRule]:
    """List automatic rules, highest priority first unless ``order_by`` says otherwise."""
    repo = AutomaticRuleRepository(db)
    response.headers["X-Total-Count"] = str(repo.count(organization_id))
    return repo.get_all(
        organization_id,
        skip=skip,
        limit=limit,
        is_active=is_active,
        rule_type=rule_type,
        order_by=order_by,
    )


@router.get(
    "/{rule_id}",
    response_model=AutomaticRuleResponse,
    summary="Get automatic rule",
    responses={404: {"description": "Automatic rule not found"}},
)
async def get_automatic_rule(
    rule_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> AutomaticRule:
    rule = AutomaticRuleRepository(db).get_by_id(rule_id, organization_id)
    if not rule:
        raise HTTPException(status_code=404, detail="Automatic rule not found")
    return rule


@router.put(
    "/{rule_id}",
    response_model=AutomaticRuleResponse,
    summary="Update automatic rule",
    responses={
        404: {"description": "Automatic rule not found"},
        422: {"description": "Validation error"},
    },
)
async def update_automatic_rule(
    rule_id: UUID,
    data: AutomaticRuleUpdate,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> AutomaticRule:
    repo = AutomaticRuleRepository(db)
    existing = repo.get_by_id(rule_id, organization_id)
    if not existing:
        raise HTTPException(status_code=404, detail="Automatic rule not found")
    old_data = snapshot(existing, _AUDITED_FIELDS)
    rule = repo.update(rule_id, data, organization_id)
    if not rule:  # pragma: no cover - race condition
        raise HTTPException(status_code=404, detail="Automatic rule not found")
    AuditService(db).log_update(
        AuditResource.AUTOMATIC_RULE,
        rule_id,
        organization_id,
        old_data=old_data,
        new_data=snapshot(rule, _AUDITED_FIELDS),
    )
    return rule


@router.delete(
    "/{rule_id}",
    status_code=204,
    summary="Deactivate automatic rule",
    responses={404: {"description": "Automatic rule not found"}},
)
async def deactivate_automatic_rule(
    rule_id: UUID,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> None:
    if not AutomaticRuleRepository(db).deactivate(rule_id, organization_id):
        raise HTTPException(status_code=404, detail="Automatic rule not found")
