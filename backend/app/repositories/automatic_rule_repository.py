"""AutomaticRule repository for data access."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.sorting import apply_order_by
from app.models.automatic_rule import AutomaticRule, RuleType
from app.schemas.automatic_rule import AutomaticRuleCreate, AutomaticRuleUpdate


class AutomaticRuleRepository:
    """Repository for AutomaticRule model."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        organization_id: UUID,
        skip: int = 0,
        limit: int = 100,
        is_active: bool | None = None,
        rule_type: RuleType | None = None,
        order_by: str | None = None,
    ) -> list[AutomaticRule]:
        query = self.db.query(AutomaticRule).filter(
            AutomaticRule.organization_id == organization_id
        )
        if is_active is not None:
            query = query.filter(AutomaticRule.is_active == is_active)
        if rule_type is not None:
            query = query.filter(AutomaticRule.rule_type == rule_type.value)
        query = apply_order_by(query, AutomaticRule, order_by, default_field="priority")
        return query.offset(skip).limit(limit).all()

    def count(self, organization_id: UUID) -> int:
        return (
            self.db.query(AutomaticRule)
            .filter(AutomaticRule.organization_id == organization_id)
            .count()
        )

    def get_by_id(self, rule_id: UUID, organization_id: UUID) -> AutomaticRule | None:
        return (
            self.db.query(AutomaticRule)
            .filter(AutomaticRule.id == rule_id, AutomaticRule.organization_id == organization_id)
            .first()
        )

    def get_active_as_of(self, organization_id: UUID, as_of: datetime) -> list[AutomaticRule]:
        """Active rules valid at ``as_of``, highest priority first, then oldest first."""
        return (
            self.db.query(AutomaticRule)
            .filter(
                AutomaticRule.organization_id == organization_id,
                AutomaticRule.is_active.is_(True),
                or_(AutomaticRule.starts_at.is_(None), AutomaticRule.starts_at <= as_of),
                or_(AutomaticRule.expires_at.is_(None), AutomaticRule.expires_at > as_of),
            )
            .order_by(
                AutomaticRule.priority.desc(),
                AutomaticRule.created_at.asc(),
                AutomaticRule.id.asc(),
            )
            .all()
        )

    def create(self, data: AutomaticRuleCreate, organization_id: UUID) -> AutomaticRule:
        rule = AutomaticRule(
            organization_id=organization_id,
            name=data.name,
            description=data.description,
            priority=data.priority,
            rule_type=data.conditions.rule_type,
            conditions=data.conditions.model_dump(mode="json", exclude={"rule_type"}),
            discount_type=data.discount_type.value,
            discount_value=data.discount_value,
            max_discount_amount=data.max_discount_amount,
            stackable=data.stackable,
            stack_with_codes=data.stack_with_codes,
            starts_at=data.starts_at,
            expires_at=data.expires_at,
            created_by=data.created_by,
        )
        self.db.add(rule)
        self.db.commit()
        self.db.refresh(rule)
        return rule

    def update(
        self, rule_id: UUID, data: AutomaticRuleUpdate, organization_id: UUID
    ) -> AutomaticRule | None:
        rule = self.get_by_id(rule_id, organization_id)
        if not rule:
            return None
        update_data = data.model_dump(exclude_unset=True, exclude={"conditions"})
        if "discount_type" in update_data and update_data["discount_type"]:
            update_data["discount_type"] = update_data["discount_type"].value
        if data.conditions is not None:
            update_data["rule_type"] = data.conditions.rule_type
            update_data["conditions"] = data.conditions.model_dump(
                mode="json", exclude={"rule_type"}
            )
        for key, value in update_data.items():
            setattr(rule, key, value)
        self.db.commit()
        self.db.refresh(rule)
        return rule

    def deactivate(self, rule_id: UUID, organization_id: UUID) -> AutomaticRule | None:
        rule = self.get_by_id(rule_id, organization_id)
        if not rule:
            return None
        rule.is_active = False  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(rule)
        return rule

    def record_application(self, rule_id: UUID, discount_amount: Decimal) -> None:
        """Bump application counters. Does not commit."""
        self.db.query(AutomaticRule).filter(AutomaticRule.id == rule_id).update(
            {
                AutomaticRule.times_applied: AutomaticRule.times_applied + 1,
                AutomaticRule.total_discount_given: (
                    AutomaticRule.total_discount_given + discount_amount
                ),
            },
            synchronize_session=False,
        )
