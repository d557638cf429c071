"""LoyaltyProgram repository for data access."""

from uuid import UUID

from sqlalchemy.orm import Session

from app.models.loyalty_program import DEFAULT_LOYALTY_TIERS, LoyaltyProgram
from app.schemas.loyalty import LoyaltyProgramUpsert


class LoyaltyProgramRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_organization(self, organization_id: UUID) -> LoyaltyProgram | None:
        return (
            self.db.query(LoyaltyProgram)
            .filter(LoyaltyProgram.organization_id == organization_id)
            .first()
        )

    def upsert(self, organization_id: UUID, data: LoyaltyProgramUpsert) -> LoyaltyProgram:
        """Create the organization's program, or replace its configuration."""
        values = data.model_dump(exclude={"tiers"})
        if data.tiers is not None:
            values["tiers"] = [tier.model_dump(mode="json") for tier in data.tiers]
        program = self.get_by_organization(organization_id)
        if program is None:
            values.setdefault("tiers", list(DEFAULT_LOYALTY_TIERS))
            program = LoyaltyProgram(organization_id=organization_id, **values)
            self.db.add(program)
        else:
            for key, value in values.items():
                setattr(program, key, value)
        self.db.commit()
        self.db.refresh(program)
        return program
