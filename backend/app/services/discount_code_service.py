"""Promo code service: bulk generation of codes sharing one configuration."""

import logging
import secrets
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.discount_code import DiscountCode
from app.repositories.discount_code_repository import DiscountCodeRepository
from app.schemas.discount_code import CodePattern, DiscountCodeBulkCreate, DiscountCodeCreate
from app.services.audit_service import AuditResource, AuditService
from app.services.discounts.errors import CodeGenerationConflict

logger = logging.getLogger(__name__)

# Ambiguous characters (0, O, 1, I, L) are left out
CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
_GENERATION_ROUNDS = 5


def random_code(length: int) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def generate_code_strings(data: DiscountCodeBulkCreate) -> list[str]:
    """Candidate codes for ``data``, unique within the batch."""
    if data.pattern == CodePattern.SEQUENTIAL:
        return [f"{data.prefix}{index:04d}" for index in range(1, data.quantity + 1)]

    random_length = data.code_length
    prefix = ""
    if data.pattern == CodePattern.PREFIX:
        prefix = data.prefix
        random_length -= len(prefix)
    codes: set[str] = set()
    while len(codes) < data.quantity:
        codes.add(prefix + random_code(random_length))
    return sorted(codes)


class DiscountCodeService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = DiscountCodeRepository(db)
        self.audit = AuditService(db)

    def bulk_create(
        self, organization_id: UUID, data: DiscountCodeBulkCreate
    ) -> list[DiscountCode]:
        """Create ``data.quantity`` codes with the shared configuration.

        Random codes that collide with existing ones are drawn again; sequential
        codes cannot be, so any collision fails the whole batch.

        Raises:
            CodeGenerationConflict: If no collision-free batch could be generated.
        """
        template = data.model_dump(exclude={"quantity", "pattern", "prefix", "code_length"})
        codes: list[str] = []
        for _ in range(_GENERATION_ROUNDS):
            candidates = [c for c in generate_code_strings(data) if c not in codes]
            taken = self.repo.existing_codes(organization_id, candidates)
            if taken and data.pattern == CodePattern.SEQUENTIAL:
                raise CodeGenerationConflict(
                    f"Codes already exist: {', '.join(sorted(taken)[:5])}"
                )
            codes.extend(c for c in candidates if c not in taken)
            codes = codes[: data.quantity]
            if len(codes) == data.quantity:
                break
            logger.info("Regenerating %d colliding promo codes", data.quantity - len(codes))
        else:
            raise CodeGenerationConflict(
                f"Could not generate {data.quantity} unused codes; use a longer code_length"
            )

        created = self.repo.create_many(
            [DiscountCodeCreate(code=code, **template) for code in codes], organization_id
        )
        for discount_code in created:
            self.audit.log_create(
                AuditResource.DISCOUNT_CODE,
                discount_code.id,  # type: ignore[arg-type]
                organization_id,
                actor_id=data.created_by,
                data={
                    "code": discount_code.code,
                    "discount_type": discount_code.discount_type,
                    "discount_value": discount_code.discount_value,
                    "bulk_pattern": data.pattern.value,
                },
            )
        logger.info("Created %d promo codes for organization %s", len(created), organization_id)
        return created
