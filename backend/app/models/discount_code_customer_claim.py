"""DiscountCodeCustomerClaim model: per-customer usage counters for promo codes."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, func

from app.core.database import Base
from app.models.shared import DEFAULT_ORGANIZATION_ID, UUIDType, generate_uuid


class DiscountCodeCustomerClaim(Base):
    """Outstanding plus redeemed claims of one customer on one code.

    A customer is keyed both by id (``id:<uuid>``) and by e-mail
    (``email:<address>``); a reservation takes a claim on every key it carries.
    """

    __tablename__ = "discount_code_customer_claims"
    __table_args__ = (
        UniqueConstraint(
            "discount_code_id", "customer_key", name="uq_discount_code_customer_claims_key"
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    organization_id = Column(
        UUIDType,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        default=DEFAULT_ORGANIZATION_ID,
    )
    discount_code_id = Column(
        UUIDType, ForeignKey("discount_codes.id", ondelete="RESTRICT"), nullable=False
    )
    customer_key = Column(String(300), nullable=False)
    claims = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
