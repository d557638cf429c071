from app.models.applied_discount import AppliedDiscount, DiscountSourceType
from app.models.approval_request import (
    OPEN_APPROVAL_STATUSES,
    TERMINAL_APPROVAL_STATUSES,
    ApprovalStatus,
    DiscountApprovalRequest,
)
from app.models.audit_log import AuditLog
from app.models.automatic_rule import AutomaticRule, RuleType
from app.models.customer_loyalty import CustomerLoyalty
from app.models.discount_code import DiscountCode, DiscountType
from app.models.discount_code_customer_claim import DiscountCodeCustomerClaim
from app.models.discount_code_usage import DiscountCodeUsage, UsageStatus
from app.models.discount_settings import DiscountSettings
from app.models.idempotency_record import IdempotencyRecord
from app.models.loyalty_program import DEFAULT_LOYALTY_TIERS, LoyaltyProgram
from app.models.loyalty_transaction import LoyaltyTransaction, LoyaltyTransactionType
from app.models.organization import Organization
from app.models.seasonal_campaign import RecurrenceType, SeasonalCampaign
from app.models.volume_discount_tier import MeasurementType, VolumeDiscountTier

__all__ = [
    "AppliedDiscount",
    "ApprovalStatus",
    "AuditLog",
    "AutomaticRule",
    "CustomerLoyalty",
    "DEFAULT_LOYALTY_TIERS",
    "DiscountApprovalRequest",
    "DiscountCode",
    "DiscountCodeCustomerClaim",
    "DiscountCodeUsage",
    "DiscountSettings",
    "DiscountSourceType",
    "DiscountType",
    "IdempotencyRecord",
    "LoyaltyProgram",
    "LoyaltyTransaction",
    "LoyaltyTransactionType",
    "MeasurementType",
    "OPEN_APPROVAL_STATUSES",
    "Organization",
    "RecurrenceType",
    "RuleType",
    "SeasonalCampaign",
    "TERMINAL_APPROVAL_STATUSES",
    "UsageStatus",
    "VolumeDiscountTier",
]
