from app.repositories.applied_discount_repository import AppliedDiscountRepository
from app.repositories.approval_request_repository import ApprovalRequestRepository
from app.repositories.audit_log_repository import AuditLogRepository
from app.repositories.automatic_rule_repository import AutomaticRuleRepository
from app.repositories.customer_loyalty_repository import CustomerLoyaltyRepository
from app.repositories.discount_code_repository import DiscountCodeRepository
from app.repositories.discount_code_usage_repository import DiscountCodeUsageRepository
from app.repositories.discount_settings_repository import DiscountSettingsRepository
from app.repositories.idempotency_repository import IdempotencyRepository
from app.repositories.loyalty_program_repository import LoyaltyProgramRepository
from app.repositories.loyalty_transaction_repository import LoyaltyTransactionRepository
from app.repositories.organization_repository import OrganizationRepository
from app.repositories.seasonal_campaign_repository import SeasonalCampaignRepository
from app.repositories.volume_tier_repository import VolumeTierRepository

__all__ = [
    "AppliedDiscountRepository",
    "ApprovalRequestRepository",
    "AuditLogRepository",
    "AutomaticRuleRepository",
    "CustomerLoyaltyRepository",
    "DiscountCodeRepository",
    "DiscountCodeUsageRepository",
    "DiscountSettingsRepository",
    "IdempotencyRepository",
    "LoyaltyProgramRepository",
    "LoyaltyTransactionRepository",
    "OrganizationRepository",
    "SeasonalCampaignRepository",
    "VolumeTierRepository",
]
