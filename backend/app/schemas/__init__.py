from app.schemas.approval import (
    ApprovalApproveRequest,
    ApprovalCancelRequest,
    ApprovalRejectRequest,
    ApprovalRequestResponse,
    CounterOffer,
)
from app.schemas.audit_log import AuditLogResponse
from app.schemas.automatic_rule import (
    AutomaticRuleCreate,
    AutomaticRuleResponse,
    AutomaticRuleUpdate,
)
from app.schemas.discount import (
    AppliedDiscountResponse,
    ComposedDiscountResponse,
    DiscountEvaluationRequest,
    DiscountSourceResponse,
    ManualDiscountInput,
    NextVolumeTierResponse,
    PromoCodeResultResponse,
    RejectedSourceResponse,
    ServiceLineInput,
)
from app.schemas.discount_code import (
    DiscountCodeAnalyticsResponse,
    DiscountCodeCreate,
    DiscountCodeResponse,
    DiscountCodeUpdate,
    DiscountCodeUsageResponse,
)
from app.schemas.discount_settings import (
    DiscountSettingsResponse,
    DiscountSettingsUpsert,
    RoleLimit,
)
from app.schemas.loyalty import (
    CustomerLoyaltyResponse,
    LoyaltyAdjustRequest,
    LoyaltyEarnRequest,
    LoyaltyEnrollRequest,
    LoyaltyProgramResponse,
    LoyaltyProgramUpsert,
    LoyaltyReconciliationResponse,
    LoyaltyRedeemRequest,
    LoyaltyRedeemResponse,
    LoyaltyTier,
    LoyaltyTransactionResponse,
)
from app.schemas.organization import OrganizationCreate, OrganizationResponse, OrganizationUpdate
from app.schemas.seasonal_campaign import (
    ActiveSeasonalCampaignResponse,
    SeasonalCampaignCreate,
    SeasonalCampaignResponse,
    SeasonalCampaignUpdate,
)
from app.schemas.volume_tier import VolumeBand, VolumeTierCreate, VolumeTierResponse, VolumeTierUpdate

__all__ = [
    "ActiveSeasonalCampaignResponse",
    "AppliedDiscountResponse",
    "ApprovalApproveRequest",
    "ApprovalCancelRequest",
    "ApprovalRejectRequest",
    "ApprovalRequestResponse",
    "AuditLogResponse",
    "AutomaticRuleCreate",
    "AutomaticRuleResponse",
    "AutomaticRuleUpdate",
    "ComposedDiscountResponse",
    "CounterOffer",
    "CustomerLoyaltyResponse",
    "DiscountCodeAnalyticsResponse",
    "DiscountCodeCreate",
    "DiscountCodeResponse",
    "DiscountCodeUpdate",
    "DiscountCodeUsageResponse",
    "DiscountEvaluationRequest",
    "DiscountSettingsResponse",
    "DiscountSettingsUpsert",
    "DiscountSourceResponse",
    "LoyaltyAdjustRequest",
    "LoyaltyEarnRequest",
    "LoyaltyEnrollRequest",
    "LoyaltyProgramResponse",
    "LoyaltyProgramUpsert",
    "LoyaltyReconciliationResponse",
    "LoyaltyRedeemRequest",
    "LoyaltyRedeemResponse",
    "LoyaltyTier",
    "LoyaltyTransactionResponse",
    "ManualDiscountInput",
    "NextVolumeTierResponse",
    "OrganizationCreate",
    "OrganizationResponse",
    "OrganizationUpdate",
    "PromoCodeResultResponse",
    "RejectedSourceResponse",
    "RoleLimit",
    "SeasonalCampaignCreate",
    "SeasonalCampaignResponse",
    "SeasonalCampaignUpdate",
    "ServiceLineInput",
    "VolumeBand",
    "VolumeTierCreate",
    "VolumeTierResponse",
    "VolumeTierUpdate",
]
