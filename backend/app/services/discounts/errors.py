"""Error taxonomy for the discount engine.

Promo-code and reservation failures are returned as typed results carrying a
``DiscountErrorCode``; the exceptions below are raised for conditions the caller
cannot branch around (missing tenants, illegal approval transitions, bad configuration).
"""

from enum import Enum
from uuid import UUID


class DiscountErrorCode(str, Enum):
    CODE_NOT_FOUND = "code_not_found"
    CODE_EXPIRED = "code_expired"
    USAGE_LIMIT_EXCEEDED = "usage_limit_exceeded"
    CUSTOMER_LIMIT_EXCEEDED = "customer_limit_exceeded"
    MINIMUM_ORDER_NOT_MET = "minimum_order_not_met"
    RESTRICTION_NOT_MET = "restriction_not_met"
    STACKING_POLICY_VIOLATION = "stacking_policy_violation"
    INVALID_STATE_TRANSITION = "invalid_state_transition"
    APPROVAL_REQUIRED = "approval_required"
    CONCURRENT_USAGE_CONFLICT = "concurrent_usage_conflict"


class DiscountError(ValueError):
    """Base class for discount engine errors."""


class OrganizationNotFound(DiscountError):
    def __init__(self, organization_id: UUID):
        super().__init__(f"Organization {organization_id} not found")
        self.organization_id = organization_id


class ApprovalNotFound(DiscountError):
    def __init__(self, request_id: UUID):
        super().__init__(f"Approval request {request_id} not found")
        self.request_id = request_id


class InvalidStateTransition(DiscountError):
    """Raised when an approval request is not in a state that allows ``action``."""

    code = DiscountErrorCode.INVALID_STATE_TRANSITION

    def __init__(self, request_id: UUID, current_status: str, action: str):
        super().__init__(
            f"Cannot {action} approval request {request_id} in status '{current_status}'"
        )
        self.request_id = request_id
        self.current_status = current_status
        self.action = action


class ApprovalAlreadyPending(DiscountError):
    def __init__(self, order_id: UUID):
        super().__init__(f"Order {order_id} already has an open approval request")
        self.order_id = order_id


class ApprovalPermissionDenied(DiscountError):
    pass


class OrderAlreadyFinalized(DiscountError):
    def __init__(self, order_id: UUID):
        super().__init__(f"Discounts for order {order_id} have already been applied")
        self.order_id = order_id


class TierConfigurationError(DiscountError):
    pass


class LoyaltyError(DiscountError):
    pass


class CodeGenerationConflict(DiscountError):
    """Generated promo codes collide with codes the organization already has."""
