"""Promo code validation against a catalog snapshot and the usage ledger."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from app.models.applied_discount import DiscountSourceType
from app.services.discounts.definitions import Catalog, PromoCodeDefinition
from app.services.discounts.errors import DiscountErrorCode
from app.services.discounts.types import (
    ZERO,
    DiscountCandidate,
    OrderContext,
    compute_discount_amount,
)


class UsageReader(Protocol):
    """Read side of the usage ledger."""

    def uses_claimed(self, discount_code_id: UUID) -> int: ...

    def customer_claims(
        self,
        discount_code_id: UUID,
        customer_id: str | None,
        customer_email: str | None,
    ) -> int: ...


@dataclass(frozen=True)
class ValidationResult:
    code: str
    is_valid: bool
    error_code: DiscountErrorCode | None = None
    message: str | None = None
    definition: PromoCodeDefinition | None = None
    discount_amount: Decimal = ZERO

    @classmethod
    def failure(
        cls,
        code: str,
        error_code: DiscountErrorCode,
        message: str,
        definition: PromoCodeDefinition | None = None,
    ) -> "ValidationResult":
        return cls(
            code=code,
            is_valid=False,
            error_code=error_code,
            message=message,
            definition=definition,
        )

    def to_candidate(self) -> DiscountCandidate | None:
        if not self.is_valid or self.definition is None:
            return None
        return DiscountCandidate(
            source_type=DiscountSourceType.PROMO_CODE,
            source_id=str(self.definition.id),
            source_name=self.definition.code,
            discount_type=self.definition.discount_type,
            discount_value=self.definition.discount_value,
            discount_amount=self.discount_amount,
        )


class PromoCodeValidator:
    """Validates one submitted code.

    Checks run in a fixed order and stop at the first failure: existence and
    validity window, total usage, per-customer usage, minimum order amount, then
    customer/service/tier restrictions. Usage counts come from the ledger rather
    than from the snapshot.
    """

    def __init__(self, usage: UsageReader):
        self.usage = usage

    def validate(self, catalog: Catalog, code: str, context: OrderContext) -> ValidationResult:
        normalized = code.strip().upper()
        definition = catalog.promo_codes.get(normalized)
        if definition is None:
            if normalized in catalog.expired_codes:
                return ValidationResult.failure(
                    normalized, DiscountErrorCode.CODE_EXPIRED, "This code has expired"
                )
            return ValidationResult.failure(
                normalized, DiscountErrorCode.CODE_NOT_FOUND, "Invalid discount code"
            )

        if definition.max_uses_total is not None:
            if self.usage.uses_claimed(definition.id) >= definition.max_uses_total:
                return ValidationResult.failure(
                    normalized,
                    DiscountErrorCode.USAGE_LIMIT_EXCEEDED,
                    "This code has reached its usage limit",
                    definition,
                )

        if definition.max_uses_per_customer is not None and (
            context.customer_id or context.customer_email
        ):
            claims = self.usage.customer_claims(
                definition.id, context.customer_id, context.customer_email
            )
            if claims >= definition.max_uses_per_customer:
                return ValidationResult.failure(
                    normalized,
                    DiscountErrorCode.CUSTOMER_LIMIT_EXCEEDED,
                    "You have already used this code",
                    definition,
                )

        if context.order_amount < definition.min_order_amount:
            return ValidationResult.failure(
                normalized,
                DiscountErrorCode.MINIMUM_ORDER_NOT_MET,
                f"Minimum order amount is {definition.min_order_amount}",
                definition,
            )

        restriction = self._restriction_failure(definition, context)
        if restriction is not None:
            return ValidationResult.failure(
                normalized, DiscountErrorCode.RESTRICTION_NOT_MET, restriction, definition
            )

        amount = compute_discount_amount(
            definition.discount_type,
            definition.discount_value,
            context.order_amount,
            definition.max_discount_amount,
        )
        return ValidationResult(
            code=normalized,
            is_valid=True,
            definition=definition,
            discount_amount=amount,
        )

    @staticmethod
    def _restriction_failure(
        definition: PromoCodeDefinition, context: OrderContext
    ) -> str | None:
        if definition.specific_customer_ids is not None and (
            context.customer_id is None
            or context.customer_id not in definition.specific_customer_ids
        ):
            return "This code is not valid for this customer"
        if definition.new_customers_only and not context.is_new_customer:
            return "This code is only valid for new customers"
        if definition.existing_customers_only and context.is_new_customer:
            return "This code is only valid for existing customers"
        if definition.applicable_services is not None and not (
            definition.applicable_services & context.service_types
        ):
            return "This code does not apply to the selected services"
        if definition.applicable_tiers is not None and context.tier not in (
            definition.applicable_tiers
        ):
            return "This code does not apply to the selected tier"
        return None
