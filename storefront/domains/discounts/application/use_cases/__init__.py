"""
Discount Application Use Cases
"""

from .apply_discount_with_filter import (
    AppliedResult,
    ApplyDiscountWithFilterRequest,
    ApplyDiscountWithFilterUseCase,
)
from .create_discount_rule import (
    CreateDiscountRuleRequest,
    CreateDiscountRuleResponse,
    CreateDiscountRuleUseCase,
)
from .get_change_log import GetChangeLogRequest, GetChangeLogUseCase
from .get_discounted_products import GetDiscountedProductsRequest, GetDiscountedProductsUseCase
from .list_active_discounts import ListActiveDiscountsRequest, ListActiveDiscountsUseCase
from .preview_filter import PreviewFilterRequest, PreviewFilterResponse, PreviewFilterUseCase
from .recompute_discounts import RecomputeDiscountsRequest, RecomputeDiscountsUseCase
from .remove_discount_rule import (
    RemoveDiscountRuleRequest,
    RemoveDiscountRuleResponse,
    RemoveDiscountRuleUseCase,
)

__all__ = [
    # Rules
    "CreateDiscountRuleUseCase",
    "CreateDiscountRuleRequest",
    "CreateDiscountRuleResponse",
    "RemoveDiscountRuleUseCase",
    "RemoveDiscountRuleRequest",
    "RemoveDiscountRuleResponse",
    "ListActiveDiscountsUseCase",
    "ListActiveDiscountsRequest",
    # Filters
    "PreviewFilterUseCase",
    "PreviewFilterRequest",
    "PreviewFilterResponse",
    "ApplyDiscountWithFilterUseCase",
    "ApplyDiscountWithFilterRequest",
    "AppliedResult",
    # Recomputation
    "RecomputeDiscountsUseCase",
    "RecomputeDiscountsRequest",
    # Read models
    "GetChangeLogUseCase",
    "GetChangeLogRequest",
    "GetDiscountedProductsUseCase",
    "GetDiscountedProductsRequest",
]
