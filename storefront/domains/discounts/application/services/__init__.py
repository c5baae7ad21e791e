"""
Discount Application Services
"""

from .application_engine import DiscountApplicationEngine, RecomputeResult, RemovalResult, RuleOutcome
from .change_log import ChangeLogService
from .discounted_products_view import DiscountedProductsView
from .rule_store import DiscountRuleStore

__all__ = [
    "DiscountRuleStore",
    "DiscountApplicationEngine",
    "RuleOutcome",
    "RecomputeResult",
    "RemovalResult",
    "ChangeLogService",
    "DiscountedProductsView",
]
