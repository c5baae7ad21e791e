"""
Discount Infrastructure Repositories
"""

from .change_log_repository import SQLAlchemyChangeLogRepository
from .discount_rule_repository import SQLAlchemyDiscountRuleRepository
from .product_catalog import SQLAlchemyProductCatalog

__all__ = [
    "SQLAlchemyChangeLogRepository",
    "SQLAlchemyDiscountRuleRepository",
    "SQLAlchemyProductCatalog",
]
