"""
Discount Infrastructure Layer
"""

from .notifications import InMemoryChangeNotifier, RedisChangeNotifier
from .repositories import (
    SQLAlchemyChangeLogRepository,
    SQLAlchemyDiscountRuleRepository,
    SQLAlchemyProductCatalog,
)

__all__ = [
    "InMemoryChangeNotifier",
    "RedisChangeNotifier",
    "SQLAlchemyChangeLogRepository",
    "SQLAlchemyDiscountRuleRepository",
    "SQLAlchemyProductCatalog",
]
