"""
Database models
"""

from .base import Base, TimestampMixin
from .catalog import Category, Product, Subcategory
from .changes_log import ChangeLog
from .discounts import ActiveDiscount, DiscountRuleSet

__all__ = [
    "Base",
    "TimestampMixin",
    "Category",
    "Subcategory",
    "Product",
    "ActiveDiscount",
    "DiscountRuleSet",
    "ChangeLog",
]
