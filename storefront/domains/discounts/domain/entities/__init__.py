"""
Discount Domain Entities
"""

from .change_log_entry import ActionCategory, ChangeLogEntry
from .discount_rule import DiscountRule
from .product_snapshot import ProductSnapshot

__all__ = [
    "DiscountRule",
    "ProductSnapshot",
    "ChangeLogEntry",
    "ActionCategory",
]
