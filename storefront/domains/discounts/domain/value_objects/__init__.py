"""
Discount Domain Value Objects
"""

from .discount_scope import DiscountPercentage, DiscountScope, DiscountTarget
from .filter import (
    LEGAL_OPERATORS,
    OPERATOR_ALIASES,
    FieldType,
    FilterCondition,
    FilterField,
    LogicalOperator,
    Operator,
)
from .product_fields import PRODUCT_FIELDS, get_product_field

__all__ = [
    "DiscountScope",
    "DiscountTarget",
    "DiscountPercentage",
    "FieldType",
    "FilterField",
    "FilterCondition",
    "LogicalOperator",
    "Operator",
    "LEGAL_OPERATORS",
    "OPERATOR_ALIASES",
    "PRODUCT_FIELDS",
    "get_product_field",
]
