"""Test utilities and helpers."""

from tests.utils.builders import BASE_TIME, CATEGORY_A, CATEGORY_B, SUBCATEGORY_X, ProductBuilder, condition
from tests.utils.fakes import (
    InMemoryChangeLogRepository,
    InMemoryDiscountRuleRepository,
    InMemoryProductCatalog,
)

__all__ = [
    # Builders
    "BASE_TIME",
    "CATEGORY_A",
    "CATEGORY_B",
    "SUBCATEGORY_X",
    "ProductBuilder",
    "condition",
    # Fakes
    "InMemoryDiscountRuleRepository",
    "InMemoryProductCatalog",
    "InMemoryChangeLogRepository",
]
