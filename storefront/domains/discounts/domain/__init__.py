"""
Discount Domain Layer

Entities, value objects, events and pure domain services for discount rules.
"""

from .entities import ActionCategory, ChangeLogEntry, DiscountRule, ProductSnapshot
from .events import (
    DiscountApplied,
    DiscountRuleCreated,
    DiscountRuleDeactivated,
    DiscountsRecomputed,
    PricingEvent,
)
from .services import CompiledPredicate, PredicateCompiler, discounted_price
from .value_objects import (
    DiscountScope,
    DiscountTarget,
    FieldType,
    FilterCondition,
    FilterField,
    LogicalOperator,
    Operator,
)

__all__ = [
    # Entities
    "DiscountRule",
    "ProductSnapshot",
    "ChangeLogEntry",
    "ActionCategory",
    # Events
    "PricingEvent",
    "DiscountRuleCreated",
    "DiscountRuleDeactivated",
    "DiscountApplied",
    "DiscountsRecomputed",
    # Services
    "PredicateCompiler",
    "CompiledPredicate",
    "discounted_price",
    # Value Objects
    "DiscountScope",
    "DiscountTarget",
    "FieldType",
    "FilterField",
    "FilterCondition",
    "LogicalOperator",
    "Operator",
]
