"""
Discount Domain Services
"""

from .predicate_compiler import ALL_PRODUCTS_PREVIEW, CompiledCondition, CompiledPredicate, PredicateCompiler
from .pricing import discounted_price

__all__ = [
    "PredicateCompiler",
    "CompiledPredicate",
    "CompiledCondition",
    "ALL_PRODUCTS_PREVIEW",
    "discounted_price",
]
