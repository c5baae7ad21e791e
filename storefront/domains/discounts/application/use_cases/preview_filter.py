"""
Preview Filter Use Case

Describes what a condition list selects without writing anything.
"""

import logging
from dataclasses import dataclass, field

from storefront.domains.discounts.application.ports import IProductCatalog, ProductFilter
from storefront.domains.discounts.domain.entities import ProductSnapshot
from storefront.domains.discounts.domain.services import PredicateCompiler
from storefront.domains.discounts.domain.value_objects import FilterCondition

logger = logging.getLogger(__name__)


@dataclass
class PreviewFilterRequest:
    conditions: list[FilterCondition]
    include_products: bool = False
    limit: int = 50


@dataclass
class PreviewFilterResponse:
    preview: str
    matching_count: int | None = None
    products: list[ProductSnapshot] = field(default_factory=list)


class PreviewFilterUseCase:
    """
    Compiles conditions into their readable form and, optionally, lists the
    active products they currently select (newest first).
    """

    def __init__(self, compiler: PredicateCompiler, catalog: IProductCatalog):
        self.compiler = compiler
        self.catalog = catalog

    async def execute(self, request: PreviewFilterRequest) -> PreviewFilterResponse:
        """
        Raises:
            ValidationException: Unknown field, illegal operator or bad value
        """
        predicate = self.compiler.compile(request.conditions)
        if not request.include_products:
            return PreviewFilterResponse(preview=predicate.preview)

        matching_ids = await self.catalog.read_ids(ProductFilter(predicate=predicate))
        products = await self.catalog.read(ProductFilter(predicate=predicate, limit=request.limit))
        return PreviewFilterResponse(
            preview=predicate.preview,
            matching_count=len(matching_ids),
            products=products,
        )
