"""
Get Discounted Products Use Case
"""

from dataclasses import dataclass

from storefront.domains.discounts.application.services import DiscountedProductsView
from storefront.domains.discounts.domain.entities import ProductSnapshot


@dataclass
class GetDiscountedProductsRequest:
    limit: int | None = None


class GetDiscountedProductsUseCase:
    """Deepest current discounts, served from the banner cache."""

    def __init__(self, view: DiscountedProductsView):
        self.view = view

    async def execute(self, request: GetDiscountedProductsRequest) -> list[ProductSnapshot]:
        return await self.view.get(request.limit)
