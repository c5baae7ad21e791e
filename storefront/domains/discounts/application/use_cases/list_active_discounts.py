"""
List Active Discounts Use Case
"""

from dataclasses import dataclass

from storefront.domains.discounts.application.services import DiscountRuleStore
from storefront.domains.discounts.domain.entities import DiscountRule

ORDER_NEWEST = "newest"
ORDER_CREATED = "created"
ORDER_PERCENTAGE = "percentage"


@dataclass
class ListActiveDiscountsRequest:
    order: str = ORDER_NEWEST  # 'newest' (admin table), 'created', 'percentage' (banner)
    limit: int | None = None


class ListActiveDiscountsUseCase:
    """
    Active rules for the admin table and the promotional banner.

    Always reads the store; there is no in-process rule cache.
    """

    def __init__(self, rule_store: DiscountRuleStore):
        self.rule_store = rule_store

    async def execute(self, request: ListActiveDiscountsRequest) -> list[DiscountRule]:
        rules = await self.rule_store.list_active()

        if request.order == ORDER_NEWEST:
            rules = list(reversed(rules))
        elif request.order == ORDER_PERCENTAGE:
            # Stable sort keeps newer rules first among equal percentages
            rules = sorted(reversed(rules), key=lambda r: r.percentage, reverse=True)

        if request.limit is not None:
            rules = rules[: request.limit]
        return rules
