"""
Recompute Discounts Use Case
"""

from dataclasses import dataclass

from storefront.domains.discounts.application.services import DiscountApplicationEngine, RecomputeResult


@dataclass
class RecomputeDiscountsRequest:
    actor_id: str | None = None


class RecomputeDiscountsUseCase:
    """Manual full recomputation. Always safe to repeat."""

    def __init__(self, engine: DiscountApplicationEngine):
        self.engine = engine

    async def execute(self, request: RecomputeDiscountsRequest) -> RecomputeResult:
        return await self.engine.recompute_all(actor=request.actor_id)
