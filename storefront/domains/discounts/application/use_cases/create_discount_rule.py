"""
Create Discount Rule Use Case

Persists a rule, recomputes every product discount, announces the change
and records it in the change log.
"""

import logging
from dataclasses import dataclass

from storefront.domains.discounts.application.ports import IChangeNotifier
from storefront.domains.discounts.application.services import (
    ChangeLogService,
    DiscountApplicationEngine,
    DiscountRuleStore,
    RecomputeResult,
)
from storefront.domains.discounts.domain.entities import DiscountRule
from storefront.domains.discounts.domain.events import DiscountRuleCreated

logger = logging.getLogger(__name__)


@dataclass
class CreateDiscountRuleRequest:
    """Request for creating a discount rule"""

    scope: str
    target_value: str | None
    percentage: int
    actor_id: str | None = None
    actor_name: str | None = None


@dataclass
class CreateDiscountRuleResponse:
    """Response with the created rule and the recomputation outcome"""

    rule: DiscountRule
    recompute: RecomputeResult | None
    success: bool
    error: str | None = None


class CreateDiscountRuleUseCase:
    """
    Use case for creating a discount rule.

    The rule stays persisted even if recomputation fails; the failure is
    reported and the next recomputation reconciles the catalog.
    """

    def __init__(
        self,
        rule_store: DiscountRuleStore,
        engine: DiscountApplicationEngine,
        notifier: IChangeNotifier,
        change_log: ChangeLogService,
    ):
        self.rule_store = rule_store
        self.engine = engine
        self.notifier = notifier
        self.change_log = change_log

    async def execute(self, request: CreateDiscountRuleRequest) -> CreateDiscountRuleResponse:
        """
        Raises:
            ValidationException: Invalid percentage, scope or target
            EntityNotFoundException: Target category/subcategory does not exist
        """
        rule = await self.rule_store.create_rule(
            scope=request.scope,
            target_value=request.target_value,
            percentage=request.percentage,
            actor=request.actor_id,
        )

        recompute: RecomputeResult | None = None
        error: str | None = None
        try:
            recompute = await self.engine.recompute_all(actor=request.actor_id)
            error = recompute.error
        except Exception as e:
            logger.error(f"Recomputation after creating rule {rule.id} failed: {e}", exc_info=True)
            error = str(e)

        await self.notifier.publish(DiscountRuleCreated(entity_id=rule.id))
        await self.change_log.record(
            action_type="discount_created",
            entity_type="discount_rule",
            entity_id=rule.id,
            details={
                "scope": rule.scope.value,
                "target_value": rule.target_value,
                "percentage": rule.percentage,
                "recompute_succeeded": error is None,
            },
            actor_id=request.actor_id,
            actor_name=request.actor_name,
        )

        return CreateDiscountRuleResponse(rule=rule, recompute=recompute, success=error is None, error=error)

