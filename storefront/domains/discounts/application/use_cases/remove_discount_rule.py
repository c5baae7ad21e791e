"""
Remove Discount Rule Use Case
"""

import logging
from dataclasses import dataclass

from storefront.domains.discounts.application.ports import IChangeNotifier
from storefront.domains.discounts.application.services import (
    ChangeLogService,
    DiscountApplicationEngine,
    RecomputeResult,
)
from storefront.domains.discounts.domain.entities import DiscountRule
from storefront.domains.discounts.domain.events import DiscountRuleDeactivated

logger = logging.getLogger(__name__)


@dataclass
class RemoveDiscountRuleRequest:
    rule_id: str
    actor_id: str | None = None
    actor_name: str | None = None


@dataclass
class RemoveDiscountRuleResponse:
    rule: DiscountRule
    recompute: RecomputeResult | None
    success: bool
    error: str | None = None


class RemoveDiscountRuleUseCase:
    """
    Deactivates a rule and recomputes the catalog without it.
    """

    def __init__(
        self,
        engine: DiscountApplicationEngine,
        notifier: IChangeNotifier,
        change_log: ChangeLogService,
    ):
        self.engine = engine
        self.notifier = notifier
        self.change_log = change_log

    async def execute(self, request: RemoveDiscountRuleRequest) -> RemoveDiscountRuleResponse:
        """
        Raises:
            EntityNotFoundException: Unknown or already inactive rule
        """
        removal = await self.engine.remove_rule(request.rule_id, actor=request.actor_id)

        error = removal.error or (removal.recompute.error if removal.recompute else None)

        await self.notifier.publish(DiscountRuleDeactivated(entity_id=removal.rule.id))
        await self.change_log.record(
            action_type="discount_removed",
            entity_type="discount_rule",
            entity_id=removal.rule.id,
            details={
                "scope": removal.rule.scope.value,
                "target_value": removal.rule.target_value,
                "percentage": removal.rule.percentage,
                "recompute_succeeded": error is None,
            },
            actor_id=request.actor_id,
            actor_name=request.actor_name,
        )

        return RemoveDiscountRuleResponse(
            rule=removal.rule,
            recompute=removal.recompute,
            success=error is None,
            error=error,
        )
