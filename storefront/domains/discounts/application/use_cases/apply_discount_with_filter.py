"""
Apply Discount With Filter Use Case

Creates a rule and applies it only to the products an ad-hoc filter selects
at this moment.
"""

import logging
from dataclasses import dataclass, field

from storefront.core.domain import PartialApplicationException
from storefront.domains.discounts.application.ports import IChangeNotifier, IProductCatalog, ProductFilter
from storefront.domains.discounts.application.services import (
    ChangeLogService,
    DiscountApplicationEngine,
    DiscountRuleStore,
)
from storefront.domains.discounts.domain.entities import DiscountRule
from storefront.domains.discounts.domain.events import DiscountRuleCreated
from storefront.domains.discounts.domain.services import PredicateCompiler
from storefront.domains.discounts.domain.value_objects import FilterCondition

logger = logging.getLogger(__name__)


@dataclass
class ApplyDiscountWithFilterRequest:
    scope: str
    target_value: str | None
    percentage: int
    conditions: list[FilterCondition] = field(default_factory=list)
    actor_id: str | None = None
    actor_name: str | None = None


@dataclass
class AppliedResult:
    """What a filtered application did."""

    rule: DiscountRule
    preview: str
    candidate_count: int
    affected_count: int
    success: bool
    error: str | None = None


class ApplyDiscountWithFilterUseCase:
    """
    Filtered discount application.

    The filter is ephemeral: candidates are read once, then the rule is
    created and written onto the candidates inside its scope. With no
    conditions this is a plain rule creation followed by a full
    recomputation.
    """

    def __init__(
        self,
        compiler: PredicateCompiler,
        rule_store: DiscountRuleStore,
        engine: DiscountApplicationEngine,
        catalog: IProductCatalog,
        notifier: IChangeNotifier,
        change_log: ChangeLogService,
    ):
        self.compiler = compiler
        self.rule_store = rule_store
        self.engine = engine
        self.catalog = catalog
        self.notifier = notifier
        self.change_log = change_log

    async def execute(self, request: ApplyDiscountWithFilterRequest) -> AppliedResult:
        """
        Raises:
            ValidationException: Invalid filter or rule parameters (nothing written)
            EntityNotFoundException: Target category/subcategory does not exist
        """
        # Validation happens here, before anything is read or written
        predicate = self.compiler.compile(request.conditions)
        DiscountRule.create(request.scope, request.target_value, request.percentage)

        candidate_ids: list[str] | None = None
        if not predicate.is_trivial:
            candidate_ids = await self.catalog.read_ids(ProductFilter(predicate=predicate))

        rule = await self.rule_store.create_rule(
            scope=request.scope,
            target_value=request.target_value,
            percentage=request.percentage,
            actor=request.actor_id,
        )

        affected = 0
        error: str | None = None
        if candidate_ids is None:
            try:
                recompute = await self.engine.recompute_all(actor=request.actor_id)
                outcome = next((o for o in recompute.outcomes if o.rule_id == rule.id), None)
                affected = outcome.affected_count if outcome else 0
                error = recompute.error
            except Exception as e:
                logger.error(f"Recomputation after creating rule {rule.id} failed: {e}", exc_info=True)
                error = str(e)
        else:
            try:
                outcome = await self.engine.apply_rule(rule, frozenset(candidate_ids), actor=request.actor_id)
                affected = outcome.affected_count
            except PartialApplicationException as e:
                error = e.message

        await self.notifier.publish(DiscountRuleCreated(entity_id=rule.id))
        await self.change_log.record(
            action_type="complex_discount_applied",
            entity_type="discount_rule",
            entity_id=rule.id,
            details={
                "scope": rule.scope.value,
                "target_value": rule.target_value,
                "percentage": rule.percentage,
                "conditions": predicate.preview,
                "candidate_count": len(candidate_ids) if candidate_ids is not None else None,
                "affected_count": affected,
                "success": error is None,
            },
            actor_id=request.actor_id,
            actor_name=request.actor_name,
        )

        logger.info(
            f"Filtered discount {rule.id}: {rule.percentage}% on {affected} products "
            f"({len(candidate_ids) if candidate_ids is not None else 'all'} candidates)"
        )
        return AppliedResult(
            rule=rule,
            preview=predicate.preview,
            candidate_count=len(candidate_ids) if candidate_ids is not None else affected,
            affected_count=affected,
            success=error is None,
            error=error,
        )
