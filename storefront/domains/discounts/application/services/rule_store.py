"""
Discount Rule Store

Creates, deactivates and lists discount rules.
"""

import logging

from storefront.core.domain import EntityNotFoundException
from storefront.domains.discounts.application.ports import IDiscountRuleRepository, IProductCatalog
from storefront.domains.discounts.domain.entities import DiscountRule
from storefront.domains.discounts.domain.value_objects import DiscountScope

logger = logging.getLogger(__name__)


class DiscountRuleStore:
    """
    Rule persistence with validation.

    Rules are only ever soft-deactivated.
    """

    def __init__(self, rule_repository: IDiscountRuleRepository, catalog: IProductCatalog):
        self._rules = rule_repository
        self._catalog = catalog

    async def create_rule(
        self,
        scope: DiscountScope | str,
        target_value: str | None,
        percentage: int,
        actor: str | None = None,
    ) -> DiscountRule:
        """
        Validate and persist a new active rule.

        Raises:
            ValidationException: Percentage out of range or target inconsistent with scope
            EntityNotFoundException: Target category/subcategory does not exist
        """
        rule = DiscountRule.create(scope, target_value, percentage, created_by=actor)
        await self._ensure_target_exists(rule)

        created = await self._rules.create(rule)
        logger.info(f"Discount rule created: {created.id} ({created.describe()}) by {actor or 'unknown'}")
        return created

    async def list_active(self) -> list[DiscountRule]:
        """Active rules, oldest first."""
        return await self._rules.list_active()

    async def get(self, rule_id: str) -> DiscountRule:
        rule = await self._rules.get_by_id(rule_id)
        if rule is None:
            raise EntityNotFoundException("DiscountRule", rule_id)
        return rule

    async def deactivate(self, rule_id: str) -> DiscountRule:
        """
        Deactivate a rule.

        Returns:
            The rule as it was before deactivation

        Raises:
            EntityNotFoundException: Unknown rule id, or rule already inactive
        """
        existing = await self._rules.get_by_id(rule_id)
        if existing is None:
            raise EntityNotFoundException("DiscountRule", rule_id)
        if not existing.active:
            raise EntityNotFoundException(
                "DiscountRule", rule_id, message=f"DiscountRule with ID {rule_id} is already inactive"
            )

        if await self._rules.deactivate(rule_id) is None:
            # Lost a race with another deactivation
            raise EntityNotFoundException(
                "DiscountRule", rule_id, message=f"DiscountRule with ID {rule_id} is already inactive"
            )

        logger.info(f"Discount rule deactivated: {rule_id}")
        return existing

    async def get_version(self) -> int:
        return await self._rules.get_rule_set_version()

    async def _ensure_target_exists(self, rule: DiscountRule) -> None:
        if rule.scope is DiscountScope.CATEGORY:
            if not await self._catalog.category_exists(rule.target_value):
                raise EntityNotFoundException("Category", rule.target_value)
        elif rule.scope is DiscountScope.SUBCATEGORY:
            if not await self._catalog.subcategory_exists(rule.target_value):
                raise EntityNotFoundException("Subcategory", rule.target_value)
