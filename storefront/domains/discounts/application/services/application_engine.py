"""
Discount Application Engine

Writes rule percentages onto catalog products and owns the
reset-then-replay recomputation.

Precedence is "most recently created wins": every active rule is replayed
in creation order and later writes overwrite earlier ones. Each rule's write
is atomic on its own; a full recomputation is not, so a failed rule is
reported with zero affected products and the next recomputation reconciles.
"""

import logging
from dataclasses import dataclass, field

from storefront.core.domain import ConcurrencyException, PartialApplicationException
from storefront.core.shared.logger import get_logger
from storefront.domains.discounts.application.ports import IChangeNotifier, IProductCatalog, ProductFilter
from storefront.domains.discounts.application.services.change_log import ChangeLogService
from storefront.domains.discounts.application.services.rule_store import DiscountRuleStore
from storefront.domains.discounts.domain.entities import DiscountRule
from storefront.domains.discounts.domain.events import DiscountApplied, DiscountsRecomputed

logger = logging.getLogger(__name__)


@dataclass
class RuleOutcome:
    """Result of writing one rule."""

    rule_id: str
    scope: str
    target_value: str | None
    percentage: int
    affected_count: int
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @classmethod
    def for_rule(cls, rule: DiscountRule, affected_count: int, error: str | None = None) -> "RuleOutcome":
        return cls(
            rule_id=rule.id,
            scope=rule.scope.value,
            target_value=rule.target_value,
            percentage=rule.percentage,
            affected_count=affected_count,
            error=error,
        )


@dataclass
class RecomputeResult:
    """Per-rule outcomes of a full recomputation."""

    outcomes: list[RuleOutcome] = field(default_factory=list)
    reset_count: int = 0
    attempts: int = 1
    converged: bool = True
    rule_set_version: int = 0

    @property
    def restarts(self) -> int:
        return self.attempts - 1

    @property
    def failed_rule_ids(self) -> list[str]:
        return [o.rule_id for o in self.outcomes if not o.succeeded]

    @property
    def succeeded(self) -> bool:
        """Only true when every rule was written and the rule set held still."""
        return self.converged and not self.failed_rule_ids

    @property
    def total_affected(self) -> int:
        return sum(o.affected_count for o in self.outcomes)

    @property
    def error(self) -> str | None:
        """Why the recomputation is incomplete, or None."""
        if self.failed_rule_ids:
            return f"{len(self.failed_rule_ids)} rule(s) could not be applied: {', '.join(self.failed_rule_ids)}"
        if not self.converged:
            return f"Rule set kept changing; recomputation stopped after {self.attempts} attempts"
        return None


@dataclass
class RemovalResult:
    """Outcome of removing a rule; `recompute` is None when recomputation raised."""

    rule: DiscountRule
    recompute: RecomputeResult | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.recompute is not None and self.recompute.succeeded


class DiscountApplicationEngine:
    """
    Applies discount rules to the product catalog.

    Example:
        ```python
        engine = DiscountApplicationEngine(rule_store, catalog, notifier, change_log)
        outcome = await engine.apply_rule(rule)
        result = await engine.recompute_all()
        ```
    """

    def __init__(
        self,
        rule_store: DiscountRuleStore,
        catalog: IProductCatalog,
        notifier: IChangeNotifier,
        change_log: ChangeLogService,
        max_attempts: int = 3,
    ):
        self._rule_store = rule_store
        self._catalog = catalog
        self._notifier = notifier
        self._change_log = change_log
        self._max_attempts = max(1, max_attempts)
        self._log = get_logger(__name__, {"component": "discount_engine"})

    async def apply_rule(
        self,
        rule: DiscountRule,
        candidate_ids: frozenset[str] | set[str] | None = None,
        actor: str | None = None,
    ) -> RuleOutcome:
        """
        Write one rule onto its target products, then announce and record it.

        Args:
            rule: The rule to apply
            candidate_ids: When given, only these products may be touched
            actor: Identity recorded in the change log

        Raises:
            PartialApplicationException: The bulk write failed; nothing was updated
        """
        candidates = frozenset(candidate_ids) if candidate_ids is not None else None
        affected = await self._write_rule(rule, candidates)

        await self._notifier.publish(DiscountApplied(entity_id=rule.id, affected_count=affected))
        await self._change_log.record(
            action_type="discount_applied",
            entity_type="discount_rule",
            entity_id=rule.id,
            details={
                "scope": rule.scope.value,
                "target_value": rule.target_value,
                "percentage": rule.percentage,
                "affected_count": affected,
                "candidate_count": len(candidates) if candidates is not None else None,
            },
            actor_id=actor,
        )
        return RuleOutcome.for_rule(rule, affected)

    async def recompute_all(self, actor: str | None = None) -> RecomputeResult:
        """
        Reset every active product to 0% and replay all active rules oldest first.

        If the rule set changes while the pass runs, the pass starts over, up
        to the configured number of attempts. Calling this twice with no
        change in between leaves the catalog unchanged.
        """
        result = RecomputeResult()
        for attempt in range(1, self._max_attempts + 1):
            result = await self._recompute_pass(attempt)
            try:
                await self._ensure_version(result.rule_set_version)
                break
            except ConcurrencyException as e:
                self._log.warning(
                    "Rule set changed during recomputation; restarting",
                    attempt=attempt,
                    expected_version=e.expected_version,
                    actual_version=e.actual_version,
                )
        else:
            result.converged = False
            self._log.warning("Recomputation did not converge", attempts=self._max_attempts)

        logger.info(
            f"Recomputed discounts: {len(result.outcomes)} rules, {result.total_affected} writes, "
            f"{len(result.failed_rule_ids)} failed, attempts={result.attempts}"
        )

        await self._notifier.publish(
            DiscountsRecomputed(
                entity_id=str(result.rule_set_version),
                rule_count=len(result.outcomes),
                converged=result.converged,
            )
        )
        await self._change_log.record(
            action_type="discounts_recomputed",
            entity_type="discount_rule_set",
            entity_id=str(result.rule_set_version),
            details={
                "rule_count": len(result.outcomes),
                "reset_count": result.reset_count,
                "total_affected": result.total_affected,
                "failed_rule_ids": result.failed_rule_ids,
                "attempts": result.attempts,
                "converged": result.converged,
            },
            actor_id=actor,
        )
        return result

    async def remove_rule(self, rule_id: str, actor: str | None = None) -> RemovalResult:
        """
        Deactivate a rule and recompute.

        A failed recomputation is reported on the result, not raised.

        Raises:
            EntityNotFoundException: Unknown or already inactive rule
        """
        prior = await self._rule_store.deactivate(rule_id)
        try:
            recompute = await self.recompute_all(actor=actor)
        except Exception as e:
            # The deactivation is committed; the next recomputation reconciles
            self._log.error(f"Recomputation after removal failed: {e}", exc_info=True, rule_id=rule_id)
            return RemovalResult(rule=prior, error=str(e))
        return RemovalResult(rule=prior, recompute=recompute)

    async def _recompute_pass(self, attempt: int) -> RecomputeResult:
        version = await self._rule_store.get_version()
        rules = await self._rule_store.list_active()

        reset_count = await self._catalog.reset_discounts()

        outcomes: list[RuleOutcome] = []
        for rule in rules:
            try:
                affected = await self._write_rule(rule, None)
                outcomes.append(RuleOutcome.for_rule(rule, affected))
            except PartialApplicationException as e:
                outcomes.append(RuleOutcome.for_rule(rule, 0, error=str(e.cause or e)))

        return RecomputeResult(
            outcomes=outcomes,
            reset_count=reset_count,
            attempts=attempt,
            rule_set_version=version,
        )

    async def _ensure_version(self, expected: int) -> None:
        actual = await self._rule_store.get_version()
        if actual != expected:
            raise ConcurrencyException("discount_rule_set", 1, expected, actual)

    async def _write_rule(self, rule: DiscountRule, candidate_ids: frozenset[str] | None) -> int:
        rule_log = self._log.with_context(rule_id=rule.id)
        try:
            product_ids = await self._catalog.read_ids(ProductFilter.for_rule(rule, candidate_ids))
            if not product_ids:
                rule_log.info("No products in scope", scope=str(rule.target))
                return 0
            affected = await self._catalog.bulk_update_discount(product_ids, rule.percentage)
        except Exception as e:
            rule_log.error(f"Bulk discount write failed: {e}", exc_info=True)
            raise PartialApplicationException(rule.id, e) from e

        rule_log.info("Applied discount", percentage=rule.percentage, affected_count=affected)
        return affected
