"""
Discount Application Ports

Interface definitions (ports) for the discount engine.
Uses Protocol for structural typing.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable

from storefront.core.domain import DomainEvent
from storefront.domains.discounts.domain.entities import ChangeLogEntry, DiscountRule, ProductSnapshot
from storefront.domains.discounts.domain.services import CompiledPredicate
from storefront.domains.discounts.domain.value_objects import DiscountScope


@dataclass(frozen=True)
class ProductFilter:
    """
    Catalog query.

    All set criteria must hold. `product_ids=None` means no id restriction;
    an empty set selects nothing.
    """

    active_only: bool = True
    category: str | None = None
    subcategory: str | None = None
    product_ids: frozenset[str] | None = None
    predicate: CompiledPredicate | None = None
    limit: int | None = None

    @classmethod
    def for_rule(cls, rule: DiscountRule, candidate_ids: frozenset[str] | None = None) -> "ProductFilter":
        """Active products inside the rule's scope, optionally narrowed to candidates."""
        return cls(
            active_only=True,
            category=rule.target_value if rule.scope is DiscountScope.CATEGORY else None,
            subcategory=rule.target_value if rule.scope is DiscountScope.SUBCATEGORY else None,
            product_ids=candidate_ids,
        )

    def matches(self, product: ProductSnapshot) -> bool:
        if self.active_only and not product.is_active:
            return False
        if self.category is not None and self.category not in product.categories:
            return False
        if self.subcategory is not None and self.subcategory not in product.subcategories:
            return False
        if self.product_ids is not None and product.id not in self.product_ids:
            return False
        if self.predicate is not None and not self.predicate.matches(product):
            return False
        return True


@runtime_checkable
class IDiscountRuleRepository(Protocol):
    """
    Interface for discount rule persistence.

    Every create or deactivate bumps the rule-set version.
    """

    async def create(self, rule: DiscountRule) -> DiscountRule:
        """Persist a new rule"""
        ...

    async def get_by_id(self, rule_id: str) -> DiscountRule | None:
        """Get rule by ID (active or not)"""
        ...

    async def deactivate(self, rule_id: str) -> DiscountRule | None:
        """Mark an active rule inactive; None if absent or already inactive"""
        ...

    async def list_active(self) -> list[DiscountRule]:
        """Active rules in ascending creation order"""
        ...

    async def get_rule_set_version(self) -> int:
        """Current optimistic version of the active rule set"""
        ...


@runtime_checkable
class IProductCatalog(Protocol):
    """
    Interface for the product catalog collaborator.
    """

    async def read(self, product_filter: ProductFilter) -> list[ProductSnapshot]:
        """Products matching the filter, newest first"""
        ...

    async def read_ids(self, product_filter: ProductFilter) -> list[str]:
        """Ids of products matching the filter"""
        ...

    async def bulk_update_discount(self, product_ids: list[str], percentage: int) -> int:
        """Write one percentage onto all ids atomically; returns rows updated"""
        ...

    async def reset_discounts(self) -> int:
        """Set discount_percentage to 0 on every active product"""
        ...

    async def category_exists(self, category_id: str) -> bool:
        ...

    async def subcategory_exists(self, subcategory_id: str) -> bool:
        ...

    async def list_discounted(self, limit: int) -> list[ProductSnapshot]:
        """Active discounted products, highest discount first"""
        ...


@runtime_checkable
class IChangeLogRepository(Protocol):
    """
    Interface for the append-only audit trail.
    """

    async def append(self, entry: ChangeLogEntry) -> ChangeLogEntry:
        """Persist an entry; the stored timestamp may be moved after the newest row"""
        ...

    async def list_entries(
        self,
        action_type_contains: str | None = None,
        entity_type: str | None = None,
        limit: int = 500,
    ) -> list[ChangeLogEntry]:
        """Most recent entries first"""
        ...

    async def latest_timestamp(self) -> datetime | None:
        """Timestamp of the newest entry, or None"""
        ...


class SubscriptionClosed(Exception):
    """Raised by `get()` once a subscription has been cancelled."""


@runtime_checkable
class ISubscription(Protocol):
    """Cancellable handle returned by a notifier subscription."""

    async def get(self) -> DomainEvent:
        ...

    def cancel(self) -> None:
        ...


@runtime_checkable
class IChangeNotifier(Protocol):
    """
    Best-effort pricing change feed.

    Publishing never raises; subscribers see their events in publish order.
    """

    async def publish(self, event: DomainEvent) -> None:
        ...

    def subscribe(self, event_types: tuple[str, ...] | None = None) -> ISubscription:
        ...


__all__ = [
    "ProductFilter",
    "IDiscountRuleRepository",
    "IProductCatalog",
    "IChangeLogRepository",
    "IChangeNotifier",
    "ISubscription",
    "SubscriptionClosed",
]
