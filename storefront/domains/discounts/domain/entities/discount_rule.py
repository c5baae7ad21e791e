"""
Discount Rule Entity

A percentage discount scoped to every product, one category or one subcategory.
"""

from dataclasses import dataclass, replace
from datetime import UTC, datetime

from storefront.core.domain import AuditableEntity, generate_uuid_str

from ..value_objects.discount_scope import DiscountPercentage, DiscountScope, DiscountTarget


@dataclass(eq=False)
class DiscountRule(AuditableEntity[str]):
    """
    Discount rule entity.

    Rules are never deleted. Removing a rule flips `active` to False; the
    product discounts it produced disappear on the next recomputation.

    Example:
        ```python
        rule = DiscountRule.create(DiscountScope.CATEGORY, "shoes", 25, created_by="admin-1")
        rule.describe()  # "25% off category:shoes"
        ```
    """

    scope: DiscountScope = DiscountScope.ALL_PRODUCTS
    target_value: str | None = None
    percentage: int = 0
    active: bool = True
    deactivated_at: datetime | None = None

    def __post_init__(self):
        self.scope = DiscountScope.parse(self.scope)
        target = DiscountTarget(self.scope, self.target_value)
        self.target_value = target.target_value
        self.percentage = DiscountPercentage(self.percentage).value

    @classmethod
    def create(
        cls,
        scope: DiscountScope | str,
        target_value: str | None,
        percentage: int,
        created_by: str | None = None,
    ) -> "DiscountRule":
        """
        Build a new active rule.

        Raises:
            ValidationException: If the percentage is out of range or the
                target does not fit the scope
        """
        return cls(
            id=generate_uuid_str(),
            scope=DiscountScope.parse(scope),
            target_value=target_value,
            percentage=percentage,
            active=True,
            created_by=created_by,
        )

    @property
    def target(self) -> DiscountTarget:
        return DiscountTarget(self.scope, self.target_value)

    def deactivated(self) -> "DiscountRule":
        """Return an inactive copy of this rule."""
        return replace(self, active=False, deactivated_at=datetime.now(UTC))

    def describe(self) -> str:
        return f"{self.percentage}% off {self.target}"
