"""
Discount scope value objects.
"""

from dataclasses import dataclass

from storefront.core.domain import StringEnum, ValidationException, ValueObject


class DiscountScope(StringEnum):
    """
    Which products a discount rule targets.

    Stored as `active_discounts.discount_type`.
    """

    ALL_PRODUCTS = "all_products"
    CATEGORY = "category"
    SUBCATEGORY = "subcategory"

    def requires_target(self) -> bool:
        """Category and subcategory rules name their target; all-products rules must not."""
        return self is not DiscountScope.ALL_PRODUCTS

    @classmethod
    def parse(cls, value: "str | DiscountScope") -> "DiscountScope":
        if isinstance(value, DiscountScope):
            return value
        try:
            return cls.from_string(value.strip())
        except (ValueError, AttributeError) as e:
            raise ValidationException(
                f"Unknown discount scope: {value!r}. Expected one of {', '.join(cls.values())}",
                field="scope",
            ) from e


@dataclass(frozen=True)
class DiscountTarget(ValueObject):
    """
    A scope with its (optional) target id.

    Enforces that the target is present exactly when the scope needs one.
    """

    scope: DiscountScope
    target_value: str | None = None

    def _validate(self) -> None:
        target = self.target_value.strip() if isinstance(self.target_value, str) else self.target_value
        object.__setattr__(self, "target_value", target or None)

        if self.scope.requires_target() and self.target_value is None:
            raise ValidationException(
                f"A {self.scope.value} discount requires a target_value",
                field="target_value",
            )
        if not self.scope.requires_target() and self.target_value is not None:
            raise ValidationException(
                "An all_products discount must not have a target_value",
                field="target_value",
            )

    def __str__(self) -> str:
        if self.target_value is None:
            return self.scope.value
        return f"{self.scope.value}:{self.target_value}"


@dataclass(frozen=True)
class DiscountPercentage(ValueObject):
    """Whole-number discount percentage between 0 and 100."""

    value: int

    def _validate(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationException(
                f"Discount percentage must be an integer, got {self.value!r}",
                field="percentage",
            )
        if self.value < 0 or self.value > 100:
            raise ValidationException(
                f"Discount percentage must be between 0 and 100, got {self.value}",
                field="percentage",
            )

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"{self.value}%"
