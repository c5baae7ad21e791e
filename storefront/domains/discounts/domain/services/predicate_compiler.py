"""
Predicate Compiler

Turns an ordered list of filter conditions into a product predicate.

Conditions combine strictly left to right, so
`[price > 1000, AND name contains "x", OR stock_quantity = 0]` means
`((price > 1000) AND (name contains "x")) OR (stock_quantity = 0)`.
Every condition is validated and its value coerced before anything is
returned, so an illegal filter never reaches a write.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from storefront.core.domain import ValidationException

from ..value_objects.filter import FieldType, FilterCondition, FilterField, LogicalOperator, Operator
from ..value_objects.product_fields import get_product_field

if TYPE_CHECKING:
    from ..entities.product_snapshot import ProductSnapshot

logger = logging.getLogger(__name__)

ALL_PRODUCTS_PREVIEW = "all products (no conditions)"

# Timestamps are compared as UTC text in this format
TIMESTAMP_TEXT_FORMAT = "%Y-%m-%d %H:%M:%S"

_TRUE_TOKENS = frozenset({"true", "1", "yes", "y", "t"})
_FALSE_TOKENS = frozenset({"false", "0", "no", "n", "f"})


@dataclass(frozen=True)
class CompiledCondition:
    """A validated condition with its value coerced to the field type."""

    field: FilterField
    operator: Operator
    value: Any
    logical_operator: LogicalOperator = LogicalOperator.AND

    def describe(self) -> str:
        if not self.operator.takes_value:
            return f"{self.field.name} {self.operator.label}"
        return f"{self.field.name} {self.operator.label} {_render_value(self.field, self.operator, self.value)}"

    def evaluate(self, product: "ProductSnapshot") -> bool:
        return _EVALUATORS[self.field.type](self, _read_attribute(product, self.field))


@dataclass(frozen=True)
class CompiledPredicate:
    """
    Executable product predicate.

    Callable on a `ProductSnapshot`; repositories translate `conditions`
    into an equivalent SQL filter.
    """

    conditions: tuple[CompiledCondition, ...]
    preview: str

    @property
    def is_trivial(self) -> bool:
        """True for the always-true predicate of an empty condition list."""
        return not self.conditions

    def matches(self, product: "ProductSnapshot") -> bool:
        if not self.conditions:
            return True

        result = self.conditions[0].evaluate(product)
        for condition in self.conditions[1:]:
            if condition.logical_operator is LogicalOperator.AND:
                result = result and condition.evaluate(product)
            else:
                result = result or condition.evaluate(product)
        return result

    def __call__(self, product: "ProductSnapshot") -> bool:
        return self.matches(product)


class PredicateCompiler:
    """
    Compiles filter conditions against the product field registry.

    Example:
        ```python
        predicate = PredicateCompiler().compile([
            FilterCondition("price", ">", "1000"),
            FilterCondition("categories", "ANY", "shoes,boots", "AND"),
        ])
        predicate.preview  # '(price > 1000) AND (categories contains any of [boots, shoes])'
        predicate(product)
        ```
    """

    def __init__(self, field_lookup: Callable[[str], FilterField] = get_product_field):
        self._field_lookup = field_lookup

    def compile(self, conditions: Sequence[FilterCondition]) -> CompiledPredicate:
        """
        Validate and compile a condition list.

        Raises:
            ValidationException: Unknown field, operator not legal for the
                field type, or a value that cannot be coerced
        """
        compiled = tuple(self._compile_condition(c, index) for index, c in enumerate(conditions))
        preview = self._build_preview(compiled)
        logger.debug(f"Compiled {len(compiled)} filter conditions: {preview}")
        return CompiledPredicate(conditions=compiled, preview=preview)

    def preview(self, conditions: Sequence[FilterCondition]) -> str:
        return self.compile(conditions).preview

    def _compile_condition(self, condition: FilterCondition, index: int) -> CompiledCondition:
        field = self._field_lookup(condition.field)
        operator = Operator.parse(condition.operator)

        if not field.accepts(operator):
            legal = ", ".join(sorted(op.value for op in field.operators))
            raise ValidationException(
                f"Operator '{operator.value}' is not allowed for {field.type.value} field "
                f"'{field.name}' (allowed: {legal})",
                field="operator",
                details={"condition_index": index, "condition_id": condition.id},
            )

        logical_operator = LogicalOperator.AND if index == 0 else LogicalOperator.parse(condition.logical_operator)

        try:
            value = _coerce_value(field, operator, condition.value)
        except ValidationException as e:
            e.details.setdefault("condition_index", index)
            e.details.setdefault("condition_id", condition.id)
            raise

        return CompiledCondition(field=field, operator=operator, value=value, logical_operator=logical_operator)

    @staticmethod
    def _build_preview(conditions: tuple[CompiledCondition, ...]) -> str:
        if not conditions:
            return ALL_PRODUCTS_PREVIEW

        text = conditions[0].describe()
        for condition in conditions[1:]:
            text = f"({text}) {condition.logical_operator.value} ({condition.describe()})"
        return text


# Value coercion


def _coerce_value(field: FilterField, operator: Operator, raw: Any) -> Any:
    if not operator.takes_value:
        return None

    if operator.takes_list:
        items = _split_list(raw)
        if not items:
            raise ValidationException(f"Operator '{operator.value}' needs at least one value", field="value")
        values = [_coerce_scalar(field, item) for item in items]
        if operator is Operator.BETWEEN:
            if len(values) != 2:
                raise ValidationException("'between' needs exactly two values: min,max", field="value")
            if values[0] > values[1]:
                raise ValidationException(
                    f"'between' lower bound {values[0]} is greater than upper bound {values[1]}",
                    field="value",
                )
            return tuple(values)
        if field.type is FieldType.COLLECTION:
            return frozenset(values)
        return tuple(values)

    if raw is None:
        raise ValidationException(f"Operator '{operator.value}' needs a value", field="value")
    return _coerce_scalar(field, raw)


def _split_list(raw: Any) -> list[Any]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [part.strip() for part in raw.split(",") if part.strip()]
    if isinstance(raw, (list, tuple, set, frozenset)):
        return [item.strip() if isinstance(item, str) else item for item in raw if item is not None and item != ""]
    return [raw]


def _coerce_scalar(field: FilterField, raw: Any) -> Any:
    if field.type is FieldType.NUMBER:
        return _to_number(raw)
    if field.type is FieldType.BOOLEAN:
        return _to_boolean(raw)
    if isinstance(raw, (dict, list, tuple, set)):
        raise ValidationException(f"Expected a text value for '{field.name}', got {raw!r}", field="value")
    return str(raw)


def _to_number(raw: Any) -> Decimal:
    if isinstance(raw, bool):
        raise ValidationException(f"Expected a number, got {raw!r}", field="value")
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValidationException(f"Expected a number, got {raw!r}", field="value") from e
    if not value.is_finite():
        raise ValidationException(f"Expected a finite number, got {raw!r}", field="value")
    return value


def _to_boolean(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    token = str(raw).strip().lower()
    if token in _TRUE_TOKENS:
        return True
    if token in _FALSE_TOKENS:
        return False
    raise ValidationException(f"Expected true or false, got {raw!r}", field="value")


def _render_value(field: FilterField, operator: Operator, value: Any) -> str:
    if operator is Operator.BETWEEN:
        return f"{_render_scalar(field, value[0])} and {_render_scalar(field, value[1])}"
    if operator.takes_list:
        items = sorted(value) if isinstance(value, frozenset) else value
        return "[" + ", ".join(_render_scalar(field, item) for item in items) + "]"
    return _render_scalar(field, value)


def _render_scalar(field: FilterField, value: Any) -> str:
    if field.type is FieldType.BOOLEAN:
        return "true" if value else "false"
    if field.type is FieldType.NUMBER:
        return format(value, "f")
    if field.type is FieldType.COLLECTION:
        return str(value)
    return f'"{value}"'


# Evaluation


def _read_attribute(product: "ProductSnapshot", field: FilterField) -> Any:
    value = getattr(product, field.name)
    if field.text_cast and isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC).strftime(TIMESTAMP_TEXT_FORMAT)
    return value


def _evaluate_string(condition: CompiledCondition, actual: Any) -> bool:
    operator = condition.operator
    if operator is Operator.IS_NULL:
        return actual is None
    if operator is Operator.IS_NOT_NULL:
        return actual is not None
    if actual is None:
        return False

    text = str(actual)
    if operator is Operator.EQUALS:
        return text == condition.value
    if operator is Operator.NOT_EQUALS:
        return text != condition.value
    if operator is Operator.CONTAINS:
        return condition.value.lower() in text.lower()
    if operator is Operator.NOT_CONTAINS:
        return condition.value.lower() not in text.lower()
    if operator is Operator.IN:
        return text in condition.value
    if operator is Operator.NOT_IN:
        return text not in condition.value
    raise ValidationException(f"Unsupported string operator: {operator.value}", field="operator")


def _evaluate_number(condition: CompiledCondition, actual: Any) -> bool:
    if actual is None:
        return False

    number = actual if isinstance(actual, Decimal) else Decimal(str(actual))
    operator, expected = condition.operator, condition.value
    if operator is Operator.EQUALS:
        return number == expected
    if operator is Operator.NOT_EQUALS:
        return number != expected
    if operator is Operator.GREATER:
        return number > expected
    if operator is Operator.GREATER_OR_EQUAL:
        return number >= expected
    if operator is Operator.LESS:
        return number < expected
    if operator is Operator.LESS_OR_EQUAL:
        return number <= expected
    if operator is Operator.BETWEEN:
        return expected[0] <= number <= expected[1]
    if operator is Operator.IN:
        return number in expected
    if operator is Operator.NOT_IN:
        return number not in expected
    raise ValidationException(f"Unsupported number operator: {operator.value}", field="operator")


def _evaluate_boolean(condition: CompiledCondition, actual: Any) -> bool:
    if actual is None:
        return False
    if condition.operator is Operator.EQUALS:
        return bool(actual) is condition.value
    return bool(actual) is not condition.value


def _evaluate_collection(condition: CompiledCondition, actual: Any) -> bool:
    # A missing collection behaves as an empty one
    items = frozenset(actual or ())
    operator, expected = condition.operator, condition.value
    if operator is Operator.IS_EMPTY:
        return not items
    if operator is Operator.IS_NOT_EMPTY:
        return bool(items)
    if operator in (Operator.CONTAINS_ANY, Operator.OVERLAPS):
        return bool(items & expected)
    if operator in (Operator.CONTAINS_ALL, Operator.IS_SUPERSET):
        return expected <= items
    if operator is Operator.IS_SUBSET:
        return items <= expected
    raise ValidationException(f"Unsupported collection operator: {operator.value}", field="operator")


_EVALUATORS: dict[FieldType, Callable[[CompiledCondition, Any], bool]] = {
    FieldType.STRING: _evaluate_string,
    FieldType.NUMBER: _evaluate_number,
    FieldType.BOOLEAN: _evaluate_boolean,
    FieldType.COLLECTION: _evaluate_collection,
}
