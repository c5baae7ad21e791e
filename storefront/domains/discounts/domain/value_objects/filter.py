"""
Filter Value Objects

Vocabulary for ad-hoc product filters: field types, the closed operator set
per field type, and the raw condition rows submitted by the back office.
"""

import re
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Any

from storefront.core.domain import StringEnum, ValidationException, generate_uuid_str


class FieldType(StringEnum):
    """Declared type of a filterable product attribute."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    COLLECTION = "collection"


class LogicalOperator(StringEnum):
    """Connector joining a condition to everything before it."""

    AND = "AND"
    OR = "OR"

    @classmethod
    def parse(cls, value: "str | LogicalOperator | None") -> "LogicalOperator":
        if value is None:
            return cls.AND
        if isinstance(value, LogicalOperator):
            return value
        try:
            return cls.from_string(str(value).strip())
        except ValueError as e:
            raise ValidationException(f"Unknown logical operator: {value!r}", field="logical_operator") from e


class Operator(StringEnum):
    """Filter operators. Which ones are legal depends on the field type."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    IN = "in"
    NOT_IN = "not_in"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"
    GREATER = "greater"
    GREATER_OR_EQUAL = "greater_or_equal"
    LESS = "less"
    LESS_OR_EQUAL = "less_or_equal"
    BETWEEN = "between"
    CONTAINS_ANY = "contains_any"
    CONTAINS_ALL = "contains_all"
    IS_SUPERSET = "is_superset"
    IS_SUBSET = "is_subset"
    OVERLAPS = "overlaps"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"

    @property
    def takes_value(self) -> bool:
        return self not in _VALUELESS_OPERATORS

    @property
    def takes_list(self) -> bool:
        return self in _LIST_OPERATORS

    @property
    def label(self) -> str:
        """Token used in human-readable previews."""
        return _OPERATOR_LABELS[self]

    @classmethod
    def parse(cls, value: "str | Operator") -> "Operator":
        """
        Resolve an operator from its name or from a SQL-style token.

        Accepts the canonical names (`greater_or_equal`, `not-equals`) as well
        as the tokens the back-office filter builder emits (`>=`, `NOT LIKE`,
        `@>`, `= ARRAY[]`, ...).

        Raises:
            ValidationException: If the token names no known operator
        """
        if isinstance(value, Operator):
            return value
        if not isinstance(value, str) or not value.strip():
            raise ValidationException(f"Unknown operator: {value!r}", field="operator")

        token = re.sub(r"\s+", " ", value.strip()).upper()
        if token in OPERATOR_ALIASES:
            return OPERATOR_ALIASES[token]

        name = re.sub(r"[\s\-]+", "_", value.strip().lower())
        try:
            return cls(name)
        except ValueError as e:
            raise ValidationException(f"Unknown operator: {value!r}", field="operator") from e


_VALUELESS_OPERATORS = frozenset(
    {Operator.IS_NULL, Operator.IS_NOT_NULL, Operator.IS_EMPTY, Operator.IS_NOT_EMPTY}
)

_LIST_OPERATORS = frozenset(
    {
        Operator.IN,
        Operator.NOT_IN,
        Operator.BETWEEN,
        Operator.CONTAINS_ANY,
        Operator.CONTAINS_ALL,
        Operator.IS_SUPERSET,
        Operator.IS_SUBSET,
        Operator.OVERLAPS,
    }
)

_OPERATOR_LABELS: dict[Operator, str] = {
    Operator.EQUALS: "=",
    Operator.NOT_EQUALS: "!=",
    Operator.CONTAINS: "contains",
    Operator.NOT_CONTAINS: "does not contain",
    Operator.IN: "in",
    Operator.NOT_IN: "not in",
    Operator.IS_NULL: "is null",
    Operator.IS_NOT_NULL: "is not null",
    Operator.GREATER: ">",
    Operator.GREATER_OR_EQUAL: ">=",
    Operator.LESS: "<",
    Operator.LESS_OR_EQUAL: "<=",
    Operator.BETWEEN: "between",
    Operator.CONTAINS_ANY: "contains any of",
    Operator.CONTAINS_ALL: "contains all of",
    Operator.IS_SUPERSET: "is a superset of",
    Operator.IS_SUBSET: "is a subset of",
    Operator.OVERLAPS: "overlaps",
    Operator.IS_EMPTY: "is empty",
    Operator.IS_NOT_EMPTY: "is not empty",
}

# SQL-style tokens emitted by the back-office filter builder
OPERATOR_ALIASES: dict[str, Operator] = {
    "=": Operator.EQUALS,
    "==": Operator.EQUALS,
    "!=": Operator.NOT_EQUALS,
    "<>": Operator.NOT_EQUALS,
    ">": Operator.GREATER,
    ">=": Operator.GREATER_OR_EQUAL,
    "<": Operator.LESS,
    "<=": Operator.LESS_OR_EQUAL,
    "LIKE": Operator.CONTAINS,
    "ILIKE": Operator.CONTAINS,
    "NOT LIKE": Operator.NOT_CONTAINS,
    "NOT ILIKE": Operator.NOT_CONTAINS,
    "IN": Operator.IN,
    "NOT IN": Operator.NOT_IN,
    "IS NULL": Operator.IS_NULL,
    "IS NOT NULL": Operator.IS_NOT_NULL,
    "BETWEEN": Operator.BETWEEN,
    "ANY": Operator.CONTAINS_ANY,
    "ALL": Operator.CONTAINS_ALL,
    "@>": Operator.IS_SUPERSET,
    "<@": Operator.IS_SUBSET,
    "&&": Operator.OVERLAPS,
    "= ARRAY[]": Operator.IS_EMPTY,
    "!= ARRAY[]": Operator.IS_NOT_EMPTY,
}

# Closed {field type x operator} table
LEGAL_OPERATORS: dict[FieldType, frozenset[Operator]] = {
    FieldType.STRING: frozenset(
        {
            Operator.EQUALS,
            Operator.NOT_EQUALS,
            Operator.CONTAINS,
            Operator.NOT_CONTAINS,
            Operator.IN,
            Operator.NOT_IN,
            Operator.IS_NULL,
            Operator.IS_NOT_NULL,
        }
    ),
    FieldType.NUMBER: frozenset(
        {
            Operator.EQUALS,
            Operator.NOT_EQUALS,
            Operator.GREATER,
            Operator.GREATER_OR_EQUAL,
            Operator.LESS,
            Operator.LESS_OR_EQUAL,
            Operator.BETWEEN,
            Operator.IN,
            Operator.NOT_IN,
        }
    ),
    FieldType.BOOLEAN: frozenset({Operator.EQUALS, Operator.NOT_EQUALS}),
    FieldType.COLLECTION: frozenset(
        {
            Operator.CONTAINS_ANY,
            Operator.CONTAINS_ALL,
            Operator.IS_SUPERSET,
            Operator.IS_SUBSET,
            Operator.OVERLAPS,
            Operator.IS_EMPTY,
            Operator.IS_NOT_EMPTY,
        }
    ),
}


@dataclass(frozen=True)
class FilterField:
    """
    A filterable product attribute.

    `text_cast` marks timestamp columns that are compared as UTC "YYYY-MM-DD HH:MM:SS" text.
    """

    name: str
    type: FieldType
    label: str
    text_cast: bool = False

    @property
    def operators(self) -> frozenset[Operator]:
        return LEGAL_OPERATORS[self.type]

    def accepts(self, operator: Operator) -> bool:
        return operator in LEGAL_OPERATORS[self.type]


@dataclass(frozen=True)
class FilterCondition:
    """
    One row of an ad-hoc filter as submitted by the caller.

    Values are raw; the predicate compiler coerces them against the field type.
    `logical_operator` is ignored on the first condition of a list.
    """

    field: str
    operator: str | Operator
    value: Any = None
    logical_operator: str | LogicalOperator = LogicalOperator.AND
    id: str = dataclass_field(default_factory=generate_uuid_str)
