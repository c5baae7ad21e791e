"""
SQL rendering of product filters.

Produces WHERE clauses equivalent to `ProductFilter.matches` /
`CompiledPredicate.matches` so the database selects exactly the products the
in-process predicate would.
"""

import logging
import uuid
from collections.abc import Callable
from typing import Any

from sqlalchemy import Text, and_, false, func, literal_column, or_, true, type_coerce
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.sql.elements import ColumnElement

from storefront.domains.discounts.application.ports import ProductFilter
from storefront.domains.discounts.domain.services import CompiledCondition, CompiledPredicate
from storefront.domains.discounts.domain.value_objects import FieldType, LogicalOperator, Operator
from storefront.models.db.catalog import Product as ProductModel

logger = logging.getLogger(__name__)

# Timestamps compare as UTC "YYYY-MM-DD HH:MM:SS" text on both sides
TIMESTAMP_TEXT_FORMAT = "YYYY-MM-DD HH24:MI:SS"


def parse_uuids(values) -> list[uuid.UUID]:
    """Convert ids to UUIDs, skipping any that are not valid UUIDs (they cannot match)."""
    parsed = []
    for value in values:
        try:
            parsed.append(value if isinstance(value, uuid.UUID) else uuid.UUID(str(value)))
        except (ValueError, TypeError):
            logger.debug(f"Ignoring non-UUID product id: {value!r}")
    return parsed


def build_filter_clauses(product_filter: ProductFilter) -> list[ColumnElement[bool]]:
    clauses: list[ColumnElement[bool]] = []

    if product_filter.active_only:
        clauses.append(ProductModel.is_active.is_(True))
    if product_filter.category is not None:
        clauses.append(ProductModel.categories.any(product_filter.category))
    if product_filter.subcategory is not None:
        clauses.append(ProductModel.subcategories.any(product_filter.subcategory))
    if product_filter.product_ids is not None:
        ids = parse_uuids(product_filter.product_ids)
        clauses.append(ProductModel.id.in_(ids) if ids else false())
    if product_filter.predicate is not None and not product_filter.predicate.is_trivial:
        clauses.append(build_predicate_clause(product_filter.predicate))

    return clauses


def build_predicate_clause(predicate: CompiledPredicate) -> ColumnElement[bool]:
    """Combine condition clauses strictly left to right."""
    if predicate.is_trivial:
        return true()

    clause = _condition_clause(predicate.conditions[0])
    for condition in predicate.conditions[1:]:
        if condition.logical_operator is LogicalOperator.AND:
            clause = and_(clause, _condition_clause(condition))
        else:
            clause = or_(clause, _condition_clause(condition))
    return clause


def _column(condition: CompiledCondition):
    column = getattr(ProductModel, condition.field.name)
    if condition.field.text_cast:
        return func.to_char(func.timezone("UTC", column), TIMESTAMP_TEXT_FORMAT)
    return column


def _condition_clause(condition: CompiledCondition) -> ColumnElement[bool]:
    return _BUILDERS[condition.field.type](condition, _column(condition))


def _string_clause(condition: CompiledCondition, column) -> ColumnElement[bool]:
    operator, value = condition.operator, condition.value
    if operator is Operator.EQUALS:
        return column == value
    if operator is Operator.NOT_EQUALS:
        return column != value
    if operator is Operator.CONTAINS:
        return column.icontains(value, autoescape=True)
    if operator is Operator.NOT_CONTAINS:
        return ~column.icontains(value, autoescape=True)
    if operator is Operator.IN:
        return column.in_(list(value))
    if operator is Operator.NOT_IN:
        return column.not_in(list(value))
    if operator is Operator.IS_NULL:
        return column.is_(None)
    if operator is Operator.IS_NOT_NULL:
        return column.is_not(None)
    raise ValueError(f"Unsupported string operator: {operator.value}")


def _number_clause(condition: CompiledCondition, column) -> ColumnElement[bool]:
    operator, value = condition.operator, condition.value
    if operator is Operator.EQUALS:
        return column == value
    if operator is Operator.NOT_EQUALS:
        return column != value
    if operator is Operator.GREATER:
        return column > value
    if operator is Operator.GREATER_OR_EQUAL:
        return column >= value
    if operator is Operator.LESS:
        return column < value
    if operator is Operator.LESS_OR_EQUAL:
        return column <= value
    if operator is Operator.BETWEEN:
        return column.between(value[0], value[1])
    if operator is Operator.IN:
        return column.in_(list(value))
    if operator is Operator.NOT_IN:
        return column.not_in(list(value))
    raise ValueError(f"Unsupported number operator: {operator.value}")


def _boolean_clause(condition: CompiledCondition, column) -> ColumnElement[bool]:
    if condition.operator is Operator.EQUALS:
        return column == condition.value
    return column != condition.value


def _collection_clause(condition: CompiledCondition, column) -> ColumnElement[bool]:
    # NULL arrays behave as empty ones
    items = type_coerce(func.coalesce(column, literal_column("'{}'::text[]")), ARRAY(Text))
    operator = condition.operator
    values: list[Any] = sorted(condition.value) if condition.value is not None else []

    if operator is Operator.IS_EMPTY:
        return func.cardinality(items) == 0
    if operator is Operator.IS_NOT_EMPTY:
        return func.cardinality(items) > 0
    if operator in (Operator.CONTAINS_ANY, Operator.OVERLAPS):
        return items.overlap(values)
    if operator in (Operator.CONTAINS_ALL, Operator.IS_SUPERSET):
        return items.contains(values)
    if operator is Operator.IS_SUBSET:
        return items.contained_by(values)
    raise ValueError(f"Unsupported collection operator: {operator.value}")


_BUILDERS: dict[FieldType, Callable[[CompiledCondition, Any], ColumnElement[bool]]] = {
    FieldType.STRING: _string_clause,
    FieldType.NUMBER: _number_clause,
    FieldType.BOOLEAN: _boolean_clause,
    FieldType.COLLECTION: _collection_clause,
}
