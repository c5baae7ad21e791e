"""
Discount API Schemas

Pydantic schemas for API request/response validation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from storefront.domains.discounts.application.services import RecomputeResult, RuleOutcome
from storefront.domains.discounts.domain.entities import ChangeLogEntry, DiscountRule, ProductSnapshot
from storefront.domains.discounts.domain.value_objects import FilterCondition, FilterField


# ============================================================================
# RULES
# ============================================================================


class DiscountRuleCreate(BaseModel):
    """Create discount rule request schema."""

    scope: str = Field(..., description="all_products, category or subcategory")
    target_value: str | None = Field(None, description="Category/subcategory id; omitted for all_products")
    # Range is checked by the domain so the error carries the field name
    percentage: int


class DiscountRuleResponse(BaseModel):
    """Discount rule response schema."""

    id: str
    scope: str
    target_value: str | None = None
    percentage: int
    active: bool
    created_by: str | None = None
    created_at: datetime
    deactivated_at: datetime | None = None
    description: str

    @classmethod
    def from_entity(cls, rule: DiscountRule) -> "DiscountRuleResponse":
        return cls(
            id=str(rule.id),
            scope=rule.scope.value,
            target_value=rule.target_value,
            percentage=rule.percentage,
            active=rule.active,
            created_by=rule.created_by,
            created_at=rule.created_at,
            deactivated_at=rule.deactivated_at,
            description=rule.describe(),
        )


class RuleOutcomeResponse(BaseModel):
    rule_id: str
    scope: str
    target_value: str | None = None
    percentage: int
    affected_count: int
    error: str | None = None

    @classmethod
    def from_outcome(cls, outcome: RuleOutcome) -> "RuleOutcomeResponse":
        return cls(
            rule_id=outcome.rule_id,
            scope=outcome.scope,
            target_value=outcome.target_value,
            percentage=outcome.percentage,
            affected_count=outcome.affected_count,
            error=outcome.error,
        )


class RecomputeResponse(BaseModel):
    """Per-rule outcome of a full recomputation."""

    success: bool
    converged: bool
    attempts: int
    reset_count: int
    total_affected: int
    rule_set_version: int
    failed_rule_ids: list[str]
    outcomes: list[RuleOutcomeResponse]
    error: str | None = None

    @classmethod
    def from_result(cls, result: RecomputeResult) -> "RecomputeResponse":
        return cls(
            success=result.succeeded,
            converged=result.converged,
            attempts=result.attempts,
            reset_count=result.reset_count,
            total_affected=result.total_affected,
            rule_set_version=result.rule_set_version,
            failed_rule_ids=result.failed_rule_ids,
            outcomes=[RuleOutcomeResponse.from_outcome(o) for o in result.outcomes],
            error=result.error,
        )


class DiscountRuleMutationResponse(BaseModel):
    """Rule create/remove response with the recomputation that followed."""

    rule: DiscountRuleResponse
    success: bool
    error: str | None = None
    recompute: RecomputeResponse | None = None


class DiscountRuleListResponse(BaseModel):
    rules: list[DiscountRuleResponse]
    total: int


# ============================================================================
# FILTERS
# ============================================================================


class FilterConditionSchema(BaseModel):
    """One ad-hoc filter row."""

    id: str | None = None
    field: str
    operator: str
    value: Any = None
    logical_operator: str | None = Field(None, description="AND / OR joining this row to the previous ones")

    def to_condition(self) -> FilterCondition:
        kwargs: dict[str, Any] = {
            "field": self.field,
            "operator": self.operator,
            "value": self.value,
            "logical_operator": self.logical_operator or "AND",
        }
        if self.id:
            kwargs["id"] = self.id
        return FilterCondition(**kwargs)


class FilterPreviewRequest(BaseModel):
    conditions: list[FilterConditionSchema] = Field(default_factory=list)
    include_products: bool = False
    limit: int = Field(default=50, ge=1, le=500)


class ProductResponse(BaseModel):
    """Product response schema with its effective price."""

    id: str
    name: str
    price: Decimal
    final_price: Decimal
    discount_percentage: int
    stock_quantity: int
    categories: list[str]
    subcategories: list[str]
    colors: list[str]
    is_active: bool
    created_at: datetime | None = None

    @classmethod
    def from_snapshot(cls, product: ProductSnapshot) -> "ProductResponse":
        return cls(
            id=product.id,
            name=product.name,
            price=product.price,
            final_price=product.final_price,
            discount_percentage=product.discount_percentage,
            stock_quantity=product.stock_quantity,
            categories=list(product.categories),
            subcategories=list(product.subcategories),
            colors=list(product.colors),
            is_active=product.is_active,
            created_at=product.created_at,
        )


class FilterPreviewResponse(BaseModel):
    preview: str
    matching_count: int | None = None
    products: list[ProductResponse] = Field(default_factory=list)


class FilteredDiscountCreate(DiscountRuleCreate):
    """Create a rule and apply it to the products the conditions select now."""

    conditions: list[FilterConditionSchema] = Field(default_factory=list)


class FilteredDiscountResponse(BaseModel):
    rule: DiscountRuleResponse
    preview: str
    candidate_count: int
    affected_count: int
    success: bool
    error: str | None = None


class FilterFieldResponse(BaseModel):
    name: str
    type: str
    label: str
    operators: list[str]

    @classmethod
    def from_field(cls, filter_field: FilterField) -> "FilterFieldResponse":
        return cls(
            name=filter_field.name,
            type=filter_field.type.value,
            label=filter_field.label,
            operators=sorted(op.value for op in filter_field.operators),
        )


# ============================================================================
# READ MODELS
# ============================================================================


class ChangeLogEntryResponse(BaseModel):
    id: str | None = None
    action_type: str
    category: str
    entity_type: str
    entity_id: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    admin_id: str | None = None
    admin_name: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_entry(cls, entry: ChangeLogEntry) -> "ChangeLogEntryResponse":
        return cls(
            id=entry.id,
            action_type=entry.action_type,
            category=entry.category.value,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            details=entry.details,
            admin_id=entry.actor_id,
            admin_name=entry.actor_name,
            created_at=entry.timestamp,
        )


class ChangeLogListResponse(BaseModel):
    entries: list[ChangeLogEntryResponse]
    total: int


__all__ = [
    "DiscountRuleCreate",
    "DiscountRuleResponse",
    "DiscountRuleMutationResponse",
    "DiscountRuleListResponse",
    "RuleOutcomeResponse",
    "RecomputeResponse",
    "FilterConditionSchema",
    "FilterPreviewRequest",
    "FilterPreviewResponse",
    "FilteredDiscountCreate",
    "FilteredDiscountResponse",
    "FilterFieldResponse",
    "ProductResponse",
    "ChangeLogEntryResponse",
    "ChangeLogListResponse",
]
