"""
Discount Admin API Routes

FastAPI router for the back-office discount endpoints.

API Prefix: /api/v1/discounts
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from storefront.domains.discounts.api.dependencies import (
    Actor,
    get_actor,
    get_apply_discount_with_filter_use_case,
    get_change_log_use_case,
    get_create_discount_rule_use_case,
    get_discounted_products_use_case,
    get_list_active_discounts_use_case,
    get_preview_filter_use_case,
    get_recompute_discounts_use_case,
    get_remove_discount_rule_use_case,
)
from storefront.domains.discounts.api.schemas import (
    ChangeLogEntryResponse,
    ChangeLogListResponse,
    DiscountRuleCreate,
    DiscountRuleListResponse,
    DiscountRuleMutationResponse,
    DiscountRuleResponse,
    FilteredDiscountCreate,
    FilteredDiscountResponse,
    FilterFieldResponse,
    FilterPreviewRequest,
    FilterPreviewResponse,
    ProductResponse,
    RecomputeResponse,
)
from storefront.domains.discounts.application.use_cases import (
    ApplyDiscountWithFilterRequest,
    ApplyDiscountWithFilterUseCase,
    CreateDiscountRuleRequest,
    CreateDiscountRuleUseCase,
    GetChangeLogRequest,
    GetChangeLogUseCase,
    GetDiscountedProductsRequest,
    GetDiscountedProductsUseCase,
    ListActiveDiscountsRequest,
    ListActiveDiscountsUseCase,
    PreviewFilterRequest,
    PreviewFilterUseCase,
    RecomputeDiscountsRequest,
    RecomputeDiscountsUseCase,
    RemoveDiscountRuleRequest,
    RemoveDiscountRuleUseCase,
)
from storefront.domains.discounts.domain.value_objects import PRODUCT_FIELDS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/discounts", tags=["Discounts"])

# Type aliases for use case dependencies
ActorDep = Annotated[Actor, Depends(get_actor)]
CreateDiscountRuleUseCaseDep = Annotated[CreateDiscountRuleUseCase, Depends(get_create_discount_rule_use_case)]
RemoveDiscountRuleUseCaseDep = Annotated[RemoveDiscountRuleUseCase, Depends(get_remove_discount_rule_use_case)]
ListActiveDiscountsUseCaseDep = Annotated[ListActiveDiscountsUseCase, Depends(get_list_active_discounts_use_case)]
PreviewFilterUseCaseDep = Annotated[PreviewFilterUseCase, Depends(get_preview_filter_use_case)]
ApplyDiscountWithFilterUseCaseDep = Annotated[
    ApplyDiscountWithFilterUseCase, Depends(get_apply_discount_with_filter_use_case)
]
RecomputeDiscountsUseCaseDep = Annotated[RecomputeDiscountsUseCase, Depends(get_recompute_discounts_use_case)]
GetChangeLogUseCaseDep = Annotated[GetChangeLogUseCase, Depends(get_change_log_use_case)]
GetDiscountedProductsUseCaseDep = Annotated[GetDiscountedProductsUseCase, Depends(get_discounted_products_use_case)]


# ============================================================================
# RULES
# ============================================================================


@router.post("/rules", response_model=DiscountRuleMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_discount_rule(
    request: DiscountRuleCreate,
    use_case: CreateDiscountRuleUseCaseDep,
    actor: ActorDep,
):
    """Create a rule and recompute every product discount."""
    result = await use_case.execute(
        CreateDiscountRuleRequest(
            scope=request.scope,
            target_value=request.target_value,
            percentage=request.percentage,
            actor_id=actor.id,
            actor_name=actor.name,
        )
    )
    return DiscountRuleMutationResponse(
        rule=DiscountRuleResponse.from_entity(result.rule),
        success=result.success,
        error=result.error,
        recompute=RecomputeResponse.from_result(result.recompute) if result.recompute else None,
    )


@router.delete("/rules/{rule_id}", response_model=DiscountRuleMutationResponse)
async def remove_discount_rule(
    rule_id: str,
    use_case: RemoveDiscountRuleUseCaseDep,
    actor: ActorDep,
):
    """Deactivate a rule and recompute without it."""
    result = await use_case.execute(
        RemoveDiscountRuleRequest(rule_id=rule_id, actor_id=actor.id, actor_name=actor.name)
    )
    return DiscountRuleMutationResponse(
        rule=DiscountRuleResponse.from_entity(result.rule),
        success=result.success,
        error=result.error,
        recompute=RecomputeResponse.from_result(result.recompute) if result.recompute else None,
    )


@router.get("/rules", response_model=DiscountRuleListResponse)
async def list_active_discounts(
    use_case: ListActiveDiscountsUseCaseDep,
    order: str = Query("newest", pattern="^(newest|created|percentage)$", description="Sort order"),
    limit: int | None = Query(None, ge=1, le=1000),
):
    """List active rules (admin table: newest first; banner: highest percentage first)."""
    rules = await use_case.execute(ListActiveDiscountsRequest(order=order, limit=limit))
    return DiscountRuleListResponse(
        rules=[DiscountRuleResponse.from_entity(r) for r in rules],
        total=len(rules),
    )


@router.post("/recompute", response_model=RecomputeResponse)
async def recompute_discounts(
    use_case: RecomputeDiscountsUseCaseDep,
    actor: ActorDep,
):
    """Reset and replay every active rule. Safe to repeat."""
    result = await use_case.execute(RecomputeDiscountsRequest(actor_id=actor.id))
    return RecomputeResponse.from_result(result)


# ============================================================================
# FILTERS
# ============================================================================


@router.get("/filters/fields", response_model=list[FilterFieldResponse])
async def list_filter_fields():
    """Product fields available to ad-hoc filters, with their legal operators."""
    return [FilterFieldResponse.from_field(f) for f in PRODUCT_FIELDS.values()]


@router.post("/filters/preview", response_model=FilterPreviewResponse)
async def preview_filter(
    request: FilterPreviewRequest,
    use_case: PreviewFilterUseCaseDep,
):
    """Readable form of a condition list and, optionally, the products it selects."""
    result = await use_case.execute(
        PreviewFilterRequest(
            conditions=[c.to_condition() for c in request.conditions],
            include_products=request.include_products,
            limit=request.limit,
        )
    )
    return FilterPreviewResponse(
        preview=result.preview,
        matching_count=result.matching_count,
        products=[ProductResponse.from_snapshot(p) for p in result.products],
    )


@router.post("/filters/apply", response_model=FilteredDiscountResponse, status_code=status.HTTP_201_CREATED)
async def apply_discount_with_filter(
    request: FilteredDiscountCreate,
    use_case: ApplyDiscountWithFilterUseCaseDep,
    actor: ActorDep,
):
    """Create a rule and apply it to the products the conditions currently select."""
    result = await use_case.execute(
        ApplyDiscountWithFilterRequest(
            scope=request.scope,
            target_value=request.target_value,
            percentage=request.percentage,
            conditions=[c.to_condition() for c in request.conditions],
            actor_id=actor.id,
            actor_name=actor.name,
        )
    )
    return FilteredDiscountResponse(
        rule=DiscountRuleResponse.from_entity(result.rule),
        preview=result.preview,
        candidate_count=result.candidate_count,
        affected_count=result.affected_count,
        success=result.success,
        error=result.error,
    )


# ============================================================================
# READ MODELS
# ============================================================================


@router.get("/changes", response_model=ChangeLogListResponse)
async def get_change_log(
    use_case: GetChangeLogUseCaseDep,
    action_type: str | None = Query(None, description="Substring of the action type"),
    entity_type: str | None = Query(None),
    limit: int | None = Query(None, ge=1),
):
    """Most recent change log entries first."""
    entries = await use_case.execute(
        GetChangeLogRequest(action_type_contains=action_type, entity_type=entity_type, limit=limit)
    )
    return ChangeLogListResponse(
        entries=[ChangeLogEntryResponse.from_entry(e) for e in entries],
        total=len(entries),
    )


@router.get("/products", response_model=list[ProductResponse])
async def get_discounted_products(
    use_case: GetDiscountedProductsUseCaseDep,
    limit: int | None = Query(None, ge=1),
):
    """Deepest current discounts for the storefront banner."""
    products = await use_case.execute(GetDiscountedProductsRequest(limit=limit))
    return [ProductResponse.from_snapshot(p) for p in products]


__all__ = ["router"]
