"""
Discount API Dependencies

FastAPI dependencies for the discount domain.
"""

from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.container import get_container
from storefront.database.async_db import get_async_db
from storefront.domains.discounts.application.use_cases import (
    ApplyDiscountWithFilterUseCase,
    CreateDiscountRuleUseCase,
    GetChangeLogUseCase,
    GetDiscountedProductsUseCase,
    ListActiveDiscountsUseCase,
    PreviewFilterUseCase,
    RecomputeDiscountsUseCase,
    RemoveDiscountRuleUseCase,
)

# Type alias for database session dependency
DbSession = Annotated[AsyncSession, Depends(get_async_db)]


class Actor:
    """Back-office user performing the request, as supplied by the identity layer."""

    def __init__(self, actor_id: str | None, name: str | None):
        self.id = actor_id
        self.name = name


def get_actor(
    x_admin_id: str | None = Header(None, alias="X-Admin-Id"),
    x_admin_name: str | None = Header(None, alias="X-Admin-Name"),
) -> Actor:
    """Identity is trusted as given."""
    return Actor(x_admin_id, x_admin_name)


def get_create_discount_rule_use_case(db: DbSession) -> CreateDiscountRuleUseCase:
    """Get CreateDiscountRuleUseCase instance with database session."""
    return get_container().create_create_discount_rule_use_case(db)


def get_remove_discount_rule_use_case(db: DbSession) -> RemoveDiscountRuleUseCase:
    """Get RemoveDiscountRuleUseCase instance with database session."""
    return get_container().create_remove_discount_rule_use_case(db)


def get_list_active_discounts_use_case(db: DbSession) -> ListActiveDiscountsUseCase:
    return get_container().create_list_active_discounts_use_case(db)


def get_preview_filter_use_case(db: DbSession) -> PreviewFilterUseCase:
    return get_container().create_preview_filter_use_case(db)


def get_apply_discount_with_filter_use_case(db: DbSession) -> ApplyDiscountWithFilterUseCase:
    """Get ApplyDiscountWithFilterUseCase instance with database session."""
    return get_container().create_apply_discount_with_filter_use_case(db)


def get_recompute_discounts_use_case(db: DbSession) -> RecomputeDiscountsUseCase:
    return get_container().create_recompute_discounts_use_case(db)


def get_change_log_use_case(db: DbSession) -> GetChangeLogUseCase:
    return get_container().create_get_change_log_use_case(db)


def get_discounted_products_use_case() -> GetDiscountedProductsUseCase:
    """Served from the shared banner cache; no request session needed."""
    return get_container().create_get_discounted_products_use_case()


__all__ = [
    "Actor",
    "DbSession",
    "get_actor",
    "get_create_discount_rule_use_case",
    "get_remove_discount_rule_use_case",
    "get_list_active_discounts_use_case",
    "get_preview_filter_use_case",
    "get_apply_discount_with_filter_use_case",
    "get_recompute_discounts_use_case",
    "get_change_log_use_case",
    "get_discounted_products_use_case",
]
