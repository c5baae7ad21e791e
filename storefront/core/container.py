"""
Dependency Injection Container

Creates and wires application dependencies. Process-wide resources (change
notifier, Redis client, banner cache) are singletons; repositories and use
cases are built per request around the request's database session.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config.redis import create_redis_client
from storefront.config.settings import Settings, get_settings
from storefront.database.async_db import get_async_db_context
from storefront.domains.discounts.application.services import (
    ChangeLogService,
    DiscountApplicationEngine,
    DiscountedProductsView,
    DiscountRuleStore,
)
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
from storefront.domains.discounts.domain.entities import ProductSnapshot
from storefront.domains.discounts.domain.services import PredicateCompiler
from storefront.domains.discounts.infrastructure.notifications import InMemoryChangeNotifier, RedisChangeNotifier
from storefront.domains.discounts.infrastructure.repositories import (
    SQLAlchemyChangeLogRepository,
    SQLAlchemyDiscountRuleRepository,
    SQLAlchemyProductCatalog,
)

logger = logging.getLogger(__name__)


class DependencyContainer:
    """
    Dependency Injection Container.

    Single Responsibility: Create and wire all application dependencies
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

        # Singletons
        self._notifier: InMemoryChangeNotifier | RedisChangeNotifier | None = None
        self._discounted_products_view: DiscountedProductsView | None = None
        self._compiler = PredicateCompiler()

        logger.info("DependencyContainer initialized")

    # ============================================================
    # SINGLETONS (Shared Resources)
    # ============================================================

    def get_notifier(self) -> InMemoryChangeNotifier | RedisChangeNotifier:
        """Change notifier for the configured backend (singleton)."""
        if self._notifier is None:
            local = InMemoryChangeNotifier(max_queue_size=self.settings.CHANGE_FEED_SUBSCRIBER_QUEUE_SIZE)
            if self.settings.CHANGE_FEED_BACKEND == "redis":
                logger.info(f"Using Redis change feed on channel {self.settings.CHANGE_FEED_CHANNEL}")
                self._notifier = RedisChangeNotifier(
                    client=create_redis_client(),
                    channel=self.settings.CHANGE_FEED_CHANNEL,
                    local=local,
                )
            else:
                logger.info("Using in-process change feed")
                self._notifier = local
        return self._notifier

    def get_discounted_products_view(self) -> DiscountedProductsView:
        """Banner cache (singleton)."""
        if self._discounted_products_view is None:
            self._discounted_products_view = DiscountedProductsView(
                loader=self._load_discounted_products,
                notifier=self.get_notifier(),
                limit=self.settings.DISCOUNT_BANNER_LIMIT,
                ttl_seconds=self.settings.DISCOUNT_BANNER_CACHE_TTL_SECONDS,
            )
        return self._discounted_products_view

    def get_predicate_compiler(self) -> PredicateCompiler:
        return self._compiler

    async def _load_discounted_products(self, limit: int) -> list[ProductSnapshot]:
        async with get_async_db_context() as session:
            return await self.create_product_catalog(session).list_discounted(limit)

    # ============================================================
    # REPOSITORIES AND SERVICES (per session)
    # ============================================================

    def create_product_catalog(self, db: AsyncSession) -> SQLAlchemyProductCatalog:
        return SQLAlchemyProductCatalog(session=db, chunk_size=self.settings.DISCOUNT_BULK_CHUNK_SIZE)

    def create_rule_store(self, db: AsyncSession) -> DiscountRuleStore:
        return DiscountRuleStore(
            rule_repository=SQLAlchemyDiscountRuleRepository(session=db),
            catalog=self.create_product_catalog(db),
        )

    def create_change_log(self, db: AsyncSession) -> ChangeLogService:
        return ChangeLogService(
            repository=SQLAlchemyChangeLogRepository(session=db),
            read_limit=self.settings.CHANGE_LOG_READ_LIMIT,
        )

    def create_engine(self, db: AsyncSession) -> DiscountApplicationEngine:
        return DiscountApplicationEngine(
            rule_store=self.create_rule_store(db),
            catalog=self.create_product_catalog(db),
            notifier=self.get_notifier(),
            change_log=self.create_change_log(db),
            max_attempts=self.settings.DISCOUNT_RECOMPUTE_MAX_ATTEMPTS,
        )

    # ============================================================
    # USE CASES
    # ============================================================

    def create_create_discount_rule_use_case(self, db: AsyncSession) -> CreateDiscountRuleUseCase:
        """Create CreateDiscountRuleUseCase with dependencies."""
        return CreateDiscountRuleUseCase(
            rule_store=self.create_rule_store(db),
            engine=self.create_engine(db),
            notifier=self.get_notifier(),
            change_log=self.create_change_log(db),
        )

    def create_remove_discount_rule_use_case(self, db: AsyncSession) -> RemoveDiscountRuleUseCase:
        """Create RemoveDiscountRuleUseCase with dependencies."""
        return RemoveDiscountRuleUseCase(
            engine=self.create_engine(db),
            notifier=self.get_notifier(),
            change_log=self.create_change_log(db),
        )

    def create_list_active_discounts_use_case(self, db: AsyncSession) -> ListActiveDiscountsUseCase:
        return ListActiveDiscountsUseCase(rule_store=self.create_rule_store(db))

    def create_preview_filter_use_case(self, db: AsyncSession) -> PreviewFilterUseCase:
        return PreviewFilterUseCase(compiler=self._compiler, catalog=self.create_product_catalog(db))

    def create_apply_discount_with_filter_use_case(self, db: AsyncSession) -> ApplyDiscountWithFilterUseCase:
        """Create ApplyDiscountWithFilterUseCase with dependencies."""
        return ApplyDiscountWithFilterUseCase(
            compiler=self._compiler,
            rule_store=self.create_rule_store(db),
            engine=self.create_engine(db),
            catalog=self.create_product_catalog(db),
            notifier=self.get_notifier(),
            change_log=self.create_change_log(db),
        )

    def create_recompute_discounts_use_case(self, db: AsyncSession) -> RecomputeDiscountsUseCase:
        return RecomputeDiscountsUseCase(engine=self.create_engine(db))

    def create_get_change_log_use_case(self, db: AsyncSession) -> GetChangeLogUseCase:
        return GetChangeLogUseCase(change_log=self.create_change_log(db))

    def create_get_discounted_products_use_case(self) -> GetDiscountedProductsUseCase:
        return GetDiscountedProductsUseCase(view=self.get_discounted_products_view())


_container: DependencyContainer | None = None


def get_container() -> DependencyContainer:
    """Return the process-wide container."""
    global _container
    if _container is None:
        _container = DependencyContainer()
    return _container


def reset_container() -> None:
    global _container
    _container = None


__all__ = ["DependencyContainer", "get_container", "reset_container"]
