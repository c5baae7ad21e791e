"""
Application lifecycle management using the FastAPI lifespan pattern.

Starts the change feed relay and the discounted-products cache listener on
startup; stops them and disposes the database engine on shutdown.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from storefront.core.container import DependencyContainer, get_container
from storefront.database.async_db import dispose_engine
from storefront.domains.discounts.infrastructure.notifications import RedisChangeNotifier

logger = logging.getLogger(__name__)


class LifecycleManager:
    """
    Manages application lifecycle events.

    Handles startup initialization and graceful shutdown.
    """

    def __init__(self, container: DependencyContainer | None = None) -> None:
        self._container = container
        self._initialized = False

    @property
    def container(self) -> DependencyContainer:
        if self._container is None:
            self._container = get_container()
        return self._container

    async def startup(self) -> None:
        if self._initialized:
            logger.warning("Lifecycle already initialized, skipping startup")
            return

        logger.info("Starting application lifecycle...")

        notifier = self.container.get_notifier()
        if isinstance(notifier, RedisChangeNotifier):
            notifier.start()
            logger.info(f"Change feed relay started on {notifier.channel}")

        self.container.get_discounted_products_view().start()

        self._initialized = True
        logger.info("Application lifecycle startup completed")

    async def shutdown(self) -> None:
        if not self._initialized:
            logger.warning("Lifecycle not initialized, skipping shutdown")
            return

        logger.info("Stopping application lifecycle...")

        await self.container.get_discounted_products_view().stop()

        notifier = self.container.get_notifier()
        if isinstance(notifier, RedisChangeNotifier):
            await notifier.stop()
        else:
            notifier.close()

        await dispose_engine()

        self._initialized = False
        logger.info("Application lifecycle shutdown completed")


# Global lifecycle manager instance
_lifecycle_manager: LifecycleManager | None = None


def get_lifecycle_manager() -> LifecycleManager:
    """Get or create the global lifecycle manager instance."""
    global _lifecycle_manager
    if _lifecycle_manager is None:
        _lifecycle_manager = LifecycleManager()
    return _lifecycle_manager


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Usage:
        app = FastAPI(lifespan=lifespan)
    """
    lifecycle = get_lifecycle_manager()

    await lifecycle.startup()
    try:
        yield
    finally:
        await lifecycle.shutdown()
