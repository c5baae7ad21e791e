"""
Discounted Products View

Short list of the deepest current discounts for the storefront banner,
cached in memory and dropped whenever the change feed reports a pricing change.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from storefront.core.shared.cache import MemoryCache
from storefront.domains.discounts.application.ports import IChangeNotifier, ISubscription, SubscriptionClosed
from storefront.domains.discounts.domain.entities import ProductSnapshot
from storefront.domains.discounts.domain.events import PRICING_EVENT_TYPES

logger = logging.getLogger(__name__)


class DiscountedProductsView:
    """
    Cached read model over the catalog's discounted products.

    `loader(limit)` reads the catalog (typically `IProductCatalog.list_discounted`
    on a fresh session). A miss or an expired entry always reloads.
    """

    def __init__(
        self,
        loader: Callable[[int], Awaitable[list[ProductSnapshot]]],
        notifier: IChangeNotifier,
        limit: int = 10,
        ttl_seconds: float = 30.0,
    ):
        self._loader = loader
        self._notifier = notifier
        self._limit = limit
        self._cache = MemoryCache(default_ttl=ttl_seconds)
        self._subscription: ISubscription | None = None
        self._task: asyncio.Task | None = None

    @property
    def cache(self) -> MemoryCache:
        return self._cache

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def get(self, limit: int | None = None) -> list[ProductSnapshot]:
        effective = min(limit or self._limit, self._limit)
        key = f"discounted:{effective}"

        cached = await self._cache.async_get(key)
        if cached is not None:
            return cached

        products = await self._loader(effective)
        await self._cache.async_set(key, products)
        return products

    async def invalidate(self) -> None:
        cleared = await self._cache.async_clear()
        logger.debug(f"Discounted products cache invalidated ({cleared} entries)")

    def start(self) -> None:
        """Subscribe to pricing changes and invalidate on each one."""
        if self.is_running:
            return
        self._subscription = self._notifier.subscribe(PRICING_EVENT_TYPES)
        self._task = asyncio.create_task(self._listen(self._subscription), name="discounted-products-view")
        logger.info("Discounted products view listening for pricing changes")

    async def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _listen(self, subscription: ISubscription) -> None:
        while True:
            try:
                event = await subscription.get()
            except SubscriptionClosed:
                return
            logger.debug(f"Pricing change received: {event.event_type}")
            await self.invalidate()
