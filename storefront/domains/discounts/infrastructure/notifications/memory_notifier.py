"""
In-process change feed.

Each subscriber owns a bounded FIFO queue, so it sees its events in publish
order. A subscriber that falls too far behind loses new events rather than
blocking publishers.
"""

import asyncio
import logging

from storefront.core.domain import DomainEvent
from storefront.domains.discounts.application.ports import SubscriptionClosed

logger = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    """
    Cancellable handle over one subscriber queue.

    Usage:
        ```python
        async with notifier.subscribe(("DiscountsRecomputed",)) as subscription:
            async for event in subscription:
                ...
        ```
    """

    def __init__(
        self,
        notifier: "InMemoryChangeNotifier",
        event_types: tuple[str, ...] | None,
        max_queue_size: int,
    ):
        self._notifier = notifier
        self._event_types = frozenset(event_types) if event_types else None
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue_size + 1)
        self._max_queue_size = max_queue_size
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def accepts(self, event: DomainEvent) -> bool:
        if self._closed:
            return False
        return self._event_types is None or event.event_type in self._event_types

    def deliver(self, event: DomainEvent) -> bool:
        # One slot stays free for the close marker
        if self._queue.qsize() >= self._max_queue_size:
            self.dropped += 1
            logger.warning(f"Change feed subscriber queue full; dropped {event.event_type} (total {self.dropped})")
            return False
        self._queue.put_nowait(event)
        return True

    async def get(self) -> DomainEvent:
        """
        Wait for the next event.

        Raises:
            SubscriptionClosed: The subscription was cancelled
        """
        if self._closed and self._queue.empty():
            raise SubscriptionClosed()
        item = await self._queue.get()
        if item is _CLOSED:
            raise SubscriptionClosed()
        return item

    def get_nowait(self) -> DomainEvent | None:
        """Next queued event, or None when nothing is waiting."""
        try:
            item = self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None
        return None if item is _CLOSED else item

    def cancel(self) -> None:
        """Stop receiving events. Pending events are discarded."""
        if self._closed:
            return
        self._closed = True
        self._notifier._unsubscribe(self)
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> DomainEvent:
        try:
            return await self.get()
        except SubscriptionClosed:
            raise StopAsyncIteration from None

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cancel()


class InMemoryChangeNotifier:
    """
    Fan-out of pricing events to subscribers in this process.
    """

    def __init__(self, max_queue_size: int = 1000):
        self._max_queue_size = max_queue_size
        self._subscriptions: list[Subscription] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    async def publish(self, event: DomainEvent) -> None:
        """Deliver to every matching subscriber. Never raises."""
        delivered = 0
        for subscription in list(self._subscriptions):
            if subscription.accepts(event) and subscription.deliver(event):
                delivered += 1
        logger.debug(f"Published {event.event_type} to {delivered} subscribers")

    def subscribe(self, event_types: tuple[str, ...] | None = None) -> Subscription:
        """
        Register a subscriber.

        Args:
            event_types: Event class names to receive; None receives everything
        """
        subscription = Subscription(self, event_types, self._max_queue_size)
        self._subscriptions.append(subscription)
        return subscription

    def close(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.cancel()

    def _unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
