"""
Unit Tests for InMemoryChangeNotifier
"""

import asyncio

import pytest

from storefront.domains.discounts.application.ports import SubscriptionClosed
from storefront.domains.discounts.domain.events import (
    DiscountApplied,
    DiscountRuleCreated,
    DiscountsRecomputed,
)
from storefront.domains.discounts.infrastructure.notifications import InMemoryChangeNotifier


class TestInMemoryChangeNotifier:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_events_arrive_in_publish_order(self, notifier):
        subscription = notifier.subscribe()
        events = [DiscountRuleCreated(entity_id="r1"), DiscountApplied(entity_id="r1"), DiscountsRecomputed()]

        for event in events:
            await notifier.publish(event)

        received = [await subscription.get() for _ in events]
        assert received == events

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_subscription_filters_event_types(self, notifier):
        subscription = notifier.subscribe(("DiscountsRecomputed",))

        await notifier.publish(DiscountApplied(entity_id="r1"))
        await notifier.publish(DiscountsRecomputed(entity_id="2"))

        assert (await subscription.get()).entity_id == "2"
        assert subscription.get_nowait() is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_publish_without_subscribers(self, notifier):
        await notifier.publish(DiscountApplied())

        assert notifier.subscriber_count == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_full_queue_drops_new_events(self):
        notifier = InMemoryChangeNotifier(max_queue_size=2)
        slow = notifier.subscribe()
        fast = notifier.subscribe()

        for i in range(3):
            await notifier.publish(DiscountApplied(entity_id=str(i)))
            await fast.get()

        assert slow.dropped == 1
        assert slow.pending == 2
        assert [slow.get_nowait().entity_id, slow.get_nowait().entity_id] == ["0", "1"]
        assert fast.dropped == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cancel_stops_delivery_and_wakes_waiter(self, notifier):
        subscription = notifier.subscribe()
        waiter = asyncio.create_task(subscription.get())
        await asyncio.sleep(0)

        subscription.cancel()

        with pytest.raises(SubscriptionClosed):
            await waiter
        assert subscription.closed
        assert notifier.subscriber_count == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_async_iteration_ends_on_cancel(self, notifier):
        subscription = notifier.subscribe()
        await notifier.publish(DiscountApplied(entity_id="r1"))
        await notifier.publish(DiscountApplied(entity_id="r2"))

        received = []
        async for event in subscription:
            received.append(event.entity_id)
            if len(received) == 2:
                subscription.cancel()

        assert received == ["r1", "r2"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_context_manager_cancels(self, notifier):
        async with notifier.subscribe() as subscription:
            assert notifier.subscriber_count == 1

        assert subscription.closed
        assert notifier.subscriber_count == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_close_cancels_everyone(self, notifier):
        first = notifier.subscribe()
        second = notifier.subscribe()

        notifier.close()

        assert first.closed and second.closed
        with pytest.raises(SubscriptionClosed):
            await first.get()
