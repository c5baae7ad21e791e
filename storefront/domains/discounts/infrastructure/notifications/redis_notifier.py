"""
Redis-backed change feed.

Events are delivered to local subscribers immediately and broadcast on a
Redis pub/sub channel; a relay task feeds events published by other
processes into the local subscribers.
"""

import asyncio
import json
import logging
from datetime import datetime
from uuid import uuid4

import redis.asyncio as aioredis

from storefront.core.domain import DomainEvent
from storefront.domains.discounts.domain.events import PricingEvent, RemotePricingEvent

from .memory_notifier import InMemoryChangeNotifier, Subscription

logger = logging.getLogger(__name__)


class RedisChangeNotifier:
    """
    Change notifier spanning every process connected to the same Redis.

    Publishing is fire-and-forget: transport errors are logged, never raised.
    """

    def __init__(
        self,
        client: aioredis.Redis,
        channel: str,
        local: InMemoryChangeNotifier | None = None,
        reconnect_delay: float = 1.0,
    ):
        self._client = client
        self._channel = channel
        self._local = local or InMemoryChangeNotifier()
        self._reconnect_delay = reconnect_delay
        self._origin = uuid4().hex
        self._task: asyncio.Task | None = None

    @property
    def channel(self) -> str:
        return self._channel

    @property
    def local(self) -> InMemoryChangeNotifier:
        return self._local

    async def publish(self, event: DomainEvent) -> None:
        await self._local.publish(event)

        payload = json.dumps({**self._to_message(event), "origin": self._origin})
        try:
            await self._client.publish(self._channel, payload)
        except (aioredis.ConnectionError, aioredis.TimeoutError) as e:
            logger.warning(f"Could not broadcast {event.event_type} on {self._channel}: {e}")
        except aioredis.RedisError as e:
            logger.warning(f"Redis error broadcasting {event.event_type}: {e}")

    def subscribe(self, event_types: tuple[str, ...] | None = None) -> Subscription:
        return self._local.subscribe(event_types)

    def start(self) -> None:
        """Start relaying remote events into local subscribers."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._relay(), name="change-feed-relay")

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._local.close()
        await self._client.aclose()

    async def _relay(self) -> None:
        while True:
            pubsub = self._client.pubsub(ignore_subscribe_messages=True)
            try:
                await pubsub.subscribe(self._channel)
                logger.info(f"Change feed relay subscribed to {self._channel}")
                async for message in pubsub.listen():
                    await self._handle_message(message)
            except (aioredis.ConnectionError, aioredis.TimeoutError) as e:
                logger.warning(f"Change feed relay lost connection: {e}; retrying in {self._reconnect_delay}s")
            except aioredis.RedisError as e:
                logger.error(f"Change feed relay Redis error: {e}; retrying in {self._reconnect_delay}s")
            except Exception as e:
                logger.error(f"Change feed relay failed: {e}; retrying in {self._reconnect_delay}s", exc_info=True)
            finally:
                await self._close_pubsub(pubsub)
            # The relay only ends through cancellation
            await asyncio.sleep(self._reconnect_delay)

    async def _close_pubsub(self, pubsub) -> None:
        try:
            await pubsub.aclose()
        except aioredis.RedisError as e:
            logger.warning(f"Error closing change feed subscription: {e}")

    async def _handle_message(self, message: dict) -> None:
        if message.get("type") != "message":
            return
        try:
            data = json.loads(message["data"])
            if data.get("origin") == self._origin:
                return
            occurred_at = data.get("occurred_at")
            extra = {"occurred_at": datetime.fromisoformat(occurred_at)} if occurred_at else {}
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring malformed change feed message: {e}")
            return

        event = RemotePricingEvent(
            remote_event_type=data.get("event_type", ""),
            entity_type=data.get("entity_type") or "unknown",
            entity_id=data.get("entity_id"),
            **extra,
        )
        await self._local.publish(event)

    @staticmethod
    def _to_message(event: DomainEvent) -> dict:
        if isinstance(event, PricingEvent):
            return event.to_message()
        return {
            "event_type": event.event_type,
            "entity_type": getattr(event, "entity_type", None),
            "entity_id": getattr(event, "entity_id", None),
            "occurred_at": event.occurred_at.isoformat(),
        }
