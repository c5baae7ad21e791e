"""
Change Log Service

Append-only audit trail with strictly increasing timestamps.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from typing import Any

from storefront.core.domain import generate_uuid_str
from storefront.domains.discounts.application.ports import IChangeLogRepository
from storefront.domains.discounts.domain.entities import ChangeLogEntry

logger = logging.getLogger(__name__)

_TICK = timedelta(microseconds=1)


class ChangeLogService:
    """
    Records administrative actions.

    Timestamps never go backwards: an entry appended within the same clock
    tick as (or with a clock behind) the previous one is placed one
    microsecond after it. This instance only sees its own appends; the
    repository keeps the order across concurrent requests and processes.
    """

    def __init__(self, repository: IChangeLogRepository, read_limit: int = 500):
        self._repository = repository
        self._read_limit = read_limit
        self._last_timestamp: datetime | None = None
        self._loaded = False
        self._lock = asyncio.Lock()

    async def append(self, entry: ChangeLogEntry) -> ChangeLogEntry:
        """
        Persist an entry.

        Raises:
            Exception: Storage errors propagate to the caller unchanged
        """
        async with self._lock:
            if not self._loaded:
                self._last_timestamp = await self._repository.latest_timestamp()
                self._loaded = True

            timestamp = datetime.now(UTC)
            if self._last_timestamp is not None and timestamp <= self._last_timestamp:
                timestamp = self._last_timestamp + _TICK

            stored = await self._repository.append(
                replace(entry, id=entry.id or generate_uuid_str(), timestamp=timestamp)
            )
            self._last_timestamp = stored.timestamp or timestamp

        logger.debug(f"Change log: {stored.action_type} {stored.entity_type}:{stored.entity_id}")
        return stored

    async def record(
        self,
        action_type: str,
        entity_type: str,
        entity_id: str | None = None,
        details: dict[str, Any] | None = None,
        actor_id: str | None = None,
        actor_name: str | None = None,
    ) -> ChangeLogEntry:
        return await self.append(
            ChangeLogEntry(
                action_type=action_type,
                entity_type=entity_type,
                entity_id=entity_id,
                details=details or {},
                actor_id=actor_id,
                actor_name=actor_name,
            )
        )

    async def list_entries(
        self,
        action_type_contains: str | None = None,
        entity_type: str | None = None,
        limit: int | None = None,
    ) -> list[ChangeLogEntry]:
        """Most recent entries first, never more than the configured read limit."""
        effective = self._read_limit if limit is None else max(0, min(limit, self._read_limit))
        if effective == 0:
            return []
        return await self._repository.list_entries(
            action_type_contains=action_type_contains or None,
            entity_type=entity_type or None,
            limit=effective,
        )
