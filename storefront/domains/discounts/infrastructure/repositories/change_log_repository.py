"""
Change Log Repository Implementation

SQLAlchemy implementation of IChangeLogRepository.
"""

import logging
import uuid
from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.domains.discounts.application.ports import IChangeLogRepository
from storefront.domains.discounts.domain.entities import ChangeLogEntry
from storefront.models.db.changes_log import ChangeLog as ChangeLogModel

logger = logging.getLogger(__name__)

# Key for pg_advisory_xact_lock; any stable bigint unique to this table
_APPEND_LOCK_KEY = 7_301_114_500
_TICK = timedelta(microseconds=1)


class SQLAlchemyChangeLogRepository(IChangeLogRepository):
    """
    SQLAlchemy implementation of the change log.

    Rows are only ever inserted.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(self, entry: ChangeLogEntry) -> ChangeLogEntry:
        """
        Insert an entry, keeping timestamps strictly increasing across writers.

        A transaction-scoped advisory lock serializes appends from every
        session and process until commit; the newest stored timestamp is
        re-read under it and the entry is placed after it when needed.
        """
        try:
            await self.session.execute(select(func.pg_advisory_xact_lock(_APPEND_LOCK_KEY)))
            latest = (await self.session.execute(select(func.max(ChangeLogModel.created_at)))).scalar_one_or_none()

            timestamp = entry.timestamp or datetime.now(UTC)
            if latest is not None and timestamp <= latest:
                timestamp = latest + _TICK

            model = ChangeLogModel(
                id=uuid.UUID(entry.id) if entry.id else uuid.uuid4(),
                admin_id=entry.actor_id,
                admin_name=entry.actor_name,
                action_type=entry.action_type,
                entity_type=entry.entity_type,
                entity_id=entry.entity_id,
                details=entry.details,
                created_at=timestamp,
            )
            self.session.add(model)
            await self.session.commit()
            return self._to_entity(model)
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error appending change log entry {entry.action_type}: {e}")
            raise

    async def list_entries(
        self,
        action_type_contains: str | None = None,
        entity_type: str | None = None,
        limit: int = 500,
    ) -> list[ChangeLogEntry]:
        stmt = select(ChangeLogModel)
        if action_type_contains:
            stmt = stmt.where(ChangeLogModel.action_type.icontains(action_type_contains, autoescape=True))
        if entity_type:
            stmt = stmt.where(ChangeLogModel.entity_type == entity_type)
        stmt = stmt.order_by(ChangeLogModel.created_at.desc()).limit(limit)

        result = await self.session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def latest_timestamp(self) -> datetime | None:
        result = await self.session.execute(select(func.max(ChangeLogModel.created_at)))
        return result.scalar_one_or_none()

    def _to_entity(self, model: ChangeLogModel) -> ChangeLogEntry:
        return ChangeLogEntry(
            id=str(model.id),
            action_type=model.action_type,
            entity_type=model.entity_type,
            entity_id=model.entity_id,
            details=dict(model.details or {}),
            actor_id=model.admin_id,
            actor_name=model.admin_name,
            timestamp=model.created_at,
        )
