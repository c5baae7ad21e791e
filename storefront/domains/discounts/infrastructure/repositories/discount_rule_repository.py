"""
Discount Rule Repository Implementation

SQLAlchemy implementation of IDiscountRuleRepository.
"""

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.domains.discounts.application.ports import IDiscountRuleRepository
from storefront.domains.discounts.domain.entities import DiscountRule
from storefront.domains.discounts.domain.value_objects import DiscountScope
from storefront.models.db.discounts import ActiveDiscount as ActiveDiscountModel
from storefront.models.db.discounts import DiscountRuleSet as DiscountRuleSetModel

logger = logging.getLogger(__name__)

RULE_SET_ID = 1


class SQLAlchemyDiscountRuleRepository(IDiscountRuleRepository):
    """
    SQLAlchemy implementation of discount rule repository.

    Rule changes and the rule-set version bump commit together.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize repository.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def create(self, rule: DiscountRule) -> DiscountRule:
        try:
            model = ActiveDiscountModel(
                id=uuid.UUID(rule.id) if rule.id else uuid.uuid4(),
                discount_type=rule.scope.value,
                target_value=rule.target_value,
                discount_percentage=rule.percentage,
                is_active=rule.active,
                created_by=rule.created_by,
                created_at=rule.created_at,
            )
            self.session.add(model)
            await self.session.flush()
            await self._bump_version()
            await self.session.commit()
            await self.session.refresh(model)

            logger.info(f"Created discount rule {model.id}")
            return self._to_entity(model)
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error creating discount rule: {e}")
            raise

    async def get_by_id(self, rule_id: str) -> DiscountRule | None:
        try:
            rule_uuid = uuid.UUID(str(rule_id))
        except ValueError:
            logger.warning(f"Invalid discount rule id: {rule_id}")
            return None

        result = await self.session.execute(select(ActiveDiscountModel).where(ActiveDiscountModel.id == rule_uuid))
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def deactivate(self, rule_id: str) -> DiscountRule | None:
        try:
            rule_uuid = uuid.UUID(str(rule_id))
        except ValueError:
            return None

        try:
            result = await self.session.execute(
                update(ActiveDiscountModel)
                .where(ActiveDiscountModel.id == rule_uuid, ActiveDiscountModel.is_active.is_(True))
                .values(is_active=False, deactivated_at=datetime.now(UTC))
                .returning(ActiveDiscountModel)
            )
            model = result.scalars().first()
            if model is None:
                await self.session.rollback()
                return None

            await self._bump_version()
            await self.session.commit()
            return self._to_entity(model)
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error deactivating discount rule {rule_id}: {e}")
            raise

    async def list_active(self) -> list[DiscountRule]:
        result = await self.session.execute(
            select(ActiveDiscountModel)
            .where(ActiveDiscountModel.is_active.is_(True))
            .order_by(ActiveDiscountModel.created_at.asc(), ActiveDiscountModel.creation_seq.asc())
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    async def get_rule_set_version(self) -> int:
        result = await self.session.execute(
            select(DiscountRuleSetModel.version).where(DiscountRuleSetModel.id == RULE_SET_ID)
        )
        version = result.scalar_one_or_none()
        return int(version) if version is not None else 0

    async def _bump_version(self) -> None:
        stmt = insert(DiscountRuleSetModel).values(id=RULE_SET_ID, version=1, updated_at=datetime.now(UTC))
        stmt = stmt.on_conflict_do_update(
            index_elements=[DiscountRuleSetModel.id],
            set_={
                "version": DiscountRuleSetModel.version + 1,
                "updated_at": datetime.now(UTC),
            },
        )
        await self.session.execute(stmt)

    def _to_entity(self, model: ActiveDiscountModel) -> DiscountRule:
        """Convert SQLAlchemy model to domain entity."""
        return DiscountRule(
            id=str(model.id),
            scope=DiscountScope(model.discount_type),
            target_value=model.target_value,
            percentage=model.discount_percentage,
            active=bool(model.is_active),
            created_by=model.created_by,
            created_at=model.created_at,
            deactivated_at=model.deactivated_at,
        )
