"""
Product Catalog Repository Implementation

SQLAlchemy implementation of IProductCatalog.
"""

import logging
import uuid
from decimal import Decimal

from sqlalchemy import exists, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.domains.discounts.application.ports import IProductCatalog, ProductFilter
from storefront.domains.discounts.domain.entities import ProductSnapshot
from storefront.models.db.catalog import Category as CategoryModel
from storefront.models.db.catalog import Product as ProductModel
from storefront.models.db.catalog import Subcategory as SubcategoryModel

from .product_filter_sql import build_filter_clauses, parse_uuids

logger = logging.getLogger(__name__)


class SQLAlchemyProductCatalog(IProductCatalog):
    """
    SQLAlchemy implementation of the product catalog.

    Discount writes never touch `updated_at`, so recomputing an unchanged
    rule set leaves every row exactly as it was.
    """

    def __init__(self, session: AsyncSession, chunk_size: int = 500):
        """
        Initialize repository.

        Args:
            session: SQLAlchemy async session
            chunk_size: Product ids per UPDATE statement
        """
        self.session = session
        self.chunk_size = max(1, chunk_size)

    async def read(self, product_filter: ProductFilter) -> list[ProductSnapshot]:
        stmt = (
            select(ProductModel)
            .where(*build_filter_clauses(product_filter))
            .order_by(ProductModel.created_at.desc(), ProductModel.id)
        )
        if product_filter.limit is not None:
            stmt = stmt.limit(product_filter.limit)

        try:
            result = await self.session.execute(stmt)
        except Exception as e:
            # A failed statement aborts the transaction for every later one on this session
            await self.session.rollback()
            logger.error(f"Error reading products: {e}")
            raise
        return [self._to_snapshot(m) for m in result.scalars().all()]

    async def read_ids(self, product_filter: ProductFilter) -> list[str]:
        stmt = select(ProductModel.id).where(*build_filter_clauses(product_filter))
        if product_filter.limit is not None:
            stmt = stmt.limit(product_filter.limit)

        try:
            result = await self.session.execute(stmt)
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error reading product ids: {e}")
            raise
        return [str(product_id) for product_id in result.scalars().all()]

    async def bulk_update_discount(self, product_ids: list[str], percentage: int) -> int:
        """
        Write one percentage onto every product id.

        Large id lists are split into chunks; all chunks share one
        transaction, so either every product is updated or none is.
        """
        ids = parse_uuids(product_ids)
        if not ids:
            return 0

        try:
            total = 0
            for start in range(0, len(ids), self.chunk_size):
                chunk = ids[start : start + self.chunk_size]
                result = await self.session.execute(
                    update(ProductModel)
                    .where(ProductModel.id.in_(chunk))
                    .values(discount_percentage=percentage, updated_at=ProductModel.updated_at)
                    .execution_options(synchronize_session=False)
                )
                total += result.rowcount
            await self.session.commit()
            logger.debug(f"Set discount {percentage}% on {total} products")
            return total
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error writing discount {percentage}% to {len(ids)} products: {e}")
            raise

    async def reset_discounts(self) -> int:
        try:
            result = await self.session.execute(
                update(ProductModel)
                .where(ProductModel.is_active.is_(True), ProductModel.discount_percentage != 0)
                .values(discount_percentage=0, updated_at=ProductModel.updated_at)
                .execution_options(synchronize_session=False)
            )
            await self.session.commit()
            return result.rowcount
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error resetting product discounts: {e}")
            raise

    async def category_exists(self, category_id: str) -> bool:
        return await self._exists(CategoryModel, category_id)

    async def subcategory_exists(self, subcategory_id: str) -> bool:
        return await self._exists(SubcategoryModel, subcategory_id)

    async def list_discounted(self, limit: int) -> list[ProductSnapshot]:
        result = await self.session.execute(
            select(ProductModel)
            .where(ProductModel.is_active.is_(True), ProductModel.discount_percentage > 0)
            .order_by(ProductModel.discount_percentage.desc(), ProductModel.created_at.desc())
            .limit(limit)
        )
        return [self._to_snapshot(m) for m in result.scalars().all()]

    async def _exists(self, model, entity_id: str) -> bool:
        try:
            entity_uuid = uuid.UUID(str(entity_id))
        except ValueError:
            return False
        result = await self.session.execute(select(exists().where(model.id == entity_uuid)))
        return bool(result.scalar())

    def _to_snapshot(self, model: ProductModel) -> ProductSnapshot:
        """Convert SQLAlchemy model to snapshot."""
        return ProductSnapshot(
            id=str(model.id),
            name=model.name,
            price=model.price if isinstance(model.price, Decimal) else Decimal(str(model.price)),
            stock_quantity=model.stock_quantity or 0,
            categories=tuple(model.categories or ()),
            subcategories=tuple(model.subcategories or ()),
            colors=tuple(model.colors or ()),
            discount_percentage=model.discount_percentage or 0,
            is_active=bool(model.is_active),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
