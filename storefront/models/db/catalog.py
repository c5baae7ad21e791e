"""
Product catalog models: Products, Categories, Subcategories.

The discount engine only writes `Product.discount_percentage`.
"""

import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import ARRAY, UUID

from .base import Base, TimestampMixin


class Category(Base, TimestampMixin):
    """Product categories (Shoes, Accessories, ...)"""

    __tablename__ = "categories"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text)


class Subcategory(Base, TimestampMixin):
    """Subcategories nested under a category"""

    __tablename__ = "subcategories"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    category_id = Column(UUID(as_uuid=True), ForeignKey("categories.id"), nullable=False)


class Product(Base, TimestampMixin):
    """Storefront products"""

    __tablename__ = "products"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    price = Column(Numeric(12, 2), nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)

    # Category/subcategory ids stored as text so a product can belong to several
    categories = Column(ARRAY(Text), nullable=False, default=list)
    subcategories = Column(ARRAY(Text), nullable=False, default=list)
    colors = Column(ARRAY(Text), nullable=False, default=list)

    discount_percentage = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint(
            "discount_percentage >= 0 AND discount_percentage <= 100",
            name="ck_products_discount_percentage_range",
        ),
        Index("idx_products_active", is_active),
        Index("idx_products_categories", categories, postgresql_using="gin"),
        Index("idx_products_subcategories", subcategories, postgresql_using="gin"),
    )
