"""
Discount rule models
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import BigInteger, Boolean, CheckConstraint, Column, DateTime, Identity, Index, Integer, String
from sqlalchemy.dialects.postgresql import UUID

from .base import Base


class ActiveDiscount(Base):
    """Discount rules. Removal flips `is_active`; rows are never deleted."""

    __tablename__ = "active_discounts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Tie-breaker for rules created within the same timestamp tick
    creation_seq = Column(BigInteger, Identity(always=True), nullable=False, unique=True)
    discount_type = Column(String(20), nullable=False)  # all_products | category | subcategory
    target_value = Column(String(100), nullable=True)
    discount_percentage = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(String(100))
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    deactivated_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "discount_percentage >= 0 AND discount_percentage <= 100",
            name="ck_active_discounts_percentage_range",
        ),
        CheckConstraint(
            "discount_type IN ('all_products', 'category', 'subcategory')",
            name="ck_active_discounts_type",
        ),
        CheckConstraint(
            "(discount_type = 'all_products') = (target_value IS NULL)",
            name="ck_active_discounts_scope_target",
        ),
        Index("idx_active_discounts_active_order", is_active, created_at, creation_seq),
    )


class DiscountRuleSet(Base):
    """Single-row optimistic version counter over the active rule set."""

    __tablename__ = "discount_rule_set"

    id = Column(Integer, primary_key=True, default=1)
    version = Column(BigInteger, nullable=False, default=0)
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    __table_args__ = (CheckConstraint("id = 1", name="ck_discount_rule_set_single_row"),)
