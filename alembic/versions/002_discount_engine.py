"""Discount engine: rules, rule-set version counter, change log.

Revision ID: 002_discount_engine
Revises: 001_catalog_baseline
Create Date: 2026-10-18

- active_discounts: discount rules (never deleted, deactivated instead)
- discount_rule_set: single-row optimistic version counter
- changes_log: append-only audit trail of back-office actions
"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002_discount_engine"
down_revision: Union[str, Sequence[str], None] = "001_catalog_baseline"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "active_discounts",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column(
            "creation_seq",
            sa.BigInteger(),
            sa.Identity(always=True),
            nullable=False,
            unique=True,
            comment="Creation order tie-breaker",
        ),
        sa.Column("discount_type", sa.String(20), nullable=False),
        sa.Column("target_value", sa.String(100), nullable=True, comment="Category/subcategory id"),
        sa.Column("discount_percentage", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_by", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("deactivated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "discount_percentage >= 0 AND discount_percentage <= 100",
            name="ck_active_discounts_percentage_range",
        ),
        sa.CheckConstraint(
            "discount_type IN ('all_products', 'category', 'subcategory')",
            name="ck_active_discounts_type",
        ),
        sa.CheckConstraint(
            "(discount_type = 'all_products') = (target_value IS NULL)",
            name="ck_active_discounts_scope_target",
        ),
    )
    op.create_index(
        "idx_active_discounts_active_order",
        "active_discounts",
        ["is_active", "created_at", "creation_seq"],
    )

    op.create_table(
        "discount_rule_set",
        sa.Column("id", sa.Integer(), primary_key=True, server_default=sa.text("1")),
        sa.Column("version", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("id = 1", name="ck_discount_rule_set_single_row"),
    )
    op.execute("INSERT INTO discount_rule_set (id, version) VALUES (1, 0)")

    op.create_table(
        "changes_log",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("admin_id", sa.String(100), nullable=True),
        sa.Column("admin_name", sa.String(200), nullable=True),
        sa.Column("action_type", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(100), nullable=True),
        sa.Column("details", JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("idx_changes_log_created_at", "changes_log", [sa.text("created_at DESC")])
    op.create_index("idx_changes_log_entity_type", "changes_log", ["entity_type"])


def downgrade() -> None:
    op.drop_index("idx_changes_log_entity_type", table_name="changes_log")
    op.drop_index("idx_changes_log_created_at", table_name="changes_log")
    op.drop_table("changes_log")
    op.drop_table("discount_rule_set")
    op.drop_index("idx_active_discounts_active_order", table_name="active_discounts")
    op.drop_table("active_discounts")
