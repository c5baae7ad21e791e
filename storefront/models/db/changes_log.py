"""
Administrative audit trail
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, Index, String
from sqlalchemy.dialects.postgresql import JSONB, UUID

from .base import Base


class ChangeLog(Base):
    """Append-only record of back-office actions"""

    __tablename__ = "changes_log"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    admin_id = Column(String(100))
    admin_name = Column(String(200))
    action_type = Column(String(100), nullable=False)  # discount_created, complex_discount_applied, ...
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(100))
    details = Column(JSONB, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))

    __table_args__ = (
        Index("idx_changes_log_created_at", created_at.desc()),
        Index("idx_changes_log_entity_type", entity_type),
    )
