"""
Change Log Entry

Immutable audit record of an administrative action.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from storefront.core.domain import StringEnum


class ActionCategory(StringEnum):
    """Display grouping derived from an action type."""

    CREATED = "created"
    REMOVED = "removed"
    UPDATED = "updated"
    OTHER = "other"

    @classmethod
    def for_action(cls, action_type: str) -> "ActionCategory":
        action = action_type.lower()
        if "added" in action or "created" in action:
            return cls.CREATED
        if "deleted" in action or "removed" in action or "deactivated" in action:
            return cls.REMOVED
        if "updated" in action or "changed" in action or "applied" in action or "recomputed" in action:
            return cls.UPDATED
        return cls.OTHER


@dataclass(frozen=True)
class ChangeLogEntry:
    """
    Audit trail row.

    `timestamp` is assigned when the entry is appended; entries built by
    callers leave it unset.
    """

    action_type: str
    entity_type: str
    entity_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    actor_id: str | None = None
    actor_name: str | None = None
    timestamp: datetime | None = None
    id: str | None = None

    @property
    def category(self) -> ActionCategory:
        return ActionCategory.for_action(self.action_type)
