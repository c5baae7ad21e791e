"""
Base Domain Event Classes

Domain Events are immutable records of something that happened in the domain.
They are carried to other sessions by the change feed.
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Base class for all domain events.

    Example:
        ```python
        @dataclass(frozen=True)
        class DiscountRuleCreated(DomainEvent):
            entity_type: str = "discount_rule"
            entity_id: str | None = None
        ```
    """

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    version: int = field(default=1)

    @property
    def event_type(self) -> str:
        """Get the event type name (class name)."""
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        """Convert event to dictionary for serialization."""
        result = {
            "event_id": str(self.event_id),
            "event_type": self.event_type,
            "occurred_at": self.occurred_at.isoformat(),
            "version": self.version,
        }
        # Add all other fields
        for key, value in self.__dict__.items():
            if key not in result:
                if isinstance(value, (datetime,)):
                    result[key] = value.isoformat()
                elif isinstance(value, UUID):
                    result[key] = str(value)
                else:
                    result[key] = value
        return result
