"""
Discount Domain Events

Published on the change feed so other sessions can refresh pricing views.
"""

from dataclasses import dataclass

from storefront.core.domain import DomainEvent


@dataclass(frozen=True)
class PricingEvent(DomainEvent):
    """Base for events carried by the change feed."""

    entity_type: str = "discount_rule"
    entity_id: str | None = None

    def to_message(self) -> dict[str, str | None]:
        """Wire shape delivered to subscribers."""
        return {
            "event_type": self.event_type,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "occurred_at": self.occurred_at.isoformat(),
        }


@dataclass(frozen=True)
class DiscountRuleCreated(PricingEvent):
    pass


@dataclass(frozen=True)
class DiscountRuleDeactivated(PricingEvent):
    pass


@dataclass(frozen=True)
class DiscountApplied(PricingEvent):
    """A single rule was written onto its target products."""

    affected_count: int = 0


@dataclass(frozen=True)
class DiscountsRecomputed(PricingEvent):
    """Every product discount was reset and the active rules replayed."""

    entity_type: str = "discount_rule_set"
    rule_count: int = 0
    converged: bool = True


@dataclass(frozen=True)
class RemotePricingEvent(PricingEvent):
    """
    Event received from another process.

    `event_type` reports the original event name rather than this class.
    """

    remote_event_type: str = ""

    @property
    def event_type(self) -> str:
        return self.remote_event_type or super().event_type


PRICING_EVENT_TYPES = (
    "DiscountRuleCreated",
    "DiscountRuleDeactivated",
    "DiscountApplied",
    "DiscountsRecomputed",
)
