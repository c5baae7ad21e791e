"""
Product Snapshot

Read-only view of the catalog attributes the discount engine reads.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from ..services.pricing import discounted_price


@dataclass(frozen=True)
class ProductSnapshot:
    """Point-in-time copy of a catalog product."""

    id: str
    name: str
    price: Decimal
    stock_quantity: int = 0
    categories: tuple[str, ...] = ()
    subcategories: tuple[str, ...] = ()
    colors: tuple[str, ...] = ()
    discount_percentage: int = 0
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def final_price(self) -> Decimal:
        """Price after the current discount."""
        return discounted_price(self.price, self.discount_percentage)

    @property
    def has_discount(self) -> bool:
        return self.discount_percentage > 0
