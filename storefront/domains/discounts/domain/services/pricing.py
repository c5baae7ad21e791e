"""
Effective price calculation.
"""

from decimal import Decimal

from storefront.core.domain import Percentage


def discounted_price(price: Decimal | float | int | str, percentage: int) -> Decimal:
    """
    Price after a percentage discount, rounded half-up to cents.

    >>> discounted_price(Decimal("19.99"), 25)
    Decimal('14.99')
    """
    amount = price if isinstance(price, Decimal) else Decimal(str(price))
    return Percentage(Decimal(percentage)).remaining_of(amount)
