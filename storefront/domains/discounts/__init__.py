"""
Discounts Domain

Percentage discount rules scoped to all products, a category or a
subcategory, and the engine that keeps product discounts in sync with them.
"""
