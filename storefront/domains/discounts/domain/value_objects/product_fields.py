"""
Registry of product attributes that ad-hoc filters may reference.
"""

from storefront.core.domain import ValidationException

from .filter import FieldType, FilterField

PRODUCT_FIELDS: dict[str, FilterField] = {
    f.name: f
    for f in (
        FilterField("name", FieldType.STRING, "Name"),
        FilterField("price", FieldType.NUMBER, "Price"),
        FilterField("discount_percentage", FieldType.NUMBER, "Discount %"),
        FilterField("stock_quantity", FieldType.NUMBER, "Stock"),
        FilterField("is_active", FieldType.BOOLEAN, "Active"),
        FilterField("categories", FieldType.COLLECTION, "Categories"),
        FilterField("subcategories", FieldType.COLLECTION, "Subcategories"),
        FilterField("colors", FieldType.COLLECTION, "Colors"),
        FilterField("created_at", FieldType.STRING, "Created at", text_cast=True),
        FilterField("updated_at", FieldType.STRING, "Updated at", text_cast=True),
    )
}


def get_product_field(name: str) -> FilterField:
    """
    Look up a filterable field by name.

    Raises:
        ValidationException: If the product has no filterable field with that name
    """
    key = name.strip() if isinstance(name, str) else name
    try:
        return PRODUCT_FIELDS[key]
    except (KeyError, TypeError) as e:
        raise ValidationException(f"Unknown product field: {name!r}", field="field") from e
