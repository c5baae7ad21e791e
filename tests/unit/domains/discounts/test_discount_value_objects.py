"""
Unit Tests for Discount Value Objects and Entities
"""

from decimal import Decimal

import pytest

from storefront.core.domain import ValidationException
from storefront.domains.discounts.application.ports import ProductFilter
from storefront.domains.discounts.domain.entities import ActionCategory, ChangeLogEntry, DiscountRule
from storefront.domains.discounts.domain.events import DiscountApplied, RemotePricingEvent
from storefront.domains.discounts.domain.services import discounted_price
from storefront.domains.discounts.domain.value_objects import DiscountPercentage, DiscountScope, DiscountTarget
from tests.utils import CATEGORY_A, SUBCATEGORY_X, ProductBuilder


def in_scope(rule, product) -> bool:
    return ProductFilter.for_rule(rule).matches(product)


class TestDiscountScope:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("all_products", DiscountScope.ALL_PRODUCTS),
            (" Category ", DiscountScope.CATEGORY),
            ("SUBCATEGORY", DiscountScope.SUBCATEGORY),
            (DiscountScope.CATEGORY, DiscountScope.CATEGORY),
        ],
    )
    def test_parse(self, raw, expected):
        assert DiscountScope.parse(raw) is expected

    @pytest.mark.unit
    @pytest.mark.parametrize("raw", ["brand", "", None])
    def test_parse_rejects_unknown_scope(self, raw):
        with pytest.raises(ValidationException) as exc_info:
            DiscountScope.parse(raw)

        assert exc_info.value.field == "scope"


class TestDiscountTarget:
    @pytest.mark.unit
    def test_category_requires_target(self):
        with pytest.raises(ValidationException) as exc_info:
            DiscountTarget(DiscountScope.CATEGORY, None)

        assert exc_info.value.field == "target_value"

    @pytest.mark.unit
    def test_blank_target_counts_as_missing(self):
        with pytest.raises(ValidationException):
            DiscountTarget(DiscountScope.SUBCATEGORY, "   ")

    @pytest.mark.unit
    def test_all_products_rejects_target(self):
        with pytest.raises(ValidationException):
            DiscountTarget(DiscountScope.ALL_PRODUCTS, CATEGORY_A)

    @pytest.mark.unit
    def test_target_is_trimmed(self):
        target = DiscountTarget(DiscountScope.CATEGORY, f"  {CATEGORY_A} ")

        assert target.target_value == CATEGORY_A
        assert str(target) == f"category:{CATEGORY_A}"

    @pytest.mark.unit
    def test_all_products_str(self):
        assert str(DiscountTarget(DiscountScope.ALL_PRODUCTS)) == "all_products"


class TestDiscountPercentage:
    @pytest.mark.unit
    @pytest.mark.parametrize("value", [0, 1, 50, 100])
    def test_accepts_whole_numbers_in_range(self, value):
        assert int(DiscountPercentage(value)) == value

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [-1, 101, 12.5, "10", True, None])
    def test_rejects_out_of_range_or_non_integer(self, value):
        with pytest.raises(ValidationException) as exc_info:
            DiscountPercentage(value)

        assert exc_info.value.field == "percentage"


class TestDiscountRule:
    @pytest.mark.unit
    def test_create_builds_active_rule(self):
        rule = DiscountRule.create("category", CATEGORY_A, 25, created_by="admin-1")

        assert rule.id
        assert rule.active is True
        assert rule.scope is DiscountScope.CATEGORY
        assert rule.created_by == "admin-1"
        assert rule.describe() == f"25% off category:{CATEGORY_A}"

    @pytest.mark.unit
    def test_create_validates_percentage(self):
        with pytest.raises(ValidationException):
            DiscountRule.create(DiscountScope.ALL_PRODUCTS, None, 150)

    @pytest.mark.unit
    def test_category_rule_applies_to_products_in_category(self):
        rule = DiscountRule.create(DiscountScope.CATEGORY, CATEGORY_A, 10)

        assert in_scope(rule, ProductBuilder().in_categories(CATEGORY_A).build())
        assert not in_scope(rule, ProductBuilder().in_subcategories(CATEGORY_A).build())
        assert not in_scope(rule, ProductBuilder().in_categories(CATEGORY_A).inactive().build())

    @pytest.mark.unit
    def test_subcategory_rule_matches_subcategory_membership(self):
        rule = DiscountRule.create(DiscountScope.SUBCATEGORY, SUBCATEGORY_X, 10)

        assert in_scope(rule, ProductBuilder().in_subcategories(SUBCATEGORY_X).build())
        assert not in_scope(rule, ProductBuilder().in_categories(SUBCATEGORY_X).build())

    @pytest.mark.unit
    def test_all_products_rule_skips_inactive_products(self):
        rule = DiscountRule.create(DiscountScope.ALL_PRODUCTS, None, 5)

        assert in_scope(rule, ProductBuilder().build())
        assert not in_scope(rule, ProductBuilder().inactive().build())

    @pytest.mark.unit
    def test_deactivated_returns_inactive_copy(self):
        rule = DiscountRule.create(DiscountScope.ALL_PRODUCTS, None, 5)

        inactive = rule.deactivated()

        assert rule.active is True
        assert inactive.active is False
        assert inactive.deactivated_at is not None
        assert inactive.id == rule.id


class TestPricing:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "price,percentage,expected",
        [
            (Decimal("19.99"), 25, Decimal("14.99")),
            (Decimal("100.00"), 0, Decimal("100.00")),
            (Decimal("100.00"), 100, Decimal("0.00")),
            ("10.05", 50, Decimal("5.03")),
            (3, 33, Decimal("2.01")),
        ],
    )
    def test_discounted_price_rounds_half_up_to_cents(self, price, percentage, expected):
        assert discounted_price(price, percentage) == expected

    @pytest.mark.unit
    def test_snapshot_final_price(self):
        product = ProductBuilder().with_price("80").with_discount(25).build()

        assert product.final_price == Decimal("60.00")
        assert product.has_discount


class TestActionCategory:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "action_type,expected",
        [
            ("discount_rule_created", ActionCategory.CREATED),
            ("product_added", ActionCategory.CREATED),
            ("discount_rule_deactivated", ActionCategory.REMOVED),
            ("product_deleted", ActionCategory.REMOVED),
            ("discount_applied", ActionCategory.UPDATED),
            ("discounts_recomputed", ActionCategory.UPDATED),
            ("login", ActionCategory.OTHER),
        ],
    )
    def test_for_action(self, action_type, expected):
        assert ActionCategory.for_action(action_type) is expected

    @pytest.mark.unit
    def test_entry_category(self):
        entry = ChangeLogEntry(action_type="Discount_Rule_Created", entity_type="discount_rule")

        assert entry.category is ActionCategory.CREATED


class TestPricingEvents:
    @pytest.mark.unit
    def test_to_message_shape(self):
        event = DiscountApplied(entity_id="rule-1", affected_count=3)

        message = event.to_message()

        assert message["event_type"] == "DiscountApplied"
        assert message["entity_type"] == "discount_rule"
        assert message["entity_id"] == "rule-1"
        assert message["occurred_at"] == event.occurred_at.isoformat()

    @pytest.mark.unit
    def test_remote_event_reports_original_type(self):
        event = RemotePricingEvent(remote_event_type="DiscountsRecomputed", entity_type="discount_rule_set")

        assert event.event_type == "DiscountsRecomputed"
        assert RemotePricingEvent().event_type == "RemotePricingEvent"
