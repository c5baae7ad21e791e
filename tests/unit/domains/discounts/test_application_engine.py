"""
Unit Tests for DiscountApplicationEngine

Runs the engine over in-memory ports: rule application, reset-then-replay
recomputation, restarts on concurrent rule changes and partial failures.
"""

import pytest

from storefront.core.domain import EntityNotFoundException, PartialApplicationException
from storefront.domains.discounts.domain.events import DiscountApplied, DiscountsRecomputed
from tests.utils import CATEGORY_A, CATEGORY_B, ProductBuilder


def discounts_of(catalog, *products):
    return [catalog.discount_of(p.id) for p in products]


class TestApplyRule:
    """Single rule application"""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_category_rule_updates_only_its_category(self, engine, rule_store, catalog, p1, p2, p3):
        # Arrange
        rule = await rule_store.create_rule("category", CATEGORY_A, 25)

        # Act
        outcome = await engine.apply_rule(rule)

        # Assert
        assert outcome.succeeded
        assert outcome.affected_count == 2
        assert discounts_of(catalog, p1, p2, p3) == [25, 25, 0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_later_rule_overwrites_shared_products(self, engine, rule_store, catalog, p1, p2, p3):
        rule_a = await rule_store.create_rule("category", CATEGORY_A, 25)
        rule_b = await rule_store.create_rule("category", CATEGORY_B, 10)

        await engine.apply_rule(rule_a)
        await engine.apply_rule(rule_b)

        assert discounts_of(catalog, p1, p2, p3) == [25, 10, 10]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_candidates_narrow_the_write(self, engine, rule_store, catalog, p1, p2, p3):
        rule = await rule_store.create_rule("category", CATEGORY_A, 30)

        outcome = await engine.apply_rule(rule, candidate_ids={p2.id, p3.id})

        # p3 is a candidate but outside the rule's category
        assert outcome.affected_count == 1
        assert discounts_of(catalog, p1, p2, p3) == [0, 30, 0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_candidate_set_touches_nothing(self, engine, rule_store, catalog):
        rule = await rule_store.create_rule("all_products", None, 30)

        outcome = await engine.apply_rule(rule, candidate_ids=set())

        assert outcome.affected_count == 0
        assert catalog.bulk_updates == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_inactive_products_are_left_alone(self, engine, rule_store, catalog):
        hidden = ProductBuilder().in_categories(CATEGORY_A).inactive().with_discount(40).build()
        catalog.products[hidden.id] = hidden
        rule = await rule_store.create_rule("category", CATEGORY_A, 25)

        await engine.apply_rule(rule)

        assert catalog.discount_of(hidden.id) == 40

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_write_raises_partial_application(self, engine, rule_store, catalog, notifier, p1, p2):
        # Arrange
        subscription = notifier.subscribe()
        rule = await rule_store.create_rule("category", CATEGORY_A, 25)
        catalog.fail_for_percentages = {25}

        # Act
        with pytest.raises(PartialApplicationException) as exc_info:
            await engine.apply_rule(rule)

        # Assert
        assert exc_info.value.rule_id == rule.id
        assert exc_info.value.affected_count == 0
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert discounts_of(catalog, p1, p2) == [0, 0]
        assert subscription.get_nowait() is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_apply_publishes_and_records(self, engine, rule_store, notifier, change_log_repository):
        subscription = notifier.subscribe()
        rule = await rule_store.create_rule("category", CATEGORY_A, 25)

        await engine.apply_rule(rule, actor="admin-7")

        event = subscription.get_nowait()
        assert isinstance(event, DiscountApplied)
        assert event.entity_id == rule.id
        assert event.affected_count == 2

        entry = change_log_repository.entries[-1]
        assert entry.action_type == "discount_applied"
        assert entry.actor_id == "admin-7"
        assert entry.details["affected_count"] == 2
        assert entry.details["candidate_count"] is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_change_log_failure_propagates(self, engine, rule_store, change_log_repository):
        rule = await rule_store.create_rule("category", CATEGORY_A, 25)
        change_log_repository.fail = True

        with pytest.raises(RuntimeError):
            await engine.apply_rule(rule)


class TestRecomputeAll:
    """Reset-then-replay recomputation"""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_replays_rules_in_creation_order(self, engine, rule_store, catalog, p1, p2, p3):
        await rule_store.create_rule("category", CATEGORY_B, 10)
        await rule_store.create_rule("category", CATEGORY_A, 25)

        result = await engine.recompute_all()

        # A was created last, so it wins on p2
        assert result.succeeded
        assert discounts_of(catalog, p1, p2, p3) == [25, 25, 10]
        assert result.total_affected == 4

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_recompute_clears_discounts_without_rules(self, engine, catalog, p1, p2, p3):
        for product in (p1, p2, p3):
            catalog.products[product.id] = ProductBuilder().with_id(product.id).with_discount(15).build()

        result = await engine.recompute_all()

        assert result.reset_count == 3
        assert result.outcomes == []
        assert discounts_of(catalog, p1, p2, p3) == [0, 0, 0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_recompute_is_idempotent(self, engine, rule_store, catalog):
        await rule_store.create_rule("category", CATEGORY_A, 25)
        await rule_store.create_rule("category", CATEGORY_B, 10)

        await engine.recompute_all()
        first = catalog.discounts()
        await engine.recompute_all()

        assert catalog.discounts() == first

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_recompute_drops_narrowing_from_filtered_apply(self, engine, rule_store, catalog, p1, p2):
        rule = await rule_store.create_rule("category", CATEGORY_A, 25)
        await engine.apply_rule(rule, candidate_ids={p1.id})

        await engine.recompute_all()

        assert discounts_of(catalog, p1, p2) == [25, 25]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_rule_is_reported_and_others_still_apply(self, engine, rule_store, catalog, p1, p2, p3):
        # Arrange
        failing = await rule_store.create_rule("category", CATEGORY_A, 25)
        await rule_store.create_rule("category", CATEGORY_B, 10)
        catalog.fail_for_percentages = {25}

        # Act
        result = await engine.recompute_all()

        # Assert
        assert not result.succeeded
        assert result.converged
        assert result.failed_rule_ids == [failing.id]
        failed = result.outcomes[0]
        assert failed.affected_count == 0
        assert "simulated write failure" in failed.error
        assert discounts_of(catalog, p1, p2, p3) == [0, 10, 10]
        assert failing.id in result.error

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_restarts_once_when_rule_set_changes(self, engine, rule_store, rule_repository, catalog):
        # Arrange
        await rule_store.create_rule("category", CATEGORY_A, 25)
        bumps = []

        def bump_once():
            if not bumps:
                bumps.append(True)
                rule_repository.version += 1

        catalog.on_reset = bump_once

        # Act
        result = await engine.recompute_all()

        # Assert
        assert result.converged
        assert result.attempts == 2
        assert result.restarts == 1
        assert catalog.reset_calls == 2
        assert result.rule_set_version == rule_repository.version

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, engine, rule_store, rule_repository, catalog, notifier):
        # Arrange
        await rule_store.create_rule("category", CATEGORY_A, 25)
        subscription = notifier.subscribe(("DiscountsRecomputed",))

        def always_bump():
            rule_repository.version += 1

        catalog.on_reset = always_bump

        # Act
        result = await engine.recompute_all()

        # Assert
        assert result.converged is False
        assert result.attempts == 3
        assert not result.succeeded
        assert "kept changing" in result.error
        event = subscription.get_nowait()
        assert isinstance(event, DiscountsRecomputed)
        assert event.converged is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_recompute_records_summary(self, engine, rule_store, change_log_repository):
        await rule_store.create_rule("category", CATEGORY_A, 25)

        result = await engine.recompute_all(actor="admin-1")

        entry = change_log_repository.entries[-1]
        assert entry.action_type == "discounts_recomputed"
        assert entry.entity_type == "discount_rule_set"
        assert entry.entity_id == str(result.rule_set_version)
        assert entry.details["rule_count"] == 1
        assert entry.details["converged"] is True
        assert entry.actor_id == "admin-1"


class TestRemoveRule:
    """Deactivate then recompute"""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_removal_recomputes_remaining_rules(self, engine, rule_store, catalog, p1, p2, p3):
        # Arrange
        rule_a = await rule_store.create_rule("category", CATEGORY_A, 25)
        await engine.apply_rule(rule_a)
        rule_b = await rule_store.create_rule("category", CATEGORY_B, 10)
        await engine.apply_rule(rule_b)
        assert discounts_of(catalog, p1, p2, p3) == [25, 10, 10]

        # Act
        removal = await engine.remove_rule(rule_a.id)

        # Assert
        assert removal.succeeded
        assert removal.rule.id == rule_a.id
        assert removal.rule.active is True
        assert discounts_of(catalog, p1, p2, p3) == [0, 10, 10]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_removing_unknown_rule_raises(self, engine):
        with pytest.raises(EntityNotFoundException):
            await engine.remove_rule("missing")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_recompute_is_reported_not_raised(self, engine, rule_store, rule_repository, catalog):
        rule = await rule_store.create_rule("category", CATEGORY_A, 25)
        catalog.fail_reset = True

        removal = await engine.remove_rule(rule.id)

        assert not removal.succeeded
        assert removal.recompute is None
        assert "simulated reset failure" in removal.error
        assert rule_repository.rules[rule.id].active is False
