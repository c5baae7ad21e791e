"""
Unit tests for Discount Domain Repositories.

Tests the data access layer for rules, the product catalog, the change log,
and the SQL rendering of product filters.
"""

import uuid
from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from storefront.domains.discounts.application.ports import ProductFilter
from storefront.domains.discounts.application.services import DiscountApplicationEngine
from storefront.domains.discounts.domain.entities import ChangeLogEntry, DiscountRule
from storefront.domains.discounts.domain.value_objects import DiscountScope
from storefront.domains.discounts.infrastructure.repositories import (
    SQLAlchemyChangeLogRepository,
    SQLAlchemyDiscountRuleRepository,
    SQLAlchemyProductCatalog,
)
from storefront.domains.discounts.infrastructure.repositories.product_filter_sql import (
    build_filter_clauses,
    build_predicate_clause,
    parse_uuids,
)
from tests.utils import CATEGORY_A, condition

# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def sample_rule_model():
    """Sample SQLAlchemy active discount model."""
    model = MagicMock()
    model.id = uuid.uuid4()
    model.discount_type = "category"
    model.target_value = CATEGORY_A
    model.discount_percentage = 25
    model.is_active = True
    model.created_by = "admin-1"
    model.created_at = datetime.now(UTC)
    model.deactivated_at = None
    return model


@pytest.fixture
def sample_product_model():
    """Sample SQLAlchemy product model."""
    model = MagicMock()
    model.id = uuid.uuid4()
    model.name = "Boots"
    model.price = 129.9
    model.stock_quantity = None
    model.categories = [CATEGORY_A]
    model.subcategories = None
    model.colors = ["black"]
    model.discount_percentage = 20
    model.is_active = True
    model.created_at = datetime.now(UTC)
    model.updated_at = datetime.now(UTC)
    return model


@pytest.fixture
def mock_result():
    return MagicMock()


@pytest.fixture
def session(mock_async_session, mock_result):
    mock_async_session.execute.return_value = mock_result
    return mock_async_session


def compile_sql(clause) -> str:
    return str(clause.compile(dialect=postgresql.dialect()))


# ============================================================================
# DISCOUNT RULE REPOSITORY
# ============================================================================


class TestSQLAlchemyDiscountRuleRepository:
    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_create_commits_rule_and_version_together(self, session):
        # Arrange
        repo = SQLAlchemyDiscountRuleRepository(session)
        rule = DiscountRule.create(DiscountScope.CATEGORY, CATEGORY_A, 25, created_by="admin-1")

        # Act
        created = await repo.create(rule)

        # Assert
        session.add.assert_called_once()
        session.flush.assert_awaited_once()
        session.execute.assert_awaited_once()
        session.commit.assert_awaited_once()
        assert created.id == rule.id
        assert created.scope is DiscountScope.CATEGORY
        assert created.percentage == 25

    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_create_rolls_back_on_error(self, session):
        session.commit.side_effect = RuntimeError("db down")
        repo = SQLAlchemyDiscountRuleRepository(session)

        with pytest.raises(RuntimeError):
            await repo.create(DiscountRule.create(DiscountScope.ALL_PRODUCTS, None, 10))

        session.rollback.assert_awaited_once()

    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_get_by_id_maps_model(self, session, mock_result, sample_rule_model):
        mock_result.scalar_one_or_none.return_value = sample_rule_model
        repo = SQLAlchemyDiscountRuleRepository(session)

        rule = await repo.get_by_id(str(sample_rule_model.id))

        assert rule.id == str(sample_rule_model.id)
        assert rule.target_value == CATEGORY_A
        assert rule.active is True

    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_get_by_id_with_invalid_uuid(self, session):
        repo = SQLAlchemyDiscountRuleRepository(session)

        assert await repo.get_by_id("not-a-uuid") is None
        session.execute.assert_not_awaited()

    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_deactivate_bumps_version(self, session, mock_result, sample_rule_model):
        sample_rule_model.is_active = False
        mock_result.scalars.return_value.first.return_value = sample_rule_model
        repo = SQLAlchemyDiscountRuleRepository(session)

        rule = await repo.deactivate(str(sample_rule_model.id))

        assert rule.active is False
        assert session.execute.await_count == 2
        session.commit.assert_awaited_once()

    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_deactivate_already_inactive(self, session, mock_result):
        mock_result.scalars.return_value.first.return_value = None
        repo = SQLAlchemyDiscountRuleRepository(session)

        assert await repo.deactivate(str(uuid.uuid4())) is None
        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()

    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_list_active(self, session, mock_result, sample_rule_model):
        mock_result.scalars.return_value.all.return_value = [sample_rule_model]
        repo = SQLAlchemyDiscountRuleRepository(session)

        rules = await repo.list_active()

        assert [r.id for r in rules] == [str(sample_rule_model.id)]
        sql = compile_sql(session.execute.await_args.args[0])
        assert "ORDER BY active_discounts.created_at ASC, active_discounts.creation_seq ASC" in sql

    @pytest.mark.repository
    @pytest.mark.asyncio
    @pytest.mark.parametrize("stored,expected", [(4, 4), (None, 0)])
    async def test_get_rule_set_version(self, session, mock_result, stored, expected):
        mock_result.scalar_one_or_none.return_value = stored
        repo = SQLAlchemyDiscountRuleRepository(session)

        assert await repo.get_rule_set_version() == expected


# ============================================================================
# PRODUCT CATALOG
# ============================================================================


class TestSQLAlchemyProductCatalog:
    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_bulk_update_chunks_in_one_transaction(self, session, mock_result):
        # Arrange
        mock_result.rowcount = 2
        catalog = SQLAlchemyProductCatalog(session, chunk_size=2)
        ids = [str(uuid.uuid4()) for _ in range(5)]

        # Act
        total = await catalog.bulk_update_discount(ids, 30)

        # Assert
        assert session.execute.await_count == 3
        session.commit.assert_awaited_once()
        assert total == 6

    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_bulk_update_rolls_back_everything_on_error(self, session):
        session.execute.side_effect = [MagicMock(rowcount=2), RuntimeError("deadlock")]
        catalog = SQLAlchemyProductCatalog(session, chunk_size=2)

        with pytest.raises(RuntimeError):
            await catalog.bulk_update_discount([str(uuid.uuid4()) for _ in range(4)], 30)

        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()

    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_bulk_update_skips_invalid_ids(self, session):
        catalog = SQLAlchemyProductCatalog(session)

        assert await catalog.bulk_update_discount(["nope", ""], 30) == 0
        session.execute.assert_not_awaited()

    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_bulk_update_keeps_updated_at(self, session, mock_result):
        mock_result.rowcount = 1
        catalog = SQLAlchemyProductCatalog(session)

        await catalog.bulk_update_discount([str(uuid.uuid4())], 30)

        sql = compile_sql(session.execute.await_args.args[0])
        assert "updated_at=products.updated_at" in sql

    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_reset_only_touches_active_discounted_products(self, session, mock_result):
        mock_result.rowcount = 7
        catalog = SQLAlchemyProductCatalog(session)

        assert await catalog.reset_discounts() == 7

        sql = compile_sql(session.execute.await_args.args[0])
        assert "products.is_active IS true" in sql
        assert "products.discount_percentage !=" in sql
        session.commit.assert_awaited_once()

    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_read_maps_snapshots(self, session, mock_result, sample_product_model):
        mock_result.scalars.return_value.all.return_value = [sample_product_model]
        catalog = SQLAlchemyProductCatalog(session)

        products = await catalog.read(ProductFilter(limit=10))

        product = products[0]
        assert product.id == str(sample_product_model.id)
        assert product.price == Decimal("129.9")
        assert product.stock_quantity == 0
        assert product.categories == (CATEGORY_A,)
        assert product.subcategories == ()
        assert product.final_price == Decimal("103.92")

    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_read_ids(self, session, mock_result):
        product_id = uuid.uuid4()
        mock_result.scalars.return_value.all.return_value = [product_id]
        catalog = SQLAlchemyProductCatalog(session)

        assert await catalog.read_ids(ProductFilter(category=CATEGORY_A)) == [str(product_id)]

    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_category_exists(self, session, mock_result):
        mock_result.scalar.return_value = True
        catalog = SQLAlchemyProductCatalog(session)

        assert await catalog.category_exists(CATEGORY_A) is True
        assert await catalog.subcategory_exists("not-a-uuid") is False
        session.execute.assert_awaited_once()

    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_list_discounted_orders_by_discount(self, session, mock_result, sample_product_model):
        mock_result.scalars.return_value.all.return_value = [sample_product_model]
        catalog = SQLAlchemyProductCatalog(session)

        products = await catalog.list_discounted(5)

        assert len(products) == 1
        sql = compile_sql(session.execute.await_args.args[0])
        assert "ORDER BY products.discount_percentage DESC, products.created_at DESC" in sql

    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_failed_read_rolls_back(self, session):
        session.execute.side_effect = RuntimeError("statement timeout")
        catalog = SQLAlchemyProductCatalog(session)

        with pytest.raises(RuntimeError):
            await catalog.read_ids(ProductFilter())
        with pytest.raises(RuntimeError):
            await catalog.read(ProductFilter())

        assert session.rollback.await_count == 2


class AbortingSession:
    """
    Session that behaves like a PostgreSQL connection after an error:
    every statement fails until the transaction is rolled back.
    """

    def __init__(self, result, fail_on_call: int):
        self.result = result
        self.fail_on_call = fail_on_call
        self.calls = 0
        self.aborted = False

    async def execute(self, stmt):
        if self.aborted:
            raise RuntimeError("current transaction is aborted, commands ignored until end of transaction block")
        self.calls += 1
        if self.calls == self.fail_on_call:
            self.aborted = True
            raise RuntimeError("statement timeout")
        return self.result

    async def commit(self):
        if self.aborted:
            raise RuntimeError("current transaction is aborted")

    async def rollback(self):
        self.aborted = False


class TestCatalogFailureIsolation:
    """One rule's failed read must not fail the rules replayed after it."""

    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_recompute_reports_only_the_failing_rule(self, rule_store, notifier, change_log):
        # Arrange
        result = MagicMock(rowcount=2)
        result.scalars.return_value.all.return_value = [uuid.uuid4(), uuid.uuid4()]
        # Calls: reset, read ids for the first rule (fails), read ids and update for the second
        session = AbortingSession(result, fail_on_call=2)
        engine = DiscountApplicationEngine(
            rule_store, SQLAlchemyProductCatalog(session), notifier, change_log, max_attempts=1
        )
        first = await rule_store.create_rule("all_products", None, 10)
        second = await rule_store.create_rule("all_products", None, 20)

        # Act
        outcome = await engine.recompute_all()

        # Assert
        by_rule = {o.rule_id: o for o in outcome.outcomes}
        assert by_rule[first.id].affected_count == 0
        assert "statement timeout" in by_rule[first.id].error
        assert by_rule[second.id].succeeded
        assert by_rule[second.id].affected_count == 2
        assert outcome.failed_rule_ids == [first.id]


# ============================================================================
# CHANGE LOG REPOSITORY
# ============================================================================


class TestSQLAlchemyChangeLogRepository:
    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_append(self, session, mock_result):
        mock_result.scalar_one_or_none.return_value = None
        repo = SQLAlchemyChangeLogRepository(session)
        timestamp = datetime(2026, 1, 1, tzinfo=UTC)
        entry = ChangeLogEntry(
            action_type="discount_created",
            entity_type="discount_rule",
            entity_id="r1",
            details={"percentage": 10},
            actor_id="admin-1",
            timestamp=timestamp,
            id=str(uuid.uuid4()),
        )

        stored = await repo.append(entry)

        session.add.assert_called_once()
        session.commit.assert_awaited_once()
        assert stored.id == entry.id
        assert stored.timestamp == timestamp
        assert stored.actor_id == "admin-1"

    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_append_locks_before_reading_latest(self, session, mock_result):
        mock_result.scalar_one_or_none.return_value = None
        repo = SQLAlchemyChangeLogRepository(session)

        await repo.append(ChangeLogEntry(action_type="x", entity_type="y", timestamp=datetime(2026, 1, 1, tzinfo=UTC)))

        lock_sql, latest_sql = (compile_sql(call.args[0]) for call in session.execute.await_args_list)
        assert "pg_advisory_xact_lock" in lock_sql
        assert "max(changes_log.created_at)" in latest_sql

    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_append_places_entry_after_newer_stored_row(self, session, mock_result):
        # Another request committed a later entry than this instance knows about
        newest = datetime(2026, 1, 1, 12, 0, 0, 500, tzinfo=UTC)
        mock_result.scalar_one_or_none.return_value = newest
        repo = SQLAlchemyChangeLogRepository(session)

        stored = await repo.append(
            ChangeLogEntry(action_type="x", entity_type="y", timestamp=datetime(2026, 1, 1, 12, 0, tzinfo=UTC))
        )

        assert stored.timestamp == datetime(2026, 1, 1, 12, 0, 0, 501, tzinfo=UTC)

    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_append_failure_propagates(self, session, mock_result):
        mock_result.scalar_one_or_none.return_value = None
        session.commit.side_effect = RuntimeError("disk full")
        repo = SQLAlchemyChangeLogRepository(session)

        with pytest.raises(RuntimeError):
            await repo.append(ChangeLogEntry(action_type="x", entity_type="y"))

        session.rollback.assert_awaited_once()

    @pytest.mark.repository
    @pytest.mark.asyncio
    async def test_list_entries_filters(self, session, mock_result):
        mock_result.scalars.return_value.all.return_value = []
        repo = SQLAlchemyChangeLogRepository(session)

        await repo.list_entries(action_type_contains="discount", entity_type="discount_rule", limit=20)

        sql = compile_sql(session.execute.await_args.args[0])
        assert "LIKE" in sql
        assert "changes_log.entity_type =" in sql
        assert "ORDER BY changes_log.created_at DESC" in sql
        assert "LIMIT" in sql


# ============================================================================
# FILTER SQL
# ============================================================================


class TestProductFilterSql:
    @pytest.mark.unit
    def test_parse_uuids_skips_invalid(self):
        valid = uuid.uuid4()

        assert parse_uuids([str(valid), "bad", None, valid]) == [valid, valid]

    @pytest.mark.unit
    def test_rule_filter_clauses(self):
        rule = DiscountRule.create(DiscountScope.CATEGORY, CATEGORY_A, 10)

        clauses = build_filter_clauses(ProductFilter.for_rule(rule))

        sql = " AND ".join(compile_sql(c) for c in clauses)
        assert "products.is_active IS true" in sql
        assert "= ANY (products.categories)" in sql

    @pytest.mark.unit
    def test_empty_candidate_set_selects_nothing(self):
        clauses = build_filter_clauses(ProductFilter(product_ids=frozenset()))

        assert compile_sql(clauses[-1]) == "false"

    @pytest.mark.unit
    def test_left_to_right_grouping(self, compiler):
        predicate = compiler.compile(
            [
                condition("stock_quantity", "=", "0"),
                condition("price", ">", "1000", "OR"),
                condition("is_active", "=", "true", "AND"),
            ]
        )

        sql = compile_sql(build_predicate_clause(predicate))

        assert sql.startswith("(products.stock_quantity = ")
        assert ") AND products.is_active" in sql

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "operator,value,fragment",
        [
            ("contains_any", "red", "&&"),
            ("overlaps", "red", "&&"),
            ("contains_all", "red,blue", "@>"),
            ("is_superset", "red", "@>"),
            ("is_subset", "red", "<@"),
            ("is_empty", None, "cardinality("),
            ("is_not_empty", None, "cardinality("),
        ],
    )
    def test_collection_operators(self, compiler, operator, value, fragment):
        predicate = compiler.compile([condition("colors", operator, value)])

        sql = compile_sql(build_predicate_clause(predicate))

        assert fragment in sql
        assert "coalesce(products.colors" in sql

    @pytest.mark.unit
    def test_timestamp_fields_compare_as_utc_text(self, compiler):
        predicate = compiler.compile([condition("created_at", "LIKE", "2026-01")])

        sql = compile_sql(build_predicate_clause(predicate))

        assert "to_char(timezone(" in sql
        assert "products.created_at" in sql

    @pytest.mark.unit
    def test_number_between(self, compiler):
        predicate = compiler.compile([condition("price", "BETWEEN", "10,20")])

        compiled = build_predicate_clause(predicate).compile(dialect=postgresql.dialect())

        assert "BETWEEN" in str(compiled)
        assert sorted(compiled.params.values()) == [Decimal("10"), Decimal("20")]
