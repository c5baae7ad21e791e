"""
Shared pytest fixtures for all tests.

Provides mocked database sessions, in-memory port implementations and the
discount services wired together over them.
"""

import os
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.domains.discounts.application.services import (
    ChangeLogService,
    DiscountApplicationEngine,
    DiscountRuleStore,
)
from storefront.domains.discounts.domain.services import PredicateCompiler
from storefront.domains.discounts.infrastructure.notifications import InMemoryChangeNotifier
from tests.utils import (
    CATEGORY_A,
    CATEGORY_B,
    SUBCATEGORY_X,
    InMemoryChangeLogRepository,
    InMemoryDiscountRuleRepository,
    InMemoryProductCatalog,
    ProductBuilder,
)

# Ensure test environment
os.environ["ENVIRONMENT"] = "test"


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture
def mock_async_session():
    """Create a mock async database session."""
    session = AsyncMock(spec=AsyncSession)
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.refresh = AsyncMock()
    session.flush = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def mock_redis() -> Mock:
    """Create a mock Redis client."""
    mock = Mock(spec=Redis)
    mock.publish = AsyncMock(return_value=1)
    mock.aclose = AsyncMock()
    return mock


# ============================================================================
# CATALOG FIXTURES
# ============================================================================


@pytest.fixture
def p1():
    """In category A only."""
    return ProductBuilder().with_name("P1").in_categories(CATEGORY_A).created_minutes_after_base(1).build()


@pytest.fixture
def p2():
    """In categories A and B."""
    return ProductBuilder().with_name("P2").in_categories(CATEGORY_A, CATEGORY_B).created_minutes_after_base(2).build()


@pytest.fixture
def p3():
    """In category B only, subcategory X."""
    return (
        ProductBuilder()
        .with_name("P3")
        .in_categories(CATEGORY_B)
        .in_subcategories(SUBCATEGORY_X)
        .created_minutes_after_base(3)
        .build()
    )


@pytest.fixture
def catalog(p1, p2, p3) -> InMemoryProductCatalog:
    return InMemoryProductCatalog(
        products=[p1, p2, p3],
        categories={CATEGORY_A, CATEGORY_B},
        subcategories={SUBCATEGORY_X},
    )


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest.fixture
def rule_repository() -> InMemoryDiscountRuleRepository:
    return InMemoryDiscountRuleRepository()


@pytest.fixture
def change_log_repository() -> InMemoryChangeLogRepository:
    return InMemoryChangeLogRepository()


@pytest.fixture
def notifier() -> InMemoryChangeNotifier:
    return InMemoryChangeNotifier(max_queue_size=100)


@pytest.fixture
def change_log(change_log_repository) -> ChangeLogService:
    return ChangeLogService(change_log_repository, read_limit=50)


@pytest.fixture
def rule_store(rule_repository, catalog) -> DiscountRuleStore:
    return DiscountRuleStore(rule_repository, catalog)


@pytest.fixture
def engine(rule_store, catalog, notifier, change_log) -> DiscountApplicationEngine:
    return DiscountApplicationEngine(rule_store, catalog, notifier, change_log, max_attempts=3)


@pytest.fixture
def compiler() -> PredicateCompiler:
    return PredicateCompiler()
