"""
Pytest configuration and shared fixtures.

Provides:
- SQLite in-memory database sessions for the SQL repository tests
- A FastAPI TestClient wired to the in-memory harness with a fixed clock
- Circuit breaker reset between tests
"""

from typing import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from bakery.api.dependencies import build_use_cases, get_use_cases
from bakery.config import get_settings
from bakery.infrastructure.circuit_breaker import notification_breaker, stripe_breaker
from bakery.infrastructure.db.tables import metadata
from bakery.main import app
from tests.builders import Harness, build_harness

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Plain session; commits are driven by the transaction manager under test."""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


# ============================================================================
# HTTP CLIENT FIXTURES
# ============================================================================


@pytest.fixture
def harness() -> Harness:
    return build_harness()


@pytest.fixture
def client(harness: Harness) -> Generator[TestClient, None, None]:
    """TestClient whose use cases share the harness repositories and clock."""
    bundle = {
        "reservation_repo": harness.reservation_repo,
        "quote_request_repo": harness.quote_request_repo,
        "calendar_repo": harness.calendar_repo,
        "pending_checkout_repo": harness.pending_checkout_repo,
        "payment_gateway": harness.gateway,
        "email_sender": harness.email_sender,
        "realtime_publisher": harness.realtime_publisher,
        "tx_manager": harness.tx_manager,
        "clock": harness.clock,
    }

    def override_get_use_cases():
        return build_use_cases(get_settings(), bundle)

    app.dependency_overrides[get_use_cases] = override_get_use_cases

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ============================================================================
# HOOKS
# ============================================================================


@pytest.fixture(autouse=True)
def reset_circuit_breakers():
    """Breakers are module level; a test that trips one must not leak into the next."""
    stripe_breaker.close()
    notification_breaker.close()

    yield

    stripe_breaker.close()
    notification_breaker.close()
