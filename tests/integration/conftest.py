"""Session-scoped fixtures for integration tests."""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable, Generator
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.sql.elements import ColumnElement

from tests.conftest import PostgresTestBase

Evaluate = Callable[[ColumnElement[Any]], Awaitable[Any]]


@pytest.fixture(scope="session")
def test_db_url() -> Generator[str, None, None]:
    """Async connection URL; reuses ``DATABASE_URL`` or starts a PostgreSQL 17 container."""
    url = os.getenv("DATABASE_URL")
    if url:
        yield url
        return
    pytest.importorskip("testcontainers")
    container = PostgresTestBase.create_container()
    container.start()
    try:
        PostgresTestBase.wait_for_postgres(container)
        yield PostgresTestBase.connection_url(container)
    finally:
        container.stop()


@pytest_asyncio.fixture
async def database(test_db_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Per-test engine so each event loop gets its own connection pool."""
    engine = create_async_engine(test_db_url)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def evaluate(database: AsyncEngine) -> Evaluate:
    """Evaluate a fragment with ``SELECT <fragment> AS result`` and return the decoded value."""

    async def _evaluate(expr: ColumnElement[Any]) -> Any:
        async with database.connect() as conn:
            result = await conn.execute(select(expr.label("result")))
            return result.scalar_one()

    return _evaluate
