"""Shared fixtures and helpers for tests."""

import json
import logging
import warnings
from pathlib import Path
from typing import TYPE_CHECKING, Any, NotRequired, TypedDict

import pytest
from pydantic import BaseModel, Field
from sqlalchemy import Column, Integer, MetaData, Table, literal_column
from sqlalchemy.dialects import postgresql
from sqlalchemy.sql.elements import ClauseElement

from jsonb_paths import JSONDocument, typed
from jsonb_paths.sql.elements import Shaped

if TYPE_CHECKING:
    from testcontainers.core.container import DockerContainer

logger = logging.getLogger(__name__)

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Shared document shapes and table
# ---------------------------------------------------------------------------


class Profile(TypedDict):
    avatar: str
    theme: NotRequired[str]


class Address(TypedDict):
    city: str
    zip: NotRequired[str | None]


class UserData(TypedDict):
    name: str
    age: NotRequired[int]
    tags: list[str]
    address: Address
    profile: NotRequired[Profile | None]


class Settings(BaseModel):
    theme: str = "light"
    notifications: dict[str, bool] = Field(default_factory=dict)


metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("data", JSONDocument(UserData), nullable=False),
    Column("settings", JSONDocument(Settings)),
)


# ---------------------------------------------------------------------------
# SQL helpers
# ---------------------------------------------------------------------------


def render(expr: ClauseElement) -> str:
    """Compile ``expr`` for PostgreSQL with bound values inlined."""
    return str(expr.compile(dialect=postgresql.dialect(), compile_kwargs={"literal_binds": True}))


def params(expr: ClauseElement) -> list[Any]:
    """Bound parameter values of ``expr`` in rendering order."""
    return list(expr.compile(dialect=postgresql.dialect()).params.values())


def jsonb(document: Any, shape: Any = Any, nullable: bool | None = None) -> Shaped:
    """A ``'<document>'::jsonb`` literal tagged with ``shape``."""
    text = "null" if document is None else json.dumps(document).replace("'", "''")
    return typed(literal_column(f"'{text}'::jsonb"), shape, nullable=nullable)


# ---------------------------------------------------------------------------
# PostgresTestBase: helpers for integration tests that need a PostgreSQL container
# ---------------------------------------------------------------------------


class PostgresTestBase:
    image = "postgres:17-alpine"

    @staticmethod
    def create_container() -> "DockerContainer":
        from testcontainers.core.container import DockerContainer

        return (
            DockerContainer(PostgresTestBase.image)
            .with_exposed_ports(5432)
            .with_env("POSTGRES_PASSWORD", "postgres")
        )

    @staticmethod
    def wait_for_postgres(container: "DockerContainer") -> None:
        from testcontainers.core.waiting_utils import wait_for_logs

        # the server restarts once after initdb, so wait for the second ready line
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", DeprecationWarning)
            wait_for_logs(
                container,
                lambda logs: logs.count("database system is ready to accept connections") >= 2,
                timeout=60,
            )

    @staticmethod
    def connection_url(container: "DockerContainer") -> str:
        host = container.get_container_host_ip()
        port = container.get_exposed_port(5432)
        logger.info("PostgreSQL test container listening on %s:%s", host, port)
        return f"postgresql+asyncpg://postgres:postgres@{host}:{port}/postgres"
