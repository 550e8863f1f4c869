# This project was developed with assistance from AI tools.
"""Integration test fixtures.

Two backends:

* ``client_factory`` drives the real routes over the seeded in-memory
  SQLite database from ``tests/conftest.py``. Every request shares the
  ``db_session``, so tests can assert on rows written through the API.
* ``pg_session_factory`` hands out independent sessions on a real
  PostgreSQL (session-scoped testcontainer, migrated with alembic), so
  concurrent callers contend on actual ``FOR UPDATE`` row locks.
"""

import os

import httpx
import pytest
import pytest_asyncio
from alembic import command
from alembic.config import Config
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from testcontainers.postgres import PostgresContainer
from zakat_db import Base, get_db

from tests.factories import seed_network
from zakat_api.main import app
from zakat_api.middleware.auth import get_current_user

# ---------------------------------------------------------------------------
# Mark all tests in this directory as integration
# ---------------------------------------------------------------------------
pytestmark = pytest.mark.integration

_DB_PACKAGE = os.path.join(os.path.dirname(__file__), "..", "..", "..", "db")


@pytest.fixture
def client_factory(db_session):
    """Factory returning an async httpx client acting as ``user``."""

    def _make(user):
        async def _get_db():
            yield db_session

        async def _get_current_user():
            return user

        app.dependency_overrides[get_db] = _get_db
        app.dependency_overrides[get_current_user] = _get_current_user
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
        return httpx.AsyncClient(transport=transport, base_url="http://test")

    yield _make

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Session-scoped: PostgreSQL container + migrations + engine
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def pg_container():
    """Start postgres:16 via testcontainers; skip when Docker is unavailable."""
    container = PostgresContainer(
        image="postgres:16-alpine",
        username="test",
        password="test",
        dbname="test",
    )
    try:
        container.start()
    except Exception as exc:
        pytest.skip(f"PostgreSQL container unavailable: {exc}")
    yield container
    container.stop()


@pytest.fixture(scope="session")
def pg_url(pg_container):
    """Async DB URL for asyncpg."""
    host = pg_container.get_container_host_ip()
    port = pg_container.get_exposed_port(5432)
    return f"postgresql+asyncpg://test:test@{host}:{port}/test"


@pytest.fixture(scope="session")
def _pg_migrated(pg_url):
    """Run alembic upgrade head against the container.

    The Config is built without an ini file so alembic's fileConfig does
    not reset the test run's logging configuration.
    """
    os.environ["DATABASE_URL"] = pg_url
    alembic_cfg = Config()
    alembic_cfg.set_main_option("script_location", os.path.join(_DB_PACKAGE, "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", pg_url.replace("+asyncpg", "+psycopg"))
    command.upgrade(alembic_cfg, "head")


@pytest.fixture(scope="session")
def pg_engine(pg_url, _pg_migrated):
    """Async engine on the container; NullPool so each session gets its own connection."""
    return create_async_engine(pg_url, echo=False, poolclass=NullPool)


# ---------------------------------------------------------------------------
# Function-scoped: clean seeded database per test
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def pg_session_factory(pg_engine):
    """Truncate every table, seed the test network, return a session factory.

    Concurrency tests need real commits from independent sessions, so
    isolation comes from TRUNCATE rather than a rolled-back outer
    transaction.
    """
    tables = ", ".join(table.name for table in Base.metadata.sorted_tables)
    async with pg_engine.begin() as conn:
        await conn.execute(text(f"TRUNCATE {tables} RESTART IDENTITY CASCADE"))

    factory = async_sessionmaker(pg_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as seed:
        await seed_network(seed)
    yield factory
    await pg_engine.dispose()
