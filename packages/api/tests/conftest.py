# This project was developed with assistance from AI tools.
"""Shared fixtures: an in-memory SQLite database seeded with the test network.

Each test gets a fresh engine, so counters and sequences start from a
known state. ``FOR UPDATE`` is a no-op on SQLite; the tests exercise the
precondition checks that run against the re-read row. Contention under
real row locks is covered by ``integration/test_concurrency.py`` on
PostgreSQL.
"""

import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from zakat_db import Base

from tests.factories import seed_network


@pytest_asyncio.fixture
async def db_engine():
    """Fresh in-memory database with every table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # pysqlite defers BEGIN on its own; let SQLAlchemy emit it so that
    # SAVEPOINT / ROLLBACK TO behave like they do on PostgreSQL.
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as seed:
        await seed_network(seed)
    return factory


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session
