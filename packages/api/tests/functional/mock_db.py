# This project was developed with assistance from AI tools.
"""Mock database utilities for functional tests.

Provides an AsyncMock session that handles the result patterns used by
the service layer:
  1. ``session.get()`` -- lookups by primary key
  2. ``.scalar_one_or_none()`` -- locked re-reads (``SELECT ... FOR UPDATE``)
  3. ``.scalar()`` -- count queries
  4. ``.scalars().all()`` -- list queries
"""

from unittest.mock import AsyncMock, MagicMock

from zakat_db import get_db

from zakat_api.middleware.auth import get_current_user
from zakat_api.schemas.auth import UserContext


def make_mock_session(
    items: list | None = None,
    single: object | None = None,
    count: int | None = None,
) -> AsyncMock:
    """Build an AsyncMock session that returns predictable query results.

    Args:
        items: List of ORM objects for ``.scalars().all()``.
        single: Single ORM object for ``session.get()`` and
            ``.scalar_one_or_none()``.
        count: Integer for ``.scalar()`` (count queries).

    When only ``items`` is provided, count and single are inferred:
    - count = len(items)
    - single = items[0] if items else None
    """
    if items is not None and count is None:
        count = len(items)
    if items is not None and single is None:
        single = items[0] if items else None

    session = AsyncMock()

    mock_result = MagicMock()
    mock_result.scalar.return_value = count or 0
    mock_result.scalars.return_value.all.return_value = items or []
    mock_result.scalar_one_or_none.return_value = single

    session.execute = AsyncMock(return_value=mock_result)
    session.get = AsyncMock(return_value=single)
    # session.add() is synchronous in SQLAlchemy -- use MagicMock to avoid
    # RuntimeWarning about unawaited coroutines from AsyncMock.
    session.add = MagicMock()
    return session


def configure_app_for_persona(app, user: UserContext, session: AsyncMock) -> None:
    """Override get_current_user and get_db on the real app."""

    async def fake_user():
        return user

    async def fake_db():
        yield session

    app.dependency_overrides[get_current_user] = fake_user
    app.dependency_overrides[get_db] = fake_db
