# This project was developed with assistance from AI tools.
"""Atomic counter operations.

Every counter change is a single UPDATE evaluated by the database, so
concurrent transactions never lose increments. Callers commit.
"""

import logging
from decimal import Decimal

from sqlalchemy import insert, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from zakat_db import Counter, Masjid

from .errors import FailedPreconditionError

logger = logging.getLogger(__name__)

APPLICATIONS_COUNTER = "applications"

_MASJID_STATS = {
    "applications_in_progress": Masjid.applications_in_progress,
    "total_applications_handled": Masjid.total_applications_handled,
    "total_amount_disbursed": Masjid.total_amount_disbursed,
}


async def next_sequence(session: AsyncSession, name: str = APPLICATIONS_COUNTER) -> int:
    """Atomically increment and return the named sequence value.

    The first call for a name creates the row at 1. Two first calls racing
    on an empty table surface as FailedPrecondition for the loser.
    """
    stmt = (
        update(Counter)
        .where(Counter.name == name)
        .values(value=Counter.value + 1)
        .returning(Counter.value)
    )
    value = (await session.execute(stmt)).scalar_one_or_none()
    if value is not None:
        return value

    try:
        await session.execute(insert(Counter).values(name=name, value=1))
    except IntegrityError as exc:
        await session.rollback()
        raise FailedPreconditionError(
            f"Concurrent initialization of counter '{name}', retry the request"
        ) from exc
    return 1


def _stat_column(stat: str):
    try:
        return _MASJID_STATS[stat]
    except KeyError:
        raise ValueError(f"Unknown masjid stat: {stat}") from None


async def increment_masjid_stat(
    session: AsyncSession, masjid_id: int | None, stat: str, amount: int | Decimal = 1,
) -> None:
    """``UPDATE masajid SET stat = stat + amount``. No-op without a masjid."""
    if masjid_id is None:
        return
    column = _stat_column(stat)
    await session.execute(
        update(Masjid).where(Masjid.id == masjid_id).values({column: column + amount})
    )


async def decrement_masjid_stat(session: AsyncSession, masjid_id: int | None, stat: str) -> bool:
    """Clamped decrement: ``stat - 1 WHERE stat > 0``.

    Returns False when the counter was already zero (or the masjid is gone);
    the caller's transaction proceeds either way.
    """
    if masjid_id is None:
        return False
    column = _stat_column(stat)
    result = await session.execute(
        update(Masjid)
        .where(Masjid.id == masjid_id, column > 0)
        .values({column: column - 1})
    )
    if result.rowcount == 0:
        logger.warning("Masjid %s %s already at zero, decrement clamped", masjid_id, stat)
        return False
    return True
