# This project was developed with assistance from AI tools.
"""Application history recorder.

History rows are append-only and written after the core transaction has
committed. A failed write is logged and dropped; it never undoes the
state change it describes.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from zakat_db import ApplicationHistory
from zakat_db.enums import ApplicationStatus, HistoryAction

from ..schemas.auth import UserContext

logger = logging.getLogger(__name__)


async def record_history(
    session: AsyncSession,
    application_id: int,
    user: UserContext,
    action: HistoryAction,
    details: str,
    *,
    previous_status: ApplicationStatus | None = None,
    new_status: ApplicationStatus | None = None,
    previous_assignee: str | None = None,
    new_assignee: str | None = None,
    metadata: dict | None = None,
) -> ApplicationHistory | None:
    """Append and commit one history entry. Returns None if the write failed."""
    entry = ApplicationHistory(
        application_id=application_id,
        action=action,
        performed_by=user.user_id,
        performed_by_name=user.name or user.email,
        performed_by_role=user.role.value,
        performed_by_masjid=user.masjid_id,
        previous_status=previous_status,
        new_status=new_status,
        previous_assignee=previous_assignee,
        new_assignee=new_assignee,
        details=details,
        event_metadata=metadata,
    )
    # Savepoint: a failed insert discards only this row and leaves the
    # already-committed application loaded in the session.
    try:
        async with session.begin_nested():
            session.add(entry)
        await session.commit()
    except SQLAlchemyError:
        logger.exception(
            "Failed to record %s history for application %s", action.value, application_id,
        )
        return None
    return entry


async def list_history(session: AsyncSession, application_id: int) -> list[ApplicationHistory]:
    """History entries for one application, newest first.

    Ties on ``created_at`` fall back to insertion order (id desc).
    """
    stmt = (
        select(ApplicationHistory)
        .where(ApplicationHistory.application_id == application_id)
        .order_by(ApplicationHistory.created_at.desc(), ApplicationHistory.id.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
