# This project was developed with assistance from AI tools.
"""Audit event service.

Writes append-only audit trail entries to the ``audit_events`` sink.
UPDATE and DELETE are blocked by database triggers (see migrations).
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from zakat_db import AuditEvent

from ..schemas.auth import UserContext

logger = logging.getLogger(__name__)


async def write_audit_event(
    session: AsyncSession,
    *,
    event_type: str,
    user: UserContext | None = None,
    target_collection: str | None = None,
    target_id: str | int | None = None,
    event_data: dict | None = None,
) -> AuditEvent | None:
    """Write and commit a single audit event.

    Called after the operation being audited has committed, so a failure
    here is logged and swallowed.

    Args:
        session: Database session.
        event_type: Event category (e.g. 'flag_created', 'flag_resolved').
        user: User who triggered the event.
        target_collection: Kind of record affected (e.g. 'flags').
        target_id: Identifier of the affected record.
        event_data: Arbitrary JSON-serializable event payload.

    Returns:
        The created AuditEvent row, or None if the write failed.
    """
    audit = AuditEvent(
        event_type=event_type,
        user_id=user.user_id if user else None,
        user_role=user.role.value if user else None,
        target_collection=target_collection,
        target_id=str(target_id) if target_id is not None else None,
        event_data=event_data,
    )
    try:
        async with session.begin_nested():
            session.add(audit)
        await session.commit()
    except SQLAlchemyError:
        logger.exception("Failed to write %s audit event", event_type)
        return None
    return audit


async def get_events_for_target(
    session: AsyncSession, target_collection: str, target_id: str | int,
) -> list[AuditEvent]:
    """Return audit events for one record, oldest first."""
    stmt = (
        select(AuditEvent)
        .where(
            AuditEvent.target_collection == target_collection,
            AuditEvent.target_id == str(target_id),
        )
        .order_by(AuditEvent.timestamp.asc(), AuditEvent.id.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
