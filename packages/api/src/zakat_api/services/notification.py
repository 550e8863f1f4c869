# This project was developed with assistance from AI tools.
"""Notification queue writer.

Only enqueues rows; email or push delivery reads the table elsewhere.
Enqueue failures are logged and swallowed.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from zakat_db import Notification
from zakat_db.enums import NotificationType

logger = logging.getLogger(__name__)


async def enqueue_notification(
    session: AsyncSession,
    user_id: str | None,
    notification_type: NotificationType,
    title: str,
    message: str,
    *,
    application_id: int | None = None,
    extra: dict | None = None,
) -> Notification | None:
    if not user_id:
        return None
    notification = Notification(
        user_id=user_id,
        type=notification_type.value,
        title=title,
        message=message,
        application_id=application_id,
        extra=extra,
    )
    try:
        async with session.begin_nested():
            session.add(notification)
        await session.commit()
    except SQLAlchemyError:
        logger.exception(
            "Failed to enqueue %s notification for user %s", notification_type.value, user_id,
        )
        return None
    return notification
