# This project was developed with assistance from AI tools.
"""Staff notes on applications. Internal notes are never shown to applicants."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from zakat_db import ApplicationNote
from zakat_db.enums import HistoryAction, NotificationType

from ..schemas.auth import UserContext
from .application import ensure_can_manage, ensure_can_view, load_application
from .errors import InvalidArgumentError, PermissionDeniedError
from .history import record_history
from .notification import enqueue_notification

logger = logging.getLogger(__name__)

MAX_NOTE_LENGTH = 5000


async def add_note(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    content: str,
    *,
    is_internal: bool = True,
) -> ApplicationNote:
    if not user.is_staff:
        raise PermissionDeniedError("Only admins can perform this action")
    if not (content or "").strip():
        raise InvalidArgumentError("Note content is required")
    if len(content) > MAX_NOTE_LENGTH:
        raise InvalidArgumentError(f"Note content cannot exceed {MAX_NOTE_LENGTH} characters")

    app = await load_application(session, application_id)
    ensure_can_manage(user, app)

    note = ApplicationNote(
        application_id=app.id,
        content=content,
        is_internal=is_internal,
        created_by=user.user_id,
        created_by_name=user.name or user.email,
        created_by_masjid=user.masjid_id,
    )
    session.add(note)
    await session.commit()

    await record_history(
        session, app.id, user, HistoryAction.NOTE_ADDED,
        "Internal note added" if is_internal else "Note added (visible to applicant)",
        metadata={"note_id": note.id, "is_internal": is_internal},
    )
    if not is_internal:
        await enqueue_notification(
            session, app.applicant_id, NotificationType.STATUS_UPDATE,
            "New Message",
            f"A note has been added to your application {app.application_number}.",
            application_id=app.id,
        )
    return note


async def list_notes(
    session: AsyncSession, user: UserContext, application_id: int,
) -> list[ApplicationNote]:
    """Notes newest first; applicants only get the external ones."""
    app = await load_application(session, application_id)
    ensure_can_view(user, app)

    stmt = select(ApplicationNote).where(ApplicationNote.application_id == app.id)
    if not user.is_staff:
        stmt = stmt.where(ApplicationNote.is_internal.is_(False))
    stmt = stmt.order_by(ApplicationNote.created_at.desc(), ApplicationNote.id.desc())
    return list((await session.execute(stmt)).scalars().all())
