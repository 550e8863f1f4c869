# This project was developed with assistance from AI tools.
"""Applicant flag service.

An applicant is flagged while at least one active Flag exists. The
profile marker and ``applicant_is_flagged`` on every one of the
applicant's applications change together in one commit, so the network
never sees a partially flagged applicant. The profile row is locked
first, which serializes concurrent flag / unflag calls per applicant.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from zakat_db import Application, Flag, UserProfile, utcnow
from zakat_db.enums import FlagSeverity, HistoryAction

from ..schemas.auth import UserContext
from .audit import write_audit_event
from .errors import (
    FailedPreconditionError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
)
from .history import record_history

logger = logging.getLogger(__name__)


def _ensure_staff(user: UserContext) -> None:
    if not user.is_staff:
        raise PermissionDeniedError("Only admins can perform this action")


async def _lock_profile(session: AsyncSession, applicant_id: str) -> UserProfile:
    stmt = (
        select(UserProfile)
        .where(UserProfile.user_id == applicant_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    profile = (await session.execute(stmt)).scalar_one_or_none()
    if profile is None:
        raise NotFoundError("Applicant not found")
    return profile


async def _set_applications_flagged(
    session: AsyncSession, applicant_id: str, flagged: bool,
) -> int:
    """Set the snapshot flag on every application of the applicant. No commit."""
    stmt = select(Application).where(Application.applicant_id == applicant_id)
    apps = (await session.execute(stmt)).scalars().all()
    for app in apps:
        app.applicant_is_flagged = flagged
    return len(apps)


async def create_flag(
    session: AsyncSession,
    user: UserContext,
    *,
    applicant_id: str,
    reason: str,
    severity: FlagSeverity,
    application_id: int | None = None,
) -> Flag:
    """Flag an applicant and mark every one of their applications."""
    _ensure_staff(user)
    if not applicant_id or not (reason or "").strip() or severity is None:
        raise InvalidArgumentError("Applicant ID, reason, and severity are required")

    profile = await _lock_profile(session, applicant_id)

    application = None
    if application_id is not None:
        application = await session.get(Application, application_id)
        if application is None:
            raise NotFoundError("Application not found")
        if application.applicant_id != applicant_id:
            raise InvalidArgumentError("Application does not belong to this applicant")

    flag = Flag(
        applicant_id=applicant_id,
        applicant_name=f"{profile.first_name or ''} {profile.last_name or ''}".strip(),
        applicant_email=profile.email,
        reason=reason,
        severity=severity,
        application_id=application.id if application else None,
        application_number=application.application_number if application else None,
        flagged_by=user.user_id,
        flagged_by_name=user.name or user.email,
        flagged_by_masjid=user.masjid_id,
        is_active=True,
    )
    session.add(flag)

    profile.is_flagged = True
    profile.flagged_reason = reason
    profile.flagged_at = utcnow()
    profile.flagged_by = user.user_id
    profile.flagged_by_masjid = user.masjid_id

    updated = await _set_applications_flagged(session, applicant_id, True)
    await session.commit()
    logger.info(
        "Applicant %s flagged (%s) by %s; %d applications marked",
        applicant_id, severity.value, user.user_id, updated,
    )

    if application is not None:
        await record_history(
            session, application.id, user, HistoryAction.FLAGGED,
            f"Applicant flagged: {reason} ({severity.value})",
            metadata={"flag_id": flag.id, "severity": severity.value},
        )
    await write_audit_event(
        session,
        event_type="flag_created",
        user=user,
        target_collection="flags",
        target_id=flag.id,
        event_data={
            "applicant_id": applicant_id,
            "reason": reason,
            "severity": severity.value,
            "application_id": flag.application_id,
            "applications_updated": updated,
        },
    )
    return flag


async def resolve_flag(
    session: AsyncSession, user: UserContext, flag_id: int, resolution_notes: str,
) -> Flag:
    """Deactivate a flag; unflag the applicant only when no active flag remains."""
    _ensure_staff(user)
    if not (resolution_notes or "").strip():
        raise InvalidArgumentError("Resolution notes are required")

    flag = await session.get(Flag, flag_id)
    if flag is None:
        raise NotFoundError("Flag not found")
    if not user.is_super_admin and flag.flagged_by != user.user_id:
        raise PermissionDeniedError("Only super admins or the flag creator can unflag")

    profile = await _lock_profile(session, flag.applicant_id)
    await session.refresh(flag)
    if not flag.is_active:
        raise FailedPreconditionError("Flag is already resolved")

    flag.is_active = False
    flag.resolved_at = utcnow()
    flag.resolved_by = user.user_id
    flag.resolution_notes = resolution_notes
    await session.flush()

    remaining = (
        await session.execute(
            select(func.count(Flag.id)).where(
                Flag.applicant_id == flag.applicant_id, Flag.is_active.is_(True),
            )
        )
    ).scalar() or 0

    updated = 0
    if remaining == 0:
        profile.is_flagged = False
        profile.flagged_reason = None
        profile.flagged_at = None
        profile.flagged_by = None
        profile.flagged_by_masjid = None
        updated = await _set_applications_flagged(session, flag.applicant_id, False)
    await session.commit()
    logger.info(
        "Flag %s resolved by %s; %d active flags remain for %s",
        flag.id, user.user_id, remaining, flag.applicant_id,
    )

    await write_audit_event(
        session,
        event_type="flag_resolved",
        user=user,
        target_collection="flags",
        target_id=flag.id,
        event_data={
            "previous": {"is_active": True},
            "new": {"is_active": False, "resolution_notes": resolution_notes},
            "applicant_unflagged": remaining == 0,
            "applications_updated": updated,
        },
    )
    return flag


async def list_flags(
    session: AsyncSession,
    user: UserContext,
    *,
    applicant_id: str | None = None,
    active_only: bool = True,
) -> list[Flag]:
    _ensure_staff(user)
    stmt = select(Flag)
    if applicant_id:
        stmt = stmt.where(Flag.applicant_id == applicant_id)
    if active_only:
        stmt = stmt.where(Flag.is_active.is_(True))
    stmt = stmt.order_by(Flag.created_at.desc(), Flag.id.desc())
    return list((await session.execute(stmt)).scalars().all())
