# This project was developed with assistance from AI tools.
"""Application repository with role-based visibility.

Applicants see only their own applications, zakat admins see the shared
pool plus whatever is assigned to them or their masjid, and super admins
see everything. Writes that change ownership or status live in
``assignment.py`` and ``resolution.py``.
"""

import logging

from sqlalchemy import false, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from zakat_db import Application, ApplicationHistory, UserProfile
from zakat_db.enums import ApplicationStatus, HistoryAction, UserRole

from ..core.config import settings
from ..schemas.auth import UserContext
from .errors import FailedPreconditionError, NotFoundError, PermissionDeniedError
from .history import list_history, record_history

logger = logging.getLogger(__name__)

# Fields an applicant may set while the application is still a draft
DRAFT_FIELDS = ("request_type", "amount_requested", "description", "form_data")


# ---------------------------------------------------------------------------
# Permission predicates
# ---------------------------------------------------------------------------


def is_pool_application(app: Application) -> bool:
    return app.status == ApplicationStatus.SUBMITTED and app.assigned_to is None


def is_same_masjid(user: UserContext, app: Application) -> bool:
    return user.masjid_id is not None and app.assigned_to_masjid == user.masjid_id


def can_view(user: UserContext, app: Application) -> bool:
    """Owner, super admin, or a zakat admin with a claim on (or access to) the case."""
    if app.applicant_id == user.user_id or user.is_super_admin:
        return True
    if user.role != UserRole.ZAKAT_ADMIN:
        return False
    return app.assigned_to == user.user_id or is_same_masjid(user, app) or is_pool_application(app)


def can_manage(user: UserContext, app: Application) -> bool:
    """Staff allowed to change status, resolve, disburse, or annotate."""
    if user.is_super_admin:
        return True
    if user.role != UserRole.ZAKAT_ADMIN:
        return False
    return app.assigned_to == user.user_id or is_same_masjid(user, app)


def ensure_can_view(user: UserContext, app: Application) -> None:
    if not can_view(user, app):
        logger.warning(
            "Visibility denied: user=%s role=%s application=%s",
            user.user_id, user.role.value, app.id,
        )
        raise PermissionDeniedError("You do not have access to this application")


def ensure_can_manage(user: UserContext, app: Application) -> None:
    if not can_manage(user, app):
        logger.warning(
            "Management denied: user=%s role=%s application=%s",
            user.user_id, user.role.value, app.id,
        )
        raise PermissionDeniedError("You do not have permission to modify this application")


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def load_application(session: AsyncSession, application_id: int) -> Application:
    """Fetch by id without permission checks. Raises NotFoundError."""
    app = await session.get(Application, application_id)
    if app is None:
        raise NotFoundError("Application not found")
    return app


async def lock_application(session: AsyncSession, application_id: int) -> Application:
    """Re-read the application under ``SELECT ... FOR UPDATE``.

    ``populate_existing`` replaces any stale copy in the identity map, so
    preconditions are always checked against the locked row.
    """
    stmt = (
        select(Application)
        .where(Application.id == application_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    app = (await session.execute(stmt)).scalar_one_or_none()
    if app is None:
        raise NotFoundError("Application not found")
    return app


async def get_application(
    session: AsyncSession, user: UserContext, application_id: int,
) -> Application:
    """Return one application the user may see.

    Raises NotFoundError for unknown ids and PermissionDeniedError for
    applications outside the caller's visibility.
    """
    app = await load_application(session, application_id)
    ensure_can_view(user, app)
    return app


def _apply_list_filters(
    stmt,
    user: UserContext,
    *,
    status: ApplicationStatus | None,
    pool_only: bool,
    applicant_id: str | None,
    assigned_to: str | None,
    masjid_id: int | None,
):
    if user.role == UserRole.APPLICANT:
        stmt = stmt.where(Application.applicant_id == user.user_id)
    elif pool_only:
        return stmt.where(
            Application.status == ApplicationStatus.SUBMITTED,
            Application.assigned_to.is_(None),
        )
    elif user.role == UserRole.ZAKAT_ADMIN:
        if assigned_to:
            stmt = stmt.where(Application.assigned_to == assigned_to)
        elif masjid_id is not None:
            stmt = stmt.where(Application.assigned_to_masjid == masjid_id)
        elif user.masjid_id is not None:
            stmt = stmt.where(Application.assigned_to_masjid == user.masjid_id)
        else:
            return stmt.where(false())
    elif user.role == UserRole.SUPER_ADMIN:
        if applicant_id:
            stmt = stmt.where(Application.applicant_id == applicant_id)
        elif assigned_to:
            stmt = stmt.where(Application.assigned_to == assigned_to)
        elif masjid_id is not None:
            stmt = stmt.where(Application.assigned_to_masjid == masjid_id)
    else:
        return stmt.where(false())

    if status is not None:
        stmt = stmt.where(Application.status == status)
    return stmt


async def list_applications(
    session: AsyncSession,
    user: UserContext,
    *,
    status: ApplicationStatus | None = None,
    pool_only: bool = False,
    applicant_id: str | None = None,
    assigned_to: str | None = None,
    masjid_id: int | None = None,
    limit: int | None = None,
) -> tuple[list[Application], int]:
    """Return (applications newest first, total matching).

    Applicants always see only their own. For staff, the first filter given
    wins in order pool_only, applicant_id (super admin only), assigned_to,
    masjid_id; zakat admins with none of these get their own masjid.
    ``status`` is ignored with ``pool_only``.
    """
    limit = limit or settings.DEFAULT_LIST_LIMIT
    filters = dict(
        status=status,
        pool_only=pool_only,
        applicant_id=applicant_id,
        assigned_to=assigned_to,
        masjid_id=masjid_id,
    )

    count_stmt = _apply_list_filters(select(func.count(Application.id)), user, **filters)
    total = (await session.execute(count_stmt)).scalar() or 0

    stmt = _apply_list_filters(select(Application), user, **filters)
    stmt = stmt.order_by(Application.created_at.desc(), Application.id.desc()).limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all()), total


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def _split_name(name: str) -> tuple[str, str]:
    first, _, last = (name or "").strip().partition(" ")
    return first, last


async def get_or_create_profile(session: AsyncSession, user: UserContext) -> UserProfile:
    """Profile for the caller, created from token claims on first contact."""
    profile = await session.get(UserProfile, user.user_id)
    if profile is None:
        first, last = _split_name(user.name)
        profile = UserProfile(
            user_id=user.user_id,
            first_name=first,
            last_name=last,
            email=user.email,
            role=user.role,
            masjid_id=user.masjid_id,
            is_flagged=False,
        )
        session.add(profile)
        await session.flush()
    return profile


async def create_application(
    session: AsyncSession, user: UserContext, fields: dict,
) -> Application:
    """Create a draft owned by the caller.

    The applicant snapshot is copied from the caller's profile, including
    the live flagged state. Any status in ``fields`` is ignored.
    """
    profile = await get_or_create_profile(session, user)

    app = Application(
        status=ApplicationStatus.DRAFT,
        applicant_id=user.user_id,
        applicant_name=profile.display_name,
        applicant_email=profile.email,
        applicant_phone=profile.phone,
        applicant_is_flagged=bool(profile.is_flagged),
        **{k: v for k, v in fields.items() if k in DRAFT_FIELDS},
    )
    session.add(app)
    await session.commit()
    logger.info("Application %s created by %s", app.id, user.user_id)

    await record_history(
        session, app.id, user, HistoryAction.CREATED, "Application created",
        new_status=ApplicationStatus.DRAFT,
    )
    return app


async def update_draft(
    session: AsyncSession, user: UserContext, application_id: int, fields: dict,
) -> Application:
    """Apply applicant edits. Only the owner, and only while in draft."""
    app = await lock_application(session, application_id)
    if app.applicant_id != user.user_id:
        raise PermissionDeniedError("Only the applicant can edit this application")
    if app.status != ApplicationStatus.DRAFT:
        raise FailedPreconditionError("Only draft applications can be edited")

    changed = sorted(k for k, v in fields.items() if k in DRAFT_FIELDS and getattr(app, k) != v)
    for key in changed:
        setattr(app, key, fields[key])
    await session.commit()

    if changed:
        await record_history(
            session, app.id, user, HistoryAction.EDITED,
            f"Updated {', '.join(changed)}",
            metadata={"fields": changed},
        )
    return app


async def get_application_history(
    session: AsyncSession, user: UserContext, application_id: int,
) -> list[ApplicationHistory]:
    """History for the owner or any staff member, newest first."""
    app = await load_application(session, application_id)
    if app.applicant_id != user.user_id and not user.is_staff:
        raise PermissionDeniedError("You don't have permission to view application history")
    return await list_history(session, app.id)
