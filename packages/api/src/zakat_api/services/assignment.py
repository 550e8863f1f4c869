# This project was developed with assistance from AI tools.
"""Assignment coordinator: submit, claim/assign, release, change status.

Each operation locks the application row, checks permission and the
current status against that fresh read, then writes the application and
any masjid counters in a single commit. History and notifications follow
the commit and never undo it.
"""

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from zakat_db import Application, Masjid, UserProfile, utcnow
from zakat_db.enums import (
    ApplicationStatus,
    DisbursementMethod,
    HistoryAction,
    NotificationType,
    UserRole,
)

from ..core.config import settings
from ..schemas.auth import UserContext
from .application import ensure_can_manage, lock_application
from .counters import decrement_masjid_stat, increment_masjid_stat, next_sequence
from .errors import (
    FailedPreconditionError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
)
from .history import record_history
from .notification import enqueue_notification
from .resolution import apply_disbursement, apply_first_resolution
from .transitions import ACTIVE_STATUSES, TERMINAL_STATUSES, validate_transition

logger = logging.getLogger(__name__)

IN_PROGRESS = "applications_in_progress"

_STATUS_MESSAGES = {
    ApplicationStatus.SUBMITTED: "Your application has been submitted.",
    ApplicationStatus.UNDER_REVIEW: "Your application is now being reviewed.",
    ApplicationStatus.PENDING_DOCUMENTS: "Additional documents are needed for your application.",
    ApplicationStatus.PENDING_VERIFICATION: "Your application documents are being verified.",
    ApplicationStatus.APPROVED: "Congratulations! Your application has been approved.",
    ApplicationStatus.REJECTED: "We regret to inform you that your application has been declined.",
    ApplicationStatus.DISBURSED: "Funds for your application have been disbursed.",
    ApplicationStatus.CLOSED: "Your application has been closed.",
}


def format_application_number(sequence: int) -> str:
    return f"{settings.APPLICATION_NUMBER_PREFIX}-{sequence:08d}"


# ---------------------------------------------------------------------------
# Submit
# ---------------------------------------------------------------------------


async def submit_application(
    session: AsyncSession, user: UserContext, application_id: int,
) -> Application:
    """Move the caller's own draft to ``submitted`` and number it."""
    app = await lock_application(session, application_id)
    if app.applicant_id != user.user_id:
        raise PermissionDeniedError("You can only submit your own applications")
    if app.status != ApplicationStatus.DRAFT:
        raise FailedPreconditionError("Only draft applications can be submitted")
    validate_transition(app.status, ApplicationStatus.SUBMITTED)

    sequence = await next_sequence(session)
    app.application_number = format_application_number(sequence)
    app.status = ApplicationStatus.SUBMITTED
    app.submitted_at = utcnow()
    await session.commit()
    logger.info("Application %s submitted as %s", app.id, app.application_number)

    await record_history(
        session, app.id, user, HistoryAction.SUBMITTED,
        f"Application {app.application_number} submitted",
        previous_status=ApplicationStatus.DRAFT,
        new_status=ApplicationStatus.SUBMITTED,
    )
    await enqueue_notification(
        session, app.applicant_id, NotificationType.APPLICATION_SUBMITTED,
        "Application Submitted",
        f"Your application {app.application_number} has been submitted "
        "and is now in the review queue.",
        application_id=app.id,
    )
    return app


# ---------------------------------------------------------------------------
# Claim / assign
# ---------------------------------------------------------------------------


async def _resolve_target(
    session: AsyncSession, user: UserContext, target_user_id: str,
) -> tuple[int | None, str]:
    """Return (masjid id, display name) for the user receiving the case."""
    if target_user_id == user.user_id:
        return user.masjid_id, user.name or user.email

    profile = await session.get(UserProfile, target_user_id)
    if profile is None:
        raise NotFoundError("Assignee not found")
    if profile.role not in UserRole.staff_roles():
        raise InvalidArgumentError("Applications can only be assigned to admins")
    return profile.masjid_id, profile.display_name


async def assign_application(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    assign_to_user_id: str | None = None,
) -> Application:
    """Claim a pool application, or (super admin) reassign an open one.

    A pool claim moves ``submitted -> under_review``; a reassignment keeps
    the status. When the owning masjid changes, its in-progress counter is
    decremented (clamped) and the new one incremented in the same commit.
    """
    if not user.is_staff:
        raise PermissionDeniedError("Only admins can perform this action")
    target_user_id = assign_to_user_id or user.user_id
    if target_user_id != user.user_id and not user.is_super_admin:
        raise PermissionDeniedError("Only super admins can assign to other users")

    app = await lock_application(session, application_id)
    previous_status = app.status
    is_pool_claim = previous_status == ApplicationStatus.SUBMITTED and app.assigned_to is None
    if not is_pool_claim:
        reassignable = (
            user.is_super_admin
            and previous_status != ApplicationStatus.DRAFT
            and previous_status not in TERMINAL_STATUSES
        )
        if not reassignable:
            raise FailedPreconditionError("Application cannot be assigned in current status")

    new_status = ApplicationStatus.UNDER_REVIEW if is_pool_claim else previous_status
    if new_status != previous_status:
        validate_transition(previous_status, new_status)

    target_masjid_id, target_name = await _resolve_target(session, user, target_user_id)
    masjid = await session.get(Masjid, target_masjid_id) if target_masjid_id else None

    previous_assignee = app.assigned_to
    previous_masjid_id = app.assigned_to_masjid

    app.assigned_to = target_user_id
    app.assigned_to_masjid = target_masjid_id
    app.assigned_to_masjid_name = masjid.name if masjid else None
    app.assigned_to_masjid_zip_code = masjid.zip_code if masjid else None
    app.assigned_at = utcnow()
    app.status = new_status

    if previous_masjid_id != target_masjid_id:
        await decrement_masjid_stat(session, previous_masjid_id, IN_PROGRESS)
        await increment_masjid_stat(session, target_masjid_id, IN_PROGRESS)

    await session.commit()
    logger.info(
        "Application %s assigned to %s (masjid %s) by %s",
        app.id, target_user_id, target_masjid_id, user.user_id,
    )

    details = (
        f"Application claimed by {user.name}"
        if target_user_id == user.user_id
        else f"Application assigned to {target_name} by {user.name}"
    )
    await record_history(
        session, app.id, user, HistoryAction.ASSIGNED, details,
        previous_status=previous_status,
        new_status=new_status,
        previous_assignee=previous_assignee,
        new_assignee=target_user_id,
    )
    if target_user_id != user.user_id:
        await enqueue_notification(
            session, target_user_id, NotificationType.APPLICATION_ASSIGNED,
            "Application Assigned",
            f"Application {app.application_number} has been assigned to you.",
            application_id=app.id,
        )
    if new_status != previous_status:
        await enqueue_notification(
            session, app.applicant_id, NotificationType.STATUS_UPDATE,
            "Application Under Review",
            f"Your application {app.application_number} is now being reviewed.",
            application_id=app.id,
            extra={"previous_status": previous_status.value, "new_status": new_status.value},
        )
    return app


# ---------------------------------------------------------------------------
# Release
# ---------------------------------------------------------------------------


async def release_application(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    reason: str | None = None,
) -> Application:
    """Return a claimed, unresolved application to the shared pool."""
    if not user.is_staff:
        raise PermissionDeniedError("Only admins can perform this action")

    app = await lock_application(session, application_id)
    if not user.is_super_admin and app.assigned_to != user.user_id:
        raise PermissionDeniedError("You can only release applications assigned to you")
    if app.status not in ACTIVE_STATUSES:
        raise FailedPreconditionError("Application cannot be released in current status")

    previous_status = app.status
    previous_assignee = app.assigned_to
    previous_masjid_id = app.assigned_to_masjid

    app.assigned_to = None
    app.assigned_to_masjid = None
    app.assigned_to_masjid_name = None
    app.assigned_to_masjid_zip_code = None
    app.assigned_at = None
    app.status = ApplicationStatus.SUBMITTED

    await decrement_masjid_stat(session, previous_masjid_id, IN_PROGRESS)
    await session.commit()
    logger.info("Application %s released to pool by %s", app.id, user.user_id)

    await record_history(
        session, app.id, user, HistoryAction.RELEASED,
        f"Application released to pool: {reason}" if reason else "Application released to pool",
        previous_status=previous_status,
        new_status=ApplicationStatus.SUBMITTED,
        previous_assignee=previous_assignee,
        metadata={"reason": reason} if reason else None,
    )
    return app


# ---------------------------------------------------------------------------
# Change status
# ---------------------------------------------------------------------------


async def change_status(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    new_status: ApplicationStatus,
    *,
    reason: str | None = None,
    metadata: dict | None = None,
    disbursed_amount: Decimal | None = None,
) -> Application:
    """Move an application along the transition table.

    Entering a terminal status for the first time goes through the shared
    resolution entry point. Entering ``disbursed`` also records a ledger
    row for ``disbursed_amount``; ``metadata["method"]`` picks the method.
    """
    if not user.is_staff:
        raise PermissionDeniedError("Only admins can perform this action")
    if new_status == ApplicationStatus.DISBURSED and (
        disbursed_amount is None or disbursed_amount <= 0
    ):
        raise InvalidArgumentError("Disbursed amount is required when marking as disbursed")
    metadata = dict(metadata or {})
    method = None
    if new_status == ApplicationStatus.DISBURSED:
        try:
            method = DisbursementMethod(metadata.get("method", DisbursementMethod.OTHER.value))
        except ValueError as exc:
            raise InvalidArgumentError(f"Unknown disbursement method: {metadata['method']}") from exc

    app = await lock_application(session, application_id)
    ensure_can_manage(user, app)
    previous_status = app.status
    if previous_status == ApplicationStatus.DRAFT:
        raise FailedPreconditionError("Draft applications are submitted by the applicant")
    validate_transition(previous_status, new_status)

    if new_status in TERMINAL_STATUSES:
        await apply_first_resolution(session, app, user, new_status)

    if new_status == ApplicationStatus.DISBURSED:
        disbursement = await apply_disbursement(session, app, user, disbursed_amount, method)
        metadata["disbursement_id"] = disbursement.id
        metadata["disbursed_amount"] = str(disbursed_amount)
    app.status = new_status
    await session.commit()
    logger.info(
        "Application %s status %s -> %s by %s",
        app.id, previous_status.value, new_status.value, user.user_id,
    )

    details = f"Status changed from {previous_status.value} to {new_status.value}"
    if disbursed_amount and new_status == ApplicationStatus.DISBURSED:
        details += f". Amount disbursed: ${disbursed_amount:,.2f}"
        if reason:
            details += f". {reason}"
    elif reason:
        details += f": {reason}"

    await record_history(
        session, app.id, user, HistoryAction.STATUS_CHANGED, details,
        previous_status=previous_status,
        new_status=new_status,
        metadata=metadata or None,
    )
    message = _STATUS_MESSAGES.get(new_status, f"Application status: {new_status.value}")
    if new_status == ApplicationStatus.DISBURSED:
        message = f"Funds of ${disbursed_amount:,.2f} for your application have been disbursed."
    await enqueue_notification(
        session, app.applicant_id, NotificationType.STATUS_UPDATE,
        f"Application {new_status.value.replace('_', ' ').upper()}",
        message,
        application_id=app.id,
        extra={"previous_status": previous_status.value, "new_status": new_status.value},
    )
    return app
