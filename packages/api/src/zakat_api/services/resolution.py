# This project was developed with assistance from AI tools.
"""Resolution and disbursement ledger.

``apply_first_resolution`` is the only place masjid "handled" aggregates
change. Both ``resolve_application`` and ``assignment.change_status`` go
through it, and ``Application.decided_at`` records that the application
has already been counted, so no path can count it twice.
"""

import logging
from collections import defaultdict
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from zakat_db import Application, ApplicationNote, Disbursement, Masjid, utcnow
from zakat_db.enums import (
    ApplicationStatus,
    DisbursementMethod,
    HistoryAction,
    NotificationType,
    ResolutionDecision,
    UserRole,
)

from ..core.config import settings
from ..schemas.auth import UserContext
from .application import ensure_can_manage, load_application, lock_application
from .counters import decrement_masjid_stat, increment_masjid_stat
from .errors import (
    FailedPreconditionError,
    InvalidArgumentError,
    PermissionDeniedError,
)
from .history import record_history
from .notification import enqueue_notification
from .transitions import ACTIVE_STATUSES, validate_transition

logger = logging.getLogger(__name__)

_DISBURSABLE = frozenset({ApplicationStatus.APPROVED, ApplicationStatus.DISBURSED})

# Decision recorded when a terminal status is entered without an explicit resolve
_STATUS_DECISIONS = {
    ApplicationStatus.APPROVED: ResolutionDecision.APPROVED,
    ApplicationStatus.REJECTED: ResolutionDecision.REJECTED,
    ApplicationStatus.DISBURSED: ResolutionDecision.APPROVED,
    ApplicationStatus.CLOSED: ResolutionDecision.CLOSED,
}


def _money(value) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


def _format_money(value) -> str:
    return f"${_money(value):,.2f}"


# ---------------------------------------------------------------------------
# Ledger entry points (no commit; callers own the transaction)
# ---------------------------------------------------------------------------


async def apply_first_resolution(
    session: AsyncSession,
    app: Application,
    user: UserContext,
    target_status: ApplicationStatus,
    *,
    decision: ResolutionDecision | None = None,
    amount_approved: Decimal | None = None,
    disbursement_method: DisbursementMethod | None = None,
    rejection_reason: str | None = None,
) -> bool:
    """Stamp the resolution and update masjid aggregates, at most once.

    Returns False without touching anything when ``decided_at`` is
    already set. Otherwise ``total_applications_handled`` goes up by one
    and ``applications_in_progress`` down by one (clamped) on the
    assigned masjid.
    """
    if app.decided_at is not None:
        return False

    app.decision = decision or _STATUS_DECISIONS[target_status]
    app.decided_by = user.user_id
    app.decided_by_name = user.name or user.email
    app.decided_by_masjid = user.masjid_id
    app.decided_at = utcnow()
    if app.decision != ResolutionDecision.REJECTED:
        app.amount_approved = amount_approved
        app.disbursement_method = disbursement_method.value if disbursement_method else None
    else:
        app.rejection_reason = rejection_reason

    await increment_masjid_stat(session, app.assigned_to_masjid, "total_applications_handled")
    await decrement_masjid_stat(session, app.assigned_to_masjid, "applications_in_progress")
    return True


async def _disbursing_masjid(
    session: AsyncSession, app: Application, user: UserContext,
) -> tuple[int, str]:
    masjid_id = user.masjid_id or app.assigned_to_masjid
    if masjid_id is None:
        raise FailedPreconditionError("No masjid associated with this disbursement")
    if masjid_id == app.assigned_to_masjid and app.assigned_to_masjid_name:
        return masjid_id, app.assigned_to_masjid_name
    masjid = await session.get(Masjid, masjid_id)
    return masjid_id, masjid.name if masjid else "Unknown Masjid"


async def apply_disbursement(
    session: AsyncSession,
    app: Application,
    user: UserContext,
    amount: Decimal,
    method: DisbursementMethod,
    *,
    reference_number: str | None = None,
    notes: str | None = None,
    period_month: int | None = None,
    period_year: int | None = None,
) -> Disbursement:
    """Add a ledger row and credit the masjid's disbursed total.

    The first disbursement against an ``approved`` application moves it to
    ``disbursed``. Later rows only accumulate ``amount_disbursed``.
    Never touches the handled / in-progress aggregates.
    """
    masjid_id, masjid_name = await _disbursing_masjid(session, app, user)
    now = utcnow()

    disbursement = Disbursement(
        application_id=app.id,
        applicant_id=app.applicant_id,
        amount=amount,
        method=method,
        reference_number=reference_number,
        notes=notes,
        disbursed_by=user.user_id,
        disbursed_by_name=user.name or user.email,
        masjid_id=masjid_id,
        masjid_name=masjid_name,
        period_month=period_month,
        period_year=period_year,
        disbursed_at=now,
    )
    session.add(disbursement)

    if app.status == ApplicationStatus.APPROVED:
        app.status = ApplicationStatus.DISBURSED
        app.amount_disbursed = amount
        app.disbursed_at = now
        app.disbursed_by = user.user_id
    else:
        app.amount_disbursed = _money(app.amount_disbursed) + amount

    await increment_masjid_stat(session, masjid_id, "total_amount_disbursed", amount)
    await session.flush()
    return disbursement


# ---------------------------------------------------------------------------
# Resolve
# ---------------------------------------------------------------------------


def _validate_resolution_args(
    decision: ResolutionDecision,
    amount_approved: Decimal | None,
    rejection_reason: str | None,
) -> None:
    if decision == ResolutionDecision.CLOSED:
        raise InvalidArgumentError("Decision must be approved, partial, or rejected")
    if decision in (ResolutionDecision.APPROVED, ResolutionDecision.PARTIAL):
        if amount_approved is None or amount_approved <= 0:
            raise InvalidArgumentError("Approved amount is required for approval")
    if decision == ResolutionDecision.REJECTED and not (rejection_reason or "").strip():
        raise InvalidArgumentError("Rejection reason is required")


async def resolve_application(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    *,
    decision: ResolutionDecision,
    amount_approved: Decimal | None = None,
    disbursement_method: DisbursementMethod | None = None,
    rejection_reason: str | None = None,
    notes: str | None = None,
) -> Application:
    """Approve (fully or partially) or reject an application under review.

    Arguments are validated before the row is locked. Fails with
    FailedPrecondition when the application is already resolved, not in a
    reviewable status, or the resulting transition is not allowed.
    """
    _validate_resolution_args(decision, amount_approved, rejection_reason)

    app = await lock_application(session, application_id)
    ensure_can_manage(user, app)
    if app.decided_at is not None:
        raise FailedPreconditionError("Application has already been resolved")
    if app.status not in ACTIVE_STATUSES:
        raise FailedPreconditionError("Application cannot be resolved in current status")

    target = (
        ApplicationStatus.REJECTED
        if decision == ResolutionDecision.REJECTED
        else ApplicationStatus.APPROVED
    )
    validate_transition(app.status, target)
    previous_status = app.status

    await apply_first_resolution(
        session, app, user, target,
        decision=decision,
        amount_approved=amount_approved,
        disbursement_method=disbursement_method,
        rejection_reason=rejection_reason,
    )
    app.status = target
    if notes:
        session.add(ApplicationNote(
            application_id=app.id,
            content=notes,
            is_internal=False,
            created_by=user.user_id,
            created_by_name=user.name or user.email,
            created_by_masjid=user.masjid_id,
        ))
    await session.commit()
    logger.info(
        "Application %s resolved as %s by %s", app.id, decision.value, user.user_id,
    )

    metadata = {"decision": decision.value}
    if amount_approved is not None:
        metadata["amount_approved"] = str(amount_approved)
    if disbursement_method:
        metadata["disbursement_method"] = disbursement_method.value
    if rejection_reason:
        metadata["rejection_reason"] = rejection_reason

    rejected = decision == ResolutionDecision.REJECTED
    await record_history(
        session, app.id, user,
        HistoryAction.REJECTED if rejected else HistoryAction.APPROVED,
        f"Application rejected: {rejection_reason}"
        if rejected
        else f"Application approved for {_format_money(amount_approved)}",
        previous_status=previous_status,
        new_status=target,
        metadata=metadata,
    )
    if rejected:
        await enqueue_notification(
            session, app.applicant_id, NotificationType.APPLICATION_REJECTED,
            "Application Declined",
            f"We regret to inform you that your application {app.application_number} "
            f"has been declined. Reason: {rejection_reason}",
            application_id=app.id,
        )
    else:
        await enqueue_notification(
            session, app.applicant_id, NotificationType.APPLICATION_APPROVED,
            "Application Approved",
            f"Congratulations! Your application {app.application_number} "
            f"has been approved for {_format_money(amount_approved)}.",
            application_id=app.id,
        )
    return app


# ---------------------------------------------------------------------------
# Disbursements
# ---------------------------------------------------------------------------


async def record_disbursement(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    *,
    amount: Decimal,
    method: DisbursementMethod,
    reference_number: str | None = None,
    notes: str | None = None,
    period_month: int | None = None,
    period_year: int | None = None,
) -> Disbursement:
    """Record one disbursement against an approved or disbursed application."""
    if amount is None or amount <= 0:
        raise InvalidArgumentError("Amount must be a positive number")
    if method is None:
        raise InvalidArgumentError("Disbursement method is required")
    if user.role == UserRole.ZAKAT_ADMIN and user.masjid_id is None:
        raise FailedPreconditionError("Zakat admin must be assigned to a masjid")

    app = await lock_application(session, application_id)
    if app.status not in _DISBURSABLE:
        raise FailedPreconditionError(
            "Application must be in approved or disbursed status to record disbursements"
        )
    ensure_can_manage(user, app)
    previous_status = app.status
    if previous_status == ApplicationStatus.APPROVED:
        validate_transition(previous_status, ApplicationStatus.DISBURSED)

    disbursement = await apply_disbursement(
        session, app, user, amount, method,
        reference_number=reference_number,
        notes=notes,
        period_month=period_month,
        period_year=period_year,
    )
    await session.commit()
    logger.info(
        "Disbursement %s of %s recorded on application %s by %s",
        disbursement.id, amount, app.id, user.user_id,
    )

    period = f" for {period_month:02d}/{period_year}" if period_month and period_year else ""
    metadata = {"disbursement_id": disbursement.id, "amount": str(amount), "method": method.value}
    if reference_number:
        metadata["reference_number"] = reference_number
    await record_history(
        session, app.id, user, HistoryAction.DISBURSED,
        f"Disbursement of {_format_money(amount)} recorded via {method.value}{period}",
        previous_status=previous_status,
        new_status=ApplicationStatus.DISBURSED,
        metadata=metadata,
    )
    await enqueue_notification(
        session, app.applicant_id, NotificationType.STATUS_UPDATE,
        "Disbursement Received",
        f"A disbursement of {_format_money(amount)} has been recorded "
        f"for your application {app.application_number}{period}.",
        application_id=app.id,
        extra={"disbursement_amount": str(amount)},
    )
    return disbursement


def _ensure_owner_or_staff(user: UserContext, applicant_id: str) -> None:
    if user.user_id != applicant_id and not user.is_staff:
        raise PermissionDeniedError("You don't have permission to view these disbursements")


async def list_application_disbursements(
    session: AsyncSession, user: UserContext, application_id: int,
) -> tuple[list[Disbursement], Decimal]:
    """Ledger rows for one application, newest first, with their total."""
    app = await load_application(session, application_id)
    _ensure_owner_or_staff(user, app.applicant_id)

    stmt = (
        select(Disbursement)
        .where(Disbursement.application_id == application_id)
        .order_by(Disbursement.disbursed_at.desc(), Disbursement.id.desc())
    )
    rows = list((await session.execute(stmt)).scalars().all())
    return rows, sum((_money(d.amount) for d in rows), Decimal("0"))


async def get_applicant_summary(
    session: AsyncSession, user: UserContext, applicant_id: str,
) -> dict:
    """Totals across every application of one applicant, broken down by masjid."""
    if not applicant_id:
        raise InvalidArgumentError("Applicant ID is required")
    _ensure_owner_or_staff(user, applicant_id)

    application_count = (
        await session.execute(
            select(func.count(Application.id)).where(Application.applicant_id == applicant_id)
        )
    ).scalar() or 0

    total_col = func.sum(Disbursement.amount)
    stmt = (
        select(
            Disbursement.masjid_id,
            Disbursement.masjid_name,
            total_col.label("total"),
            func.count(Disbursement.id).label("count"),
        )
        .where(Disbursement.applicant_id == applicant_id)
        .group_by(Disbursement.masjid_id, Disbursement.masjid_name)
        .order_by(total_col.desc())
    )
    by_masjid = [
        {
            "masjid_id": row.masjid_id,
            "masjid_name": row.masjid_name,
            "total_disbursed": _money(row.total),
            "count": row.count,
        }
        for row in (await session.execute(stmt)).all()
    ]
    return {
        "applicant_id": applicant_id,
        "total_disbursed": sum((m["total_disbursed"] for m in by_masjid), Decimal("0")),
        "disbursement_count": sum(m["count"] for m in by_masjid),
        "application_count": application_count,
        "by_masjid": by_masjid,
    }


async def get_network_summary(
    session: AsyncSession, user: UserContext, limit: int | None = None,
) -> dict:
    """Network-wide totals grouped by applicant, then masjid. Super admin only."""
    if not user.is_super_admin:
        raise PermissionDeniedError("Only super admins can view all disbursements")
    limit = limit or settings.NETWORK_SUMMARY_LIMIT

    stmt = (
        select(
            Disbursement.applicant_id,
            Disbursement.masjid_id,
            Disbursement.masjid_name,
            func.sum(Disbursement.amount).label("total"),
            func.count(Disbursement.id).label("count"),
        )
        .group_by(Disbursement.applicant_id, Disbursement.masjid_id, Disbursement.masjid_name)
    )
    rows = (await session.execute(stmt)).all()

    applicants: dict[str, dict] = defaultdict(
        lambda: {"total_disbursed": Decimal("0"), "disbursement_count": 0, "by_masjid": []}
    )
    for row in rows:
        entry = applicants[row.applicant_id]
        entry["total_disbursed"] += _money(row.total)
        entry["disbursement_count"] += row.count
        entry["by_masjid"].append({
            "masjid_id": row.masjid_id,
            "masjid_name": row.masjid_name,
            "total_disbursed": _money(row.total),
            "count": row.count,
        })

    names = {}
    if applicants:
        name_rows = await session.execute(
            select(Application.applicant_id, Application.applicant_name)
            .where(Application.applicant_id.in_(list(applicants)))
            .distinct()
        )
        names = {r.applicant_id: r.applicant_name for r in name_rows.all()}

    ranked = sorted(
        (
            {
                "applicant_id": applicant_id,
                "applicant_name": names.get(applicant_id) or "Unknown",
                "total_disbursed": entry["total_disbursed"],
                "disbursement_count": entry["disbursement_count"],
                "by_masjid": sorted(
                    entry["by_masjid"], key=lambda m: m["total_disbursed"], reverse=True,
                ),
            }
            for applicant_id, entry in applicants.items()
        ),
        key=lambda a: a["total_disbursed"],
        reverse=True,
    )
    return {
        "total_disbursed": sum((a["total_disbursed"] for a in ranked), Decimal("0")),
        "total_applicants": len(ranked),
        "applicants": ranked[:limit],
    }
