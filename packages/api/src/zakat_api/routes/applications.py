# This project was developed with assistance from AI tools.
"""Application lifecycle routes with RBAC enforcement.

Service errors (``CaseworkError``) propagate to the handler in ``main.py``.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from zakat_db import Application, get_db
from zakat_db.enums import ApplicationStatus, UserRole

from ..core.config import settings
from ..middleware.auth import CurrentUser, require_roles
from ..schemas import Pagination
from ..schemas.application import (
    ApplicantSnapshot,
    ApplicationCreate,
    ApplicationEnvelope,
    ApplicationListResponse,
    ApplicationResponse,
    ApplicationUpdate,
    AssignRequest,
    NoteCreate,
    NoteEnvelope,
    NoteListResponse,
    NoteResponse,
    ReleaseRequest,
    ResolutionSummary,
    ResolveRequest,
    StatusChangeRequest,
)
from ..schemas.disbursement import (
    ApplicationDisbursements,
    ApplicationDisbursementsResponse,
    DisbursementCreate,
    DisbursementEnvelope,
    DisbursementItem,
)
from ..schemas.history import HistoryEntry, HistoryListResponse
from ..services import application as app_service
from ..services import assignment, notes, resolution

router = APIRouter()

_ALL_ROLES = (UserRole.APPLICANT, UserRole.ZAKAT_ADMIN, UserRole.SUPER_ADMIN)
_STAFF_ROLES = (UserRole.ZAKAT_ADMIN, UserRole.SUPER_ADMIN)


def _build_app_response(app: Application) -> ApplicationResponse:
    """Build ApplicationResponse from the flat ORM row.

    The applicant snapshot and resolution columns are nested for clients;
    ``resolution`` stays None until a decision has been stamped.
    """
    resolution_summary = None
    if app.decided_at is not None or app.decision is not None:
        resolution_summary = ResolutionSummary(
            decision=app.decision,
            decided_by=app.decided_by,
            decided_by_name=app.decided_by_name,
            decided_by_masjid=app.decided_by_masjid,
            decided_at=app.decided_at,
            amount_approved=app.amount_approved,
            disbursement_method=app.disbursement_method,
            rejection_reason=app.rejection_reason,
            amount_disbursed=app.amount_disbursed,
            disbursed_at=app.disbursed_at,
            disbursed_by=app.disbursed_by,
        )

    return ApplicationResponse(
        id=app.id,
        application_number=app.application_number,
        status=app.status,
        applicant_snapshot=ApplicantSnapshot(
            applicant_id=app.applicant_id,
            name=app.applicant_name,
            email=app.applicant_email,
            phone=app.applicant_phone,
            is_flagged=app.applicant_is_flagged,
        ),
        request_type=app.request_type,
        amount_requested=app.amount_requested,
        description=app.description,
        form_data=app.form_data,
        assigned_to=app.assigned_to,
        assigned_to_masjid=app.assigned_to_masjid,
        assigned_to_masjid_name=app.assigned_to_masjid_name,
        assigned_to_masjid_zip_code=app.assigned_to_masjid_zip_code,
        assigned_at=app.assigned_at,
        resolution=resolution_summary,
        created_at=app.created_at,
        submitted_at=app.submitted_at,
        updated_at=app.updated_at,
    )


def _envelope(app: Application) -> ApplicationEnvelope:
    return ApplicationEnvelope(data=_build_app_response(app))


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


@router.post(
    "/",
    response_model=ApplicationEnvelope,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(UserRole.APPLICANT))],
)
async def create_application(
    body: ApplicationCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationEnvelope:
    """Create a draft application owned by the caller."""
    app = await app_service.create_application(session, user, body.model_dump(exclude_unset=True))
    return _envelope(app)


@router.get(
    "/",
    response_model=ApplicationListResponse,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def list_applications(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    status_filter: ApplicationStatus | None = Query(default=None, alias="status"),
    pool_only: bool = Query(default=False),
    applicant_id: str | None = None,
    assigned_to: str | None = None,
    masjid_id: int | None = None,
    limit: int = Query(default=settings.DEFAULT_LIST_LIMIT, ge=1, le=100),
) -> ApplicationListResponse:
    """List applications visible to the caller, newest first."""
    applications, total = await app_service.list_applications(
        session,
        user,
        status=status_filter,
        pool_only=pool_only,
        applicant_id=applicant_id,
        assigned_to=assigned_to,
        masjid_id=masjid_id,
        limit=limit,
    )
    return ApplicationListResponse(
        data=[_build_app_response(app) for app in applications],
        pagination=Pagination(total=total, limit=limit, has_more=total > len(applications)),
    )


@router.get(
    "/{application_id}",
    response_model=ApplicationEnvelope,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def get_application(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationEnvelope:
    """Get a single application. Out-of-scope applications return 403."""
    app = await app_service.get_application(session, user, application_id)
    return _envelope(app)


@router.patch(
    "/{application_id}",
    response_model=ApplicationEnvelope,
    dependencies=[Depends(require_roles(UserRole.APPLICANT))],
)
async def update_application(
    application_id: int,
    body: ApplicationUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationEnvelope:
    """Edit a draft. Only fields present in the body are changed."""
    app = await app_service.update_draft(
        session, user, application_id, body.model_dump(exclude_unset=True),
    )
    return _envelope(app)


@router.get(
    "/{application_id}/history",
    response_model=HistoryListResponse,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def get_history(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> HistoryListResponse:
    """History entries, newest first."""
    entries = await app_service.get_application_history(session, user, application_id)
    return HistoryListResponse(data=[HistoryEntry.model_validate(e) for e in entries])


# ---------------------------------------------------------------------------
# Assignment coordinator
# ---------------------------------------------------------------------------


@router.post(
    "/{application_id}/submit",
    response_model=ApplicationEnvelope,
    dependencies=[Depends(require_roles(UserRole.APPLICANT))],
)
async def submit_application(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationEnvelope:
    """Submit the caller's draft and assign its application number."""
    app = await assignment.submit_application(session, user, application_id)
    return _envelope(app)


@router.post(
    "/{application_id}/assign",
    response_model=ApplicationEnvelope,
    dependencies=[Depends(require_roles(*_STAFF_ROLES))],
)
async def assign_application(
    application_id: int,
    user: CurrentUser,
    body: AssignRequest | None = None,
    session: AsyncSession = Depends(get_db),
) -> ApplicationEnvelope:
    """Claim from the pool, or (super admin) assign to another admin."""
    app = await assignment.assign_application(
        session, user, application_id, body.assign_to_user_id if body else None,
    )
    return _envelope(app)


@router.post(
    "/{application_id}/release",
    response_model=ApplicationEnvelope,
    dependencies=[Depends(require_roles(*_STAFF_ROLES))],
)
async def release_application(
    application_id: int,
    user: CurrentUser,
    body: ReleaseRequest | None = None,
    session: AsyncSession = Depends(get_db),
) -> ApplicationEnvelope:
    """Return a claimed application to the pool."""
    app = await assignment.release_application(
        session, user, application_id, body.reason if body else None,
    )
    return _envelope(app)


@router.post(
    "/{application_id}/status",
    response_model=ApplicationEnvelope,
    dependencies=[Depends(require_roles(*_STAFF_ROLES))],
)
async def change_status(
    application_id: int,
    body: StatusChangeRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationEnvelope:
    app = await assignment.change_status(
        session,
        user,
        application_id,
        body.new_status,
        reason=body.reason,
        metadata=body.metadata,
        disbursed_amount=body.disbursed_amount,
    )
    return _envelope(app)


# ---------------------------------------------------------------------------
# Resolution, disbursements, notes
# ---------------------------------------------------------------------------


@router.post(
    "/{application_id}/resolve",
    response_model=ApplicationEnvelope,
    dependencies=[Depends(require_roles(*_STAFF_ROLES))],
)
async def resolve_application(
    application_id: int,
    body: ResolveRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationEnvelope:
    """Approve, partially approve, or reject an application under review."""
    app = await resolution.resolve_application(
        session,
        user,
        application_id,
        decision=body.decision,
        amount_approved=body.amount_approved,
        disbursement_method=body.disbursement_method,
        rejection_reason=body.rejection_reason,
        notes=body.notes,
    )
    return _envelope(app)


@router.post(
    "/{application_id}/disbursements",
    response_model=DisbursementEnvelope,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(*_STAFF_ROLES))],
)
async def record_disbursement(
    application_id: int,
    body: DisbursementCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> DisbursementEnvelope:
    disbursement = await resolution.record_disbursement(
        session, user, application_id, **body.model_dump(),
    )
    return DisbursementEnvelope(data=DisbursementItem.model_validate(disbursement))


@router.get(
    "/{application_id}/disbursements",
    response_model=ApplicationDisbursementsResponse,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def list_disbursements(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationDisbursementsResponse:
    rows, total = await resolution.list_application_disbursements(session, user, application_id)
    return ApplicationDisbursementsResponse(
        data=ApplicationDisbursements(
            disbursements=[DisbursementItem.model_validate(d) for d in rows],
            total_disbursed=total,
        ),
    )


@router.post(
    "/{application_id}/notes",
    response_model=NoteEnvelope,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(*_STAFF_ROLES))],
)
async def add_note(
    application_id: int,
    body: NoteCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> NoteEnvelope:
    note = await notes.add_note(
        session, user, application_id, body.content, is_internal=body.is_internal,
    )
    return NoteEnvelope(data=NoteResponse.model_validate(note))


@router.get(
    "/{application_id}/notes",
    response_model=NoteListResponse,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def list_notes(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> NoteListResponse:
    """Notes newest first; applicants see external notes only."""
    rows = await notes.list_notes(session, user, application_id)
    return NoteListResponse(data=[NoteResponse.model_validate(n) for n in rows])
