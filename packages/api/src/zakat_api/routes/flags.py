# This project was developed with assistance from AI tools.
"""Applicant flag routes (staff only)."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from zakat_db import get_db
from zakat_db.enums import UserRole

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.flag import FlagCreate, FlagEnvelope, FlagItem, FlagListResponse, FlagResolve
from ..services import flag as flag_service

router = APIRouter()

_STAFF = Depends(require_roles(UserRole.ZAKAT_ADMIN, UserRole.SUPER_ADMIN))


@router.post(
    "/",
    response_model=FlagEnvelope,
    status_code=status.HTTP_201_CREATED,
    dependencies=[_STAFF],
)
async def create_flag(
    body: FlagCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> FlagEnvelope:
    """Flag an applicant; every one of their applications is marked."""
    flag = await flag_service.create_flag(
        session,
        user,
        applicant_id=body.applicant_id,
        reason=body.reason,
        severity=body.severity,
        application_id=body.application_id,
    )
    return FlagEnvelope(data=FlagItem.model_validate(flag))


@router.post(
    "/{flag_id}/resolve",
    response_model=FlagEnvelope,
    dependencies=[_STAFF],
)
async def resolve_flag(
    flag_id: int,
    body: FlagResolve,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> FlagEnvelope:
    flag = await flag_service.resolve_flag(session, user, flag_id, body.resolution_notes)
    return FlagEnvelope(data=FlagItem.model_validate(flag))


@router.get(
    "/",
    response_model=FlagListResponse,
    dependencies=[_STAFF],
)
async def list_flags(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    applicant_id: str | None = None,
    active_only: bool = Query(default=True),
) -> FlagListResponse:
    flags = await flag_service.list_flags(
        session, user, applicant_id=applicant_id, active_only=active_only,
    )
    return FlagListResponse(data=[FlagItem.model_validate(f) for f in flags])
