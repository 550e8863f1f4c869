# This project was developed with assistance from AI tools.
"""Cross-application disbursement aggregates."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from zakat_db import get_db
from zakat_db.enums import UserRole

from ..core.config import settings
from ..middleware.auth import CurrentUser, require_roles
from ..schemas.disbursement import (
    ApplicantSummary,
    ApplicantSummaryResponse,
    NetworkSummary,
    NetworkSummaryResponse,
)
from ..services import resolution

router = APIRouter()


@router.get(
    "/applicants/{applicant_id}",
    response_model=ApplicantSummaryResponse,
    dependencies=[
        Depends(require_roles(UserRole.APPLICANT, UserRole.ZAKAT_ADMIN, UserRole.SUPER_ADMIN))
    ],
)
async def get_applicant_summary(
    applicant_id: str,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicantSummaryResponse:
    """Everything disbursed to one applicant across the network."""
    summary = await resolution.get_applicant_summary(session, user, applicant_id)
    return ApplicantSummaryResponse(data=ApplicantSummary(**summary))


@router.get(
    "/",
    response_model=NetworkSummaryResponse,
    dependencies=[Depends(require_roles(UserRole.SUPER_ADMIN))],
)
async def get_network_summary(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    limit: int = Query(default=settings.NETWORK_SUMMARY_LIMIT, ge=1, le=1000),
) -> NetworkSummaryResponse:
    summary = await resolution.get_network_summary(session, user, limit)
    return NetworkSummaryResponse(data=NetworkSummary(**summary))
