# This project was developed with assistance from AI tools.
"""Tests for resolution, the disbursement ledger, and its aggregates."""

from decimal import Decimal

import pytest
from sqlalchemy import func, select
from zakat_db import ApplicationNote, Disbursement
from zakat_db.enums import ApplicationStatus, DisbursementMethod, ResolutionDecision

from zakat_api.services import assignment, resolution
from zakat_api.services.errors import (
    FailedPreconditionError,
    InvalidArgumentError,
    InvalidTransitionError,
    PermissionDeniedError,
)

from .factories import (
    app_column,
    approved_application,
    claimed_application,
    masjid_stat,
    submitted_application,
)
from .functional.personas import (
    AISHA_USER_ID,
    HUDA_MASJID_ID,
    NOOR_MASJID_ID,
    admin_bilal,
    admin_without_masjid,
    admin_yusuf,
    applicant_aisha,
    applicant_omar,
    super_admin,
)


async def _disbursement_count(session, application_id):
    result = await session.execute(
        select(func.count(Disbursement.id)).where(Disbursement.application_id == application_id)
    )
    return result.scalar()


# ---------------------------------------------------------------------------
# Resolve
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_approve_stamps_resolution_and_counts_once(db_session):
    yusuf = admin_yusuf()
    app = await approved_application(db_session, applicant_aisha(), yusuf, Decimal("800"))

    assert app.status == ApplicationStatus.APPROVED
    assert app.decision == ResolutionDecision.APPROVED
    assert app.amount_approved == Decimal("800")
    assert app.disbursement_method == "check"
    assert app.decided_by == yusuf.user_id
    assert app.decided_by_masjid == NOOR_MASJID_ID
    assert await masjid_stat(db_session, NOOR_MASJID_ID, "total_applications_handled") == 1
    assert await masjid_stat(db_session, NOOR_MASJID_ID, "applications_in_progress") == 0


@pytest.mark.asyncio
async def test_second_resolve_fails_without_touching_counters(db_session):
    yusuf = admin_yusuf()
    app = await approved_application(db_session, applicant_aisha(), yusuf)

    with pytest.raises(FailedPreconditionError, match="already been resolved"):
        await resolution.resolve_application(
            db_session, yusuf, app.id,
            decision=ResolutionDecision.REJECTED, rejection_reason="Changed my mind",
        )
    assert await masjid_stat(db_session, NOOR_MASJID_ID, "total_applications_handled") == 1


@pytest.mark.asyncio
async def test_reject_requires_reason(db_session):
    with pytest.raises(InvalidArgumentError):
        await resolution.resolve_application(
            db_session, admin_yusuf(), 1, decision=ResolutionDecision.REJECTED,
        )


@pytest.mark.asyncio
async def test_approve_requires_positive_amount(db_session):
    with pytest.raises(InvalidArgumentError):
        await resolution.resolve_application(
            db_session, admin_yusuf(), 1,
            decision=ResolutionDecision.PARTIAL, amount_approved=Decimal("0"),
        )


@pytest.mark.asyncio
async def test_reject_stores_reason_not_amount(db_session):
    yusuf = admin_yusuf()
    app = await claimed_application(db_session, applicant_aisha(), yusuf)

    app = await resolution.resolve_application(
        db_session, yusuf, app.id,
        decision=ResolutionDecision.REJECTED,
        amount_approved=Decimal("100"),
        rejection_reason="Outside service area",
    )

    assert app.status == ApplicationStatus.REJECTED
    assert app.rejection_reason == "Outside service area"
    assert app.amount_approved is None


@pytest.mark.asyncio
async def test_resolve_from_pending_documents_is_an_illegal_edge(db_session):
    yusuf = admin_yusuf()
    app = await claimed_application(db_session, applicant_aisha(), yusuf)
    await assignment.change_status(db_session, yusuf, app.id, ApplicationStatus.PENDING_DOCUMENTS)

    with pytest.raises(InvalidTransitionError):
        await resolution.resolve_application(
            db_session, yusuf, app.id,
            decision=ResolutionDecision.APPROVED, amount_approved=Decimal("500"),
        )
    assert await app_column(db_session, app.id, "decided_at") is None
    assert await masjid_stat(db_session, NOOR_MASJID_ID, "total_applications_handled") == 0


@pytest.mark.asyncio
async def test_resolve_pool_application_fails(db_session):
    app = await submitted_application(db_session, applicant_aisha())
    with pytest.raises(FailedPreconditionError):
        await resolution.resolve_application(
            db_session, super_admin(), app.id,
            decision=ResolutionDecision.APPROVED, amount_approved=Decimal("100"),
        )


@pytest.mark.asyncio
async def test_resolve_other_masjid_denied(db_session):
    app = await claimed_application(db_session, applicant_aisha(), admin_yusuf())
    with pytest.raises(PermissionDeniedError):
        await resolution.resolve_application(
            db_session, admin_bilal(), app.id,
            decision=ResolutionDecision.APPROVED, amount_approved=Decimal("100"),
        )


@pytest.mark.asyncio
async def test_resolve_notes_become_external_note(db_session):
    yusuf = admin_yusuf()
    app = await claimed_application(db_session, applicant_aisha(), yusuf)

    await resolution.resolve_application(
        db_session, yusuf, app.id,
        decision=ResolutionDecision.PARTIAL,
        amount_approved=Decimal("300"),
        notes="Covering one month of rent",
    )

    note = (
        await db_session.execute(
            select(ApplicationNote).where(ApplicationNote.application_id == app.id)
        )
    ).scalar_one()
    assert note.is_internal is False
    assert note.content == "Covering one month of rent"


# ---------------------------------------------------------------------------
# Disbursements
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_two_disbursements_accumulate_and_status_changes_once(db_session):
    yusuf = admin_yusuf()
    app = await approved_application(db_session, applicant_aisha(), yusuf)

    first = await resolution.record_disbursement(
        db_session, yusuf, app.id, amount=Decimal("100"), method=DisbursementMethod.CASH,
        period_month=9, period_year=2026,
    )
    assert await app_column(db_session, app.id, "status") == ApplicationStatus.DISBURSED

    second = await resolution.record_disbursement(
        db_session, yusuf, app.id, amount=Decimal("50"), method=DisbursementMethod.CASH,
        period_month=10, period_year=2026,
    )

    assert first.id != second.id
    assert second.masjid_name == "Masjid Al-Noor"
    assert await app_column(db_session, app.id, "status") == ApplicationStatus.DISBURSED
    assert await app_column(db_session, app.id, "amount_disbursed") == Decimal("150")
    assert await _disbursement_count(db_session, app.id) == 2
    assert await masjid_stat(db_session, NOOR_MASJID_ID, "total_amount_disbursed") == Decimal("150")
    assert await masjid_stat(db_session, NOOR_MASJID_ID, "total_applications_handled") == 1


@pytest.mark.asyncio
async def test_resolve_then_mark_disbursed_counts_once(db_session):
    yusuf = admin_yusuf()
    app = await approved_application(db_session, applicant_aisha(), yusuf)

    app = await assignment.change_status(
        db_session, yusuf, app.id, ApplicationStatus.DISBURSED,
        disbursed_amount=Decimal("500"), metadata={"method": "bank_transfer"},
    )

    assert app.status == ApplicationStatus.DISBURSED
    assert app.amount_disbursed == Decimal("500")
    assert await _disbursement_count(db_session, app.id) == 1
    assert await masjid_stat(db_session, NOOR_MASJID_ID, "total_applications_handled") == 1
    assert await masjid_stat(db_session, NOOR_MASJID_ID, "total_amount_disbursed") == Decimal("500")
    row = (
        await db_session.execute(select(Disbursement).where(Disbursement.application_id == app.id))
    ).scalar_one()
    assert row.method == DisbursementMethod.BANK_TRANSFER


@pytest.mark.asyncio
async def test_disbursement_before_approval_fails(db_session):
    yusuf = admin_yusuf()
    app = await claimed_application(db_session, applicant_aisha(), yusuf)

    with pytest.raises(FailedPreconditionError):
        await resolution.record_disbursement(
            db_session, yusuf, app.id, amount=Decimal("100"), method=DisbursementMethod.CHECK,
        )
    assert await _disbursement_count(db_session, app.id) == 0


@pytest.mark.asyncio
async def test_admin_without_masjid_cannot_disburse(db_session):
    with pytest.raises(FailedPreconditionError):
        await resolution.record_disbursement(
            db_session, admin_without_masjid(), 1,
            amount=Decimal("100"), method=DisbursementMethod.CHECK,
        )


@pytest.mark.asyncio
async def test_super_admin_disburses_under_assigned_masjid(db_session):
    app = await approved_application(db_session, applicant_aisha(), admin_yusuf())

    row = await resolution.record_disbursement(
        db_session, super_admin(), app.id, amount=Decimal("75"), method=DisbursementMethod.CHECK,
    )

    assert row.masjid_id == NOOR_MASJID_ID
    assert await masjid_stat(db_session, NOOR_MASJID_ID, "total_amount_disbursed") == Decimal("75")
    assert await masjid_stat(db_session, HUDA_MASJID_ID, "total_amount_disbursed") == 0


@pytest.mark.asyncio
async def test_list_application_disbursements_newest_first(db_session):
    yusuf = admin_yusuf()
    app = await approved_application(db_session, applicant_aisha(), yusuf)
    for amount in ("10", "20", "30"):
        await resolution.record_disbursement(
            db_session, yusuf, app.id, amount=Decimal(amount), method=DisbursementMethod.CASH,
        )

    rows, total = await resolution.list_application_disbursements(
        db_session, applicant_aisha(), app.id,
    )

    assert [r.amount for r in rows] == [Decimal("30"), Decimal("20"), Decimal("10")]
    assert total == Decimal("60")

    with pytest.raises(PermissionDeniedError):
        await resolution.list_application_disbursements(db_session, applicant_omar(), app.id)


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_applicant_summary_groups_by_masjid(db_session):
    aisha = applicant_aisha()
    noor_app = await approved_application(db_session, aisha, admin_yusuf())
    huda_app = await approved_application(db_session, aisha, admin_bilal())
    await resolution.record_disbursement(
        db_session, admin_yusuf(), noor_app.id, amount=Decimal("100"), method=DisbursementMethod.CASH,
    )
    await resolution.record_disbursement(
        db_session, admin_bilal(), huda_app.id, amount=Decimal("250"), method=DisbursementMethod.CHECK,
    )

    summary = await resolution.get_applicant_summary(db_session, admin_bilal(), AISHA_USER_ID)

    assert summary["total_disbursed"] == Decimal("350")
    assert summary["disbursement_count"] == 2
    assert summary["application_count"] == 2
    assert [m["masjid_id"] for m in summary["by_masjid"]] == [HUDA_MASJID_ID, NOOR_MASJID_ID]


@pytest.mark.asyncio
async def test_applicant_summary_for_other_applicant_denied(db_session):
    with pytest.raises(PermissionDeniedError):
        await resolution.get_applicant_summary(db_session, applicant_omar(), AISHA_USER_ID)


@pytest.mark.asyncio
async def test_network_summary_empty(db_session):
    summary = await resolution.get_network_summary(db_session, super_admin())
    assert summary == {"total_disbursed": Decimal("0"), "total_applicants": 0, "applicants": []}


@pytest.mark.asyncio
async def test_network_summary_ranked_and_limited(db_session):
    yusuf = admin_yusuf()
    aisha_app = await approved_application(db_session, applicant_aisha(), yusuf)
    omar_app = await approved_application(db_session, applicant_omar(), yusuf)
    await resolution.record_disbursement(
        db_session, yusuf, aisha_app.id, amount=Decimal("40"), method=DisbursementMethod.CASH,
    )
    await resolution.record_disbursement(
        db_session, yusuf, omar_app.id, amount=Decimal("90"), method=DisbursementMethod.CASH,
    )

    summary = await resolution.get_network_summary(db_session, super_admin(), limit=1)

    assert summary["total_disbursed"] == Decimal("130")
    assert summary["total_applicants"] == 2
    assert len(summary["applicants"]) == 1
    assert summary["applicants"][0]["applicant_name"] == "Omar Siddiqui"


@pytest.mark.asyncio
async def test_network_summary_requires_super_admin(db_session):
    with pytest.raises(PermissionDeniedError):
        await resolution.get_network_summary(db_session, admin_yusuf())
