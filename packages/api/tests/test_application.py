# This project was developed with assistance from AI tools.
"""Tests for the application repository: drafts, visibility, listing."""

from decimal import Decimal

import pytest
from zakat_db.enums import ApplicationStatus, HistoryAction, UserRole

from zakat_api.schemas.auth import UserContext
from zakat_api.services import application as app_service
from zakat_api.services import assignment
from zakat_api.services.errors import (
    FailedPreconditionError,
    NotFoundError,
    PermissionDeniedError,
)

from .factories import claimed_application, draft_application, submitted_application
from .functional.personas import (
    AISHA_USER_ID,
    NOOR_MASJID_ID,
    admin_bilal,
    admin_fatima,
    admin_without_masjid,
    admin_yusuf,
    applicant_aisha,
    applicant_omar,
    super_admin,
)

# ---------------------------------------------------------------------------
# Drafts
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_copies_profile_snapshot(db_session):
    app = await app_service.create_application(
        db_session, applicant_aisha(),
        {"request_type": "utilities", "amount_requested": Decimal("300"), "status": "approved"},
    )

    assert app.status == ApplicationStatus.DRAFT
    assert app.application_number is None
    assert app.applicant_id == AISHA_USER_ID
    assert app.applicant_name == "Aisha Rahman"
    assert app.applicant_email == "aisha@example.com"
    assert app.applicant_is_flagged is False
    assert app.request_type == "utilities"


@pytest.mark.asyncio
async def test_create_without_profile_builds_one(db_session):
    newcomer = UserContext(
        user_id="new-applicant", role=UserRole.APPLICANT, email="new@example.com", name="Zaid Noor",
    )
    app = await app_service.create_application(db_session, newcomer, {})

    assert app.applicant_name == "Zaid Noor"
    profile = await app_service.get_or_create_profile(db_session, newcomer)
    assert (profile.first_name, profile.last_name) == ("Zaid", "Noor")


@pytest.mark.asyncio
async def test_update_draft_changes_only_given_fields(db_session):
    aisha = applicant_aisha()
    draft = await draft_application(db_session, aisha, description="Rent for October")

    app = await app_service.update_draft(
        db_session, aisha, draft.id, {"amount_requested": Decimal("1500"), "status": "approved"},
    )

    assert app.amount_requested == Decimal("1500")
    assert app.description == "Rent for October"
    assert app.status == ApplicationStatus.DRAFT
    history = await app_service.get_application_history(db_session, aisha, app.id)
    assert history[0].action == HistoryAction.EDITED
    assert history[0].event_metadata == {"fields": ["amount_requested"]}


@pytest.mark.asyncio
async def test_update_after_submit_fails(db_session):
    aisha = applicant_aisha()
    app = await submitted_application(db_session, aisha)
    with pytest.raises(FailedPreconditionError):
        await app_service.update_draft(db_session, aisha, app.id, {"description": "late edit"})


@pytest.mark.asyncio
async def test_update_someone_elses_draft_denied(db_session):
    draft = await draft_application(db_session, applicant_aisha())
    with pytest.raises(PermissionDeniedError):
        await app_service.update_draft(db_session, applicant_omar(), draft.id, {"description": "x"})


# ---------------------------------------------------------------------------
# Visibility
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_unknown_application(db_session):
    with pytest.raises(NotFoundError):
        await app_service.get_application(db_session, super_admin(), 404)


@pytest.mark.asyncio
async def test_applicant_sees_only_own(db_session):
    app = await submitted_application(db_session, applicant_aisha())

    assert (await app_service.get_application(db_session, applicant_aisha(), app.id)).id == app.id
    with pytest.raises(PermissionDeniedError):
        await app_service.get_application(db_session, applicant_omar(), app.id)


@pytest.mark.asyncio
async def test_pool_visible_to_every_zakat_admin(db_session):
    app = await submitted_application(db_session, applicant_aisha())
    for admin in (admin_yusuf(), admin_bilal(), admin_without_masjid()):
        assert (await app_service.get_application(db_session, admin, app.id)).id == app.id


@pytest.mark.asyncio
async def test_claimed_visible_only_within_masjid(db_session):
    app = await claimed_application(db_session, applicant_aisha(), admin_yusuf())

    assert (await app_service.get_application(db_session, admin_fatima(), app.id)).id == app.id
    with pytest.raises(PermissionDeniedError):
        await app_service.get_application(db_session, admin_bilal(), app.id)


@pytest.mark.asyncio
async def test_drafts_hidden_from_zakat_admins(db_session):
    draft = await draft_application(db_session, applicant_aisha())
    with pytest.raises(PermissionDeniedError):
        await app_service.get_application(db_session, admin_yusuf(), draft.id)
    assert (await app_service.get_application(db_session, super_admin(), draft.id)).id == draft.id


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


async def _network(session):
    """Aisha: draft + pool app. Omar: app claimed by Yusuf (Al-Noor)."""
    aisha, omar = applicant_aisha(), applicant_omar()
    draft = await draft_application(session, aisha)
    pool = await submitted_application(session, aisha)
    claimed = await claimed_application(session, omar, admin_yusuf())
    return draft, pool, claimed


@pytest.mark.asyncio
async def test_applicant_lists_own_newest_first(db_session):
    draft, pool, _ = await _network(db_session)

    apps, total = await app_service.list_applications(db_session, applicant_aisha())

    assert [a.id for a in apps] == [pool.id, draft.id]
    assert total == 2


@pytest.mark.asyncio
async def test_pool_only_listing(db_session):
    _, pool, _ = await _network(db_session)

    apps, total = await app_service.list_applications(db_session, admin_bilal(), pool_only=True)

    assert [a.id for a in apps] == [pool.id]
    assert total == 1


@pytest.mark.asyncio
async def test_zakat_admin_defaults_to_own_masjid(db_session):
    _, _, claimed = await _network(db_session)

    apps, _ = await app_service.list_applications(db_session, admin_fatima())
    assert [a.id for a in apps] == [claimed.id]

    apps, _ = await app_service.list_applications(db_session, admin_bilal())
    assert apps == []


@pytest.mark.asyncio
async def test_zakat_admin_without_masjid_lists_nothing_by_default(db_session):
    await _network(db_session)
    apps, total = await app_service.list_applications(db_session, admin_without_masjid())
    assert (apps, total) == ([], 0)


@pytest.mark.asyncio
async def test_super_admin_filters(db_session):
    draft, pool, claimed = await _network(db_session)
    admin = super_admin()

    apps, total = await app_service.list_applications(db_session, admin)
    assert total == 3

    apps, _ = await app_service.list_applications(db_session, admin, applicant_id=AISHA_USER_ID)
    assert {a.id for a in apps} == {draft.id, pool.id}

    apps, _ = await app_service.list_applications(db_session, admin, masjid_id=NOOR_MASJID_ID)
    assert [a.id for a in apps] == [claimed.id]

    apps, _ = await app_service.list_applications(
        db_session, admin, status=ApplicationStatus.DRAFT,
    )
    assert [a.id for a in apps] == [draft.id]


@pytest.mark.asyncio
async def test_limit_caps_page_but_not_total(db_session):
    await _network(db_session)
    apps, total = await app_service.list_applications(db_session, super_admin(), limit=2)
    assert len(apps) == 2
    assert total == 3


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_history_newest_first(db_session):
    yusuf = admin_yusuf()
    app = await claimed_application(db_session, applicant_aisha(), yusuf)
    await assignment.release_application(db_session, yusuf, app.id, "Wrong masjid")

    history = await app_service.get_application_history(db_session, applicant_aisha(), app.id)

    assert [h.action for h in history] == [
        HistoryAction.RELEASED,
        HistoryAction.ASSIGNED,
        HistoryAction.SUBMITTED,
        HistoryAction.CREATED,
    ]
    released = history[0]
    assert released.previous_status == ApplicationStatus.UNDER_REVIEW
    assert released.new_status == ApplicationStatus.SUBMITTED
    assert released.previous_assignee == yusuf.user_id
    assert released.event_metadata == {"reason": "Wrong masjid"}


@pytest.mark.asyncio
async def test_history_hidden_from_other_applicants(db_session):
    app = await submitted_application(db_session, applicant_aisha())
    with pytest.raises(PermissionDeniedError):
        await app_service.get_application_history(db_session, applicant_omar(), app.id)
