# This project was developed with assistance from AI tools.
"""Application request/response schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from zakat_db.enums import ApplicationStatus, DisbursementMethod, ResolutionDecision

from . import Pagination


class ApplicationCreate(BaseModel):
    """Create a new draft application. Status is always ``draft``."""

    request_type: str | None = Field(default=None, max_length=100)
    amount_requested: Decimal | None = Field(default=None, gt=0)
    description: str | None = None
    form_data: dict | None = None


class ApplicationUpdate(BaseModel):
    """Partial update to a draft, by its applicant."""

    request_type: str | None = Field(default=None, max_length=100)
    amount_requested: Decimal | None = Field(default=None, gt=0)
    description: str | None = None
    form_data: dict | None = None


class AssignRequest(BaseModel):
    """Claim (no body / no assignee) or assign to another admin (super admin)."""

    assign_to_user_id: str | None = None


class ReleaseRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


class StatusChangeRequest(BaseModel):
    new_status: ApplicationStatus
    reason: str | None = Field(default=None, max_length=1000)
    metadata: dict | None = None
    disbursed_amount: Decimal | None = None


class ResolveRequest(BaseModel):
    decision: ResolutionDecision
    amount_approved: Decimal | None = None
    disbursement_method: DisbursementMethod | None = None
    rejection_reason: str | None = None
    notes: str | None = Field(default=None, max_length=5000)


class NoteCreate(BaseModel):
    content: str
    is_internal: bool = True


class ApplicantSnapshot(BaseModel):
    """Applicant details copied at creation; only ``is_flagged`` stays live."""

    applicant_id: str
    name: str
    email: str
    phone: str | None = None
    is_flagged: bool = False


class ResolutionSummary(BaseModel):
    decision: ResolutionDecision | None = None
    decided_by: str | None = None
    decided_by_name: str | None = None
    decided_by_masjid: int | None = None
    decided_at: datetime | None = None
    amount_approved: Decimal | None = None
    disbursement_method: str | None = None
    rejection_reason: str | None = None
    amount_disbursed: Decimal | None = None
    disbursed_at: datetime | None = None
    disbursed_by: str | None = None


class ApplicationResponse(BaseModel):
    """Single application response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    application_number: str | None = None
    status: ApplicationStatus
    applicant_snapshot: ApplicantSnapshot
    request_type: str | None = None
    amount_requested: Decimal | None = None
    description: str | None = None
    form_data: dict | None = None
    assigned_to: str | None = None
    assigned_to_masjid: int | None = None
    assigned_to_masjid_name: str | None = None
    assigned_to_masjid_zip_code: str | None = None
    assigned_at: datetime | None = None
    resolution: ResolutionSummary | None = None
    created_at: datetime
    submitted_at: datetime | None = None
    updated_at: datetime


class ApplicationEnvelope(BaseModel):
    success: bool = True
    data: ApplicationResponse


class ApplicationListResponse(BaseModel):
    """Limited list of applications, newest first."""

    success: bool = True
    data: list[ApplicationResponse]
    pagination: Pagination


class NoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    content: str
    is_internal: bool
    created_by: str
    created_by_name: str
    created_by_masjid: int | None = None
    created_at: datetime


class NoteEnvelope(BaseModel):
    success: bool = True
    data: NoteResponse


class NoteListResponse(BaseModel):
    success: bool = True
    data: list[NoteResponse]
