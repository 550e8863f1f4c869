# This project was developed with assistance from AI tools.
"""Schemas for disbursement endpoints."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from zakat_db.enums import DisbursementMethod


class DisbursementCreate(BaseModel):
    amount: Decimal = Field(gt=0)
    method: DisbursementMethod
    reference_number: str | None = Field(default=None, max_length=100)
    notes: str | None = Field(default=None, max_length=5000)
    period_month: int | None = Field(default=None, ge=1, le=12)
    period_year: int | None = Field(default=None, ge=2000, le=2100)


class DisbursementItem(BaseModel):
    """Single immutable ledger row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    applicant_id: str
    amount: Decimal
    method: DisbursementMethod
    reference_number: str | None = None
    notes: str | None = None
    disbursed_by: str
    disbursed_by_name: str
    masjid_id: int | None = None
    masjid_name: str
    period_month: int | None = None
    period_year: int | None = None
    disbursed_at: datetime
    created_at: datetime


class DisbursementEnvelope(BaseModel):
    success: bool = True
    data: DisbursementItem


class ApplicationDisbursements(BaseModel):
    disbursements: list[DisbursementItem]
    total_disbursed: Decimal


class ApplicationDisbursementsResponse(BaseModel):
    success: bool = True
    data: ApplicationDisbursements


class MasjidBreakdown(BaseModel):
    masjid_id: int | None = None
    masjid_name: str
    total_disbursed: Decimal
    count: int


class ApplicantSummary(BaseModel):
    applicant_id: str
    total_disbursed: Decimal
    disbursement_count: int
    application_count: int
    by_masjid: list[MasjidBreakdown]


class ApplicantSummaryResponse(BaseModel):
    success: bool = True
    data: ApplicantSummary


class ApplicantTotals(BaseModel):
    applicant_id: str
    applicant_name: str
    total_disbursed: Decimal
    disbursement_count: int
    by_masjid: list[MasjidBreakdown]


class NetworkSummary(BaseModel):
    total_disbursed: Decimal
    total_applicants: int
    applicants: list[ApplicantTotals]


class NetworkSummaryResponse(BaseModel):
    success: bool = True
    data: NetworkSummary
