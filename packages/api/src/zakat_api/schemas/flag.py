# This project was developed with assistance from AI tools.
"""Schemas for applicant flags."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from zakat_db.enums import FlagSeverity


class FlagCreate(BaseModel):
    applicant_id: str = Field(min_length=1)
    reason: str = Field(min_length=1, max_length=5000)
    severity: FlagSeverity
    application_id: int | None = None


class FlagResolve(BaseModel):
    resolution_notes: str = Field(min_length=1, max_length=5000)


class FlagItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    applicant_id: str
    applicant_name: str
    applicant_email: str | None = None
    reason: str
    severity: FlagSeverity
    application_id: int | None = None
    application_number: str | None = None
    flagged_by: str
    flagged_by_name: str
    flagged_by_masjid: int | None = None
    is_active: bool
    resolved_at: datetime | None = None
    resolved_by: str | None = None
    resolution_notes: str | None = None
    created_at: datetime


class FlagEnvelope(BaseModel):
    success: bool = True
    data: FlagItem


class FlagListResponse(BaseModel):
    success: bool = True
    data: list[FlagItem]
