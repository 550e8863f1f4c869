# This project was developed with assistance from AI tools.
"""Schemas for application history."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from zakat_db.enums import ApplicationStatus, HistoryAction


class HistoryEntry(BaseModel):
    """Immutable history entry."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    application_id: int
    action: HistoryAction
    performed_by: str
    performed_by_name: str
    performed_by_role: str | None = None
    performed_by_masjid: int | None = None
    previous_status: ApplicationStatus | None = None
    new_status: ApplicationStatus | None = None
    previous_assignee: str | None = None
    new_assignee: str | None = None
    details: str
    metadata: dict | None = Field(default=None, validation_alias="event_metadata")
    created_at: datetime


class HistoryListResponse(BaseModel):
    success: bool = True
    data: list[HistoryEntry]
