"""Attendance-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from campus_checkin.models.attendance import AttendanceMethod
from campus_checkin.schemas.token import TokenMetadata


class ValidationDetails(BaseModel):
    """Itemized outcome of each validator stage."""

    model_config = ConfigDict(populate_by_name=True)

    format_valid: bool = Field(False, alias="formatValid")
    hash_valid: bool = Field(False, alias="hashValid")
    time_valid: bool = Field(False, alias="timeValid")
    replay_check: bool = Field(False, alias="replayCheck")


class ValidationResult(BaseModel):
    """Structured result of validating a scanned token."""

    is_valid: bool
    event_id: str | None = None
    metadata: TokenMetadata | None = None
    error: str | None = None
    error_code: str | None = None
    details: ValidationDetails = Field(default_factory=ValidationDetails)


class AttendanceResult(BaseModel):
    """Outcome of a check-in attempt returned to the scanning client."""

    success: bool
    event_id: str | None = None
    event_title: str | None = None
    attendance_id: str | None = None
    method: AttendanceMethod | None = None
    validation_details: ValidationDetails | None = None
    error: str | None = None
    error_code: str | None = None


class ScanRequest(BaseModel):
    """Raw text decoded from a QR image by the scanning device."""

    qr_data: str = Field(..., min_length=1, description="Decoded QR payload")
    attendee_id: str | None = Field(
        None, description="Profile being checked in; defaults to the scanner"
    )


class ManualAttendanceRequest(BaseModel):
    """Admin-entered attendance for a profile picked from the directory."""

    event_id: str = Field(..., min_length=1)
    profile_id: str = Field(..., min_length=1)


class RecentAttendee(BaseModel):
    id: str
    name: str
    usn: str
    timestamp: datetime
    method: AttendanceMethod


class AttendanceStats(BaseModel):
    """Aggregate attendance figures for an event."""

    total_registered: int
    total_attended: int
    attendance_rate: float = Field(..., description="Percentage, rounded to 2 decimals")
    recent_attendees: list[RecentAttendee]


class AttendanceLogResponse(BaseModel):
    """Persisted attendance record as returned to admins."""

    id: str
    event_id: str
    profile_id: str
    method: AttendanceMethod
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class AttendanceStatus(BaseModel):
    attended: bool
