# src/campus_checkin/schemas/__init__.py
"""
Pydantic schemas for the token wire format and API request/response models.
"""

from .attendance import (
    AttendanceLogResponse,
    AttendanceResult,
    AttendanceStats,
    AttendanceStatus,
    ManualAttendanceRequest,
    RecentAttendee,
    ScanRequest,
    ValidationDetails,
    ValidationResult,
)
from .event import EventQRCodeResponse
from .token import AttendanceToken, TokenMetadata

__all__ = [
    "AttendanceLogResponse", "AttendanceResult", "AttendanceStats", "AttendanceStatus",
    "ManualAttendanceRequest", "RecentAttendee", "ScanRequest",
    "ValidationDetails", "ValidationResult",
    "EventQRCodeResponse",
    "AttendanceToken", "TokenMetadata",
]
