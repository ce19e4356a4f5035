"""Attendance check-in endpoints."""

from fastapi import APIRouter, status

from campus_checkin.core.errors import CheckInError
from campus_checkin.schemas.attendance import (
    AttendanceLogResponse,
    AttendanceResult,
    AttendanceStats,
    AttendanceStatus,
    ManualAttendanceRequest,
    ScanRequest,
)

from ..dependencies import CurrentUserDep, RecorderDep
from ..errors import to_http_exception

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.post("/scan", response_model=AttendanceResult)
async def scan_attendance(
    payload: ScanRequest,
    current_user: CurrentUserDep,
    recorder: RecorderDep,
) -> AttendanceResult:
    """Check in using a scanned QR payload.

    Invalid, expired or replayed codes return ``success=false`` with the
    itemized validation details rather than an error status.
    """
    try:
        return await recorder.process_scan(payload.qr_data, current_user, payload.attendee_id)
    except CheckInError as err:
        raise to_http_exception(err) from err


@router.post("/manual", response_model=AttendanceResult, status_code=status.HTTP_201_CREATED)
async def manual_attendance(
    payload: ManualAttendanceRequest,
    current_user: CurrentUserDep,
    recorder: RecorderDep,
) -> AttendanceResult:
    """Log attendance for a profile chosen by an event admin."""
    try:
        return await recorder.log_manual(payload.event_id, payload.profile_id, current_user)
    except CheckInError as err:
        raise to_http_exception(err) from err


@router.get("/events/{event_id}/stats", response_model=AttendanceStats)
async def attendance_stats(
    event_id: str,
    current_user: CurrentUserDep,
    recorder: RecorderDep,
) -> AttendanceStats:
    """Registration and check-in figures for an event (admins only)."""
    try:
        event = await recorder.get_event(event_id)
        await recorder.ensure_event_admin(event, current_user.user_id, current_user.role)
        return await recorder.get_stats(event.id)
    except CheckInError as err:
        raise to_http_exception(err) from err


@router.get("/events/{event_id}/logs", response_model=list[AttendanceLogResponse])
async def attendance_logs(
    event_id: str,
    current_user: CurrentUserDep,
    recorder: RecorderDep,
) -> list[AttendanceLogResponse]:
    """All attendance records for an event, newest first (admins only)."""
    try:
        logs = await recorder.list_logs(event_id, current_user)
    except CheckInError as err:
        raise to_http_exception(err) from err
    return [AttendanceLogResponse.model_validate(log) for log in logs]


@router.get("/events/{event_id}/me", response_model=AttendanceStatus)
async def my_attendance(
    event_id: str,
    current_user: CurrentUserDep,
    recorder: RecorderDep,
) -> AttendanceStatus:
    """Whether the current user has checked in to an event."""
    try:
        attended = await recorder.has_attended(event_id, current_user.user_id)
    except CheckInError as err:
        raise to_http_exception(err) from err
    return AttendanceStatus(attended=attended)
