"""Exception taxonomy for attendance check-in.

Every error carries a stable ``code`` and a ``user_message`` that tells an
attendee or organizer what to do next (rescan, wait, or contact someone).
"""

from __future__ import annotations


class CheckInError(Exception):
    """Base class for all check-in failures."""

    code = "checkin_error"
    user_message = "Check-in failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.user_message)

    @property
    def message(self) -> str:
        return str(self)


class TokenFormatError(CheckInError):
    """Scanned text is not a syntactically valid attendance token."""

    code = "invalid_format"
    user_message = "Invalid QR code format. Make sure you are scanning an event check-in code."


class UnsupportedVersionError(TokenFormatError):
    """Token carries a version tag this service does not understand."""

    code = "unsupported_version"
    user_message = "This QR code version is not supported. Ask the organizer to show a fresh code."


class SignatureError(CheckInError):
    """Token is well-formed but its signature does not match."""

    code = "invalid_signature"
    user_message = "Invalid QR code signature. This code was not issued for this event."


class ExpiredError(CheckInError):
    """Token is older than the absolute age ceiling."""

    code = "expired"
    user_message = "QR code has expired (too old). Ask the organizer to refresh the code."


class TimeWindowError(ExpiredError):
    """Check-in attempted outside the event's valid time window."""

    code = "outside_time_window"
    user_message = "QR code is outside the valid check-in time window for this event."


class ReplayError(CheckInError):
    """Token was accepted moments ago and is being scanned again."""

    code = "replayed"
    user_message = (
        "QR code was recently scanned. Wait a few minutes before scanning again, "
        "or check whether you are already checked in."
    )


class AuthorizationError(CheckInError):
    """Actor lacks admin rights over the event's club."""

    code = "forbidden"
    user_message = "You do not have permission to manage attendance for this event."


class DuplicateAttendanceError(CheckInError):
    """Attendee already has an attendance record for the event."""

    code = "already_logged"
    user_message = "Attendance already logged for this event."


class EventNotFoundError(CheckInError):
    code = "event_not_found"
    user_message = "Event not found. Contact the organizer."


class ProfileNotFoundError(CheckInError):
    code = "profile_not_found"
    user_message = "Attendee profile not found."


class StorageError(CheckInError):
    """The record store failed; the operation may be retried by the user."""

    code = "storage_error"
    user_message = "Could not reach the attendance service. Please try again."


class UniqueViolationError(StorageError):
    """Insert rejected by a uniqueness constraint."""

    code = "unique_violation"
