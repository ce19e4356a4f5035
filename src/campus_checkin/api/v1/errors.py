"""Translation of check-in errors into HTTP responses."""

import logging

from fastapi import HTTPException, status

from campus_checkin.core.errors import (
    AuthorizationError,
    CheckInError,
    DuplicateAttendanceError,
    EventNotFoundError,
    ProfileNotFoundError,
    StorageError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[CheckInError], int], ...] = (
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (DuplicateAttendanceError, status.HTTP_409_CONFLICT),
    (EventNotFoundError, status.HTTP_404_NOT_FOUND),
    (ProfileNotFoundError, status.HTTP_404_NOT_FOUND),
    (StorageError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def to_http_exception(err: CheckInError) -> HTTPException:
    """Map a check-in error onto a status code and its user-facing message."""
    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(err, error_type):
            status_code = code
            break

    if isinstance(err, StorageError):
        logger.error("Attendance storage failure: %s", err, exc_info=err)
        # Never leak store details; the user only needs to retry.
        return HTTPException(
            status_code=status_code,
            detail={"code": StorageError.code, "message": StorageError.user_message},
        )
    return HTTPException(status_code=status_code, detail={"code": err.code, "message": err.message})
