"""Shared API dependencies for authentication and check-in services."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from campus_checkin.core.security import decode_access_token
from campus_checkin.db.session import get_db
from campus_checkin.models import Profile
from campus_checkin.services.attendance import AttendanceRecorder
from campus_checkin.services.generator import TokenGenerator
from campus_checkin.services.replay import ReplayGuard, get_replay_guard
from campus_checkin.services.signing import SignatureEngine, get_signature_engine
from campus_checkin.services.store import SqlRecordStore, get_record_store
from campus_checkin.services.validator import TokenValidator

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> Profile:
    """Get the current authenticated profile from a JWT token.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        Profile of the authenticated user

    Raises:
        HTTPException: If token is invalid or profile not found
    """
    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        ) from err

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )

    profile = db.get(Profile, subject)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return profile


def get_signature_engine_dep() -> SignatureEngine:
    """Return the shared signature engine."""
    return get_signature_engine()


def get_replay_guard_dep() -> ReplayGuard:
    """Return the process-wide replay guard."""
    return get_replay_guard()


def get_record_store_dep() -> SqlRecordStore:
    """Return the record store bound to the application database."""
    return get_record_store()


def get_token_generator(
    engine: Annotated[SignatureEngine, Depends(get_signature_engine_dep)],
) -> TokenGenerator:
    return TokenGenerator(engine)


def get_token_validator(
    engine: Annotated[SignatureEngine, Depends(get_signature_engine_dep)],
    replay_guard: Annotated[ReplayGuard, Depends(get_replay_guard_dep)],
) -> TokenValidator:
    return TokenValidator(engine, replay_guard)


def get_attendance_recorder(
    store: Annotated[SqlRecordStore, Depends(get_record_store_dep)],
    validator: Annotated[TokenValidator, Depends(get_token_validator)],
) -> AttendanceRecorder:
    return AttendanceRecorder(store, validator)


# Type aliases for dependency injection
CurrentUserDep = Annotated[Profile, Depends(get_current_user)]
TokenGeneratorDep = Annotated[TokenGenerator, Depends(get_token_generator)]
RecorderDep = Annotated[AttendanceRecorder, Depends(get_attendance_recorder)]
