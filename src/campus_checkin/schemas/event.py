"""Event-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from campus_checkin.schemas.token import AttendanceToken


class EventQRCodeResponse(BaseModel):
    """Freshly generated check-in code for an event."""

    token: AttendanceToken
    payload: str = Field(..., description="Exact text encoded in the QR image")
    image: str = Field(..., description="PNG image as a data URL")
    valid_from: datetime
    valid_until: datetime
