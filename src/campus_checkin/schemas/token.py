"""Pydantic schema for the attendance token wire format.

The wire names (``eventId``, ``timestamp``, ``hash`` ...) are what the QR
image carries; Python code uses the snake_case attribute names. Unknown keys
and loosely typed values are rejected before any field is trusted.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer

from campus_checkin.db.time import isoformat_millis, truncate_millis


def _parse_timestamp(value: object) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError as err:
            raise ValueError(f"Invalid ISO-8601 timestamp: {value!r}") from err
    else:
        raise ValueError("Timestamps must be ISO-8601 strings")
    if parsed.tzinfo is None:
        raise ValueError("Timestamps must carry a timezone")
    return truncate_millis(parsed.astimezone(UTC))


Timestamp = Annotated[
    datetime,
    BeforeValidator(_parse_timestamp),
    PlainSerializer(isoformat_millis, return_type=str),
]


class TokenMetadata(BaseModel):
    """Display fields and the check-in window embedded in a token."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    event_title: str = Field(..., alias="eventTitle", max_length=300)
    club_name: str = Field(..., alias="clubName", max_length=300)
    location: str = Field(..., max_length=300)
    valid_from: Timestamp | None = Field(None, alias="validFrom")
    valid_until: Timestamp | None = Field(None, alias="validUntil")


class AttendanceToken(BaseModel):
    """Signed, time-bounded attendance token."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    event_id: str = Field(..., alias="eventId", min_length=1, max_length=128)
    issued_at: Timestamp = Field(..., alias="timestamp")
    signature: str = Field(..., alias="hash", pattern=r"^[0-9a-fA-F]{64}$")
    nonce: str | None = Field(None, pattern=r"^[0-9a-fA-F]{32,128}$")
    version: str | None = Field(None, min_length=1, max_length=16)
    metadata: TokenMetadata

    @property
    def issued_at_iso(self) -> str:
        """Canonical timestamp string covered by the signature."""
        return isoformat_millis(self.issued_at)

    @property
    def is_legacy(self) -> bool:
        """Legacy tokens predate nonces and version tags."""
        return self.nonce is None and self.version is None

    @property
    def replay_key(self) -> str:
        return f"{self.signature.lower()}-{self.issued_at_iso}"
