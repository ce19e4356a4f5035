"""Attendance token (de)serialization.

Tokens travel as compact JSON objects; decoding is strict so anything that is
not a token shape fails with ``TokenFormatError`` before the secret is needed.
"""

from __future__ import annotations

import json

from pydantic import ValidationError

from campus_checkin.core.errors import TokenFormatError
from campus_checkin.core.settings import settings
from campus_checkin.schemas.token import AttendanceToken

_REQUIRED_WIRE_FIELDS = ("eventId", "timestamp", "hash", "metadata")
_WIRE_FIELDS = frozenset(_REQUIRED_WIRE_FIELDS + ("nonce", "version"))
_METADATA_WIRE_FIELDS = frozenset(("eventTitle", "clubName", "location", "validFrom", "validUntil"))


class TokenCodec:
    """Encode tokens to transport strings and decode them back."""

    def __init__(self, max_payload_bytes: int | None = None) -> None:
        self.max_payload_bytes = (
            settings.qr_max_payload_bytes if max_payload_bytes is None else max_payload_bytes
        )

    @staticmethod
    def encode(token: AttendanceToken) -> str:
        """Serialize ``token`` to the text embedded in the QR image."""
        return token.model_dump_json(by_alias=True, exclude_none=True)

    def decode(self, raw: str) -> AttendanceToken:
        """Parse and schema-check a scanned string.

        Raises:
            TokenFormatError: If the input is not JSON, not an object, or does
                not match the token schema.
        """
        if not isinstance(raw, str) or not raw.strip():
            raise TokenFormatError("Invalid QR code data format")
        try:
            size = len(raw.encode("utf-8"))
        except UnicodeEncodeError as err:
            # Lone surrogates cannot come from a real QR decoder.
            raise TokenFormatError("Invalid QR code data format: invalid text") from err
        if size > self.max_payload_bytes:
            raise TokenFormatError("Invalid QR code data format: payload too large")

        try:
            data = json.loads(raw)
        except (ValueError, RecursionError) as err:
            raise TokenFormatError("Invalid QR code data format") from err
        if not isinstance(data, dict):
            raise TokenFormatError("Invalid QR code data format")

        unknown = set(data) - _WIRE_FIELDS
        if isinstance(data.get("metadata"), dict):
            unknown |= {f"metadata.{key}" for key in set(data["metadata"]) - _METADATA_WIRE_FIELDS}
        if unknown:
            raise TokenFormatError(
                f"Invalid QR code format: unexpected fields ({', '.join(sorted(unknown))})"
            )

        missing = [name for name in _REQUIRED_WIRE_FIELDS if not data.get(name)]
        if missing:
            raise TokenFormatError(
                f"Invalid QR code format: missing required fields ({', '.join(missing)})"
            )

        try:
            return AttendanceToken.model_validate(data)
        except ValidationError as err:
            fields = sorted({".".join(str(part) for part in e["loc"]) for e in err.errors()})
            raise TokenFormatError(
                f"Invalid QR code format: bad fields ({', '.join(fields)})"
            ) from err


def encode(token: AttendanceToken) -> str:
    """Module-level shortcut for :meth:`TokenCodec.encode`."""
    return TokenCodec.encode(token)


def decode(raw: str) -> AttendanceToken:
    """Module-level shortcut for :meth:`TokenCodec.decode` with default limits."""
    return TokenCodec().decode(raw)
