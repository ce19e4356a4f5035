"""Attendance token generation and QR rendering."""

from __future__ import annotations

import base64
import io
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from campus_checkin.core.settings import settings
from campus_checkin.db.time import ensure_aware, truncate_millis, utcnow
from campus_checkin.schemas.token import AttendanceToken, TokenMetadata
from campus_checkin.services.codec import TokenCodec
from campus_checkin.services.replay import Clock
from campus_checkin.services.signing import SignatureEngine

NONCE_BYTES = 16

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedToken:
    """A freshly signed token, its transport text and the rendered image."""

    token: AttendanceToken
    payload: str
    image: str


class TokenGenerator:
    """Builds signed attendance tokens for events.

    Nothing is persisted: every call yields a new nonce, timestamp and
    signature, and previously issued tokens stay valid until they age out.
    """

    def __init__(
        self,
        engine: SignatureEngine,
        *,
        clock: Clock = utcnow,
        grace_before: timedelta | None = None,
        grace_after: timedelta | None = None,
        version: str | None = None,
        box_size: int | None = None,
        border: int | None = None,
    ) -> None:
        self.engine = engine
        self._clock = clock
        self.grace_before = settings.grace_before if grace_before is None else grace_before
        self.grace_after = settings.grace_after if grace_after is None else grace_after
        self.version = version or settings.qr_token_version
        self.box_size = box_size or settings.qr_box_size
        self.border = settings.qr_border if border is None else border

    def build_token(
        self,
        event_id: str,
        event_title: str,
        club_name: str,
        location: str,
        event_start: datetime,
        event_end: datetime,
    ) -> AttendanceToken:
        """Assemble and sign a token without rendering it."""
        event_start = ensure_aware(event_start)
        event_end = ensure_aware(event_end)
        if event_end < event_start:
            raise ValueError("Event end time must not precede its start time")

        issued_at = truncate_millis(self._clock())
        nonce = secrets.token_hex(NONCE_BYTES)
        metadata = TokenMetadata(
            event_title=event_title,
            club_name=club_name,
            location=location,
            valid_from=event_start - self.grace_before,
            valid_until=event_end + self.grace_after,
        )
        unsigned = AttendanceToken(
            event_id=event_id,
            issued_at=issued_at,
            signature="0" * 64,
            nonce=nonce,
            version=self.version,
            metadata=metadata,
        )
        signature = self.engine.sign(event_id, unsigned.issued_at_iso, nonce)
        return unsigned.model_copy(update={"signature": signature})

    def render_image(self, payload: str) -> str:
        """Render ``payload`` verbatim as a PNG QR code data URL."""
        qr = qrcode.QRCode(
            version=None,
            error_correction=ERROR_CORRECT_M,  # ~15% error correction
            box_size=self.box_size,
            border=self.border,
        )
        qr.add_data(payload)
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")

        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        img_base64 = base64.b64encode(buffer.getvalue()).decode()
        return f"data:image/png;base64,{img_base64}"

    def generate(
        self,
        event_id: str,
        event_title: str,
        club_name: str,
        location: str,
        event_start: datetime,
        event_end: datetime,
    ) -> GeneratedToken:
        """Create a signed token for an event and render it as a QR image."""
        token = self.build_token(event_id, event_title, club_name, location, event_start, event_end)
        payload = TokenCodec.encode(token)
        image = self.render_image(payload)
        logger.info("Generated check-in QR code for event %s", event_id)
        return GeneratedToken(token=token, payload=payload, image=image)
