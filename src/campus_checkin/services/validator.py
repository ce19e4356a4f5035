"""Validation of scanned attendance tokens.

Checks run in a fixed order and stop at the first failure:

1. parse            -> ``TokenFormatError``
2. completeness     -> ``TokenFormatError``
3. version          -> ``UnsupportedVersionError``
4. absolute age     -> ``ExpiredError``
5. signature        -> ``SignatureError``
6. time window      -> ``TimeWindowError``
7. replay           -> ``ReplayError``

Expected failures never escape :meth:`TokenValidator.validate`; they are
folded into a :class:`ValidationResult` with per-stage flags.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta

from campus_checkin.core.errors import (
    CheckInError,
    ExpiredError,
    ReplayError,
    SignatureError,
    TimeWindowError,
    TokenFormatError,
    UnsupportedVersionError,
)
from campus_checkin.core.settings import settings
from campus_checkin.db.time import ensure_aware, utcnow
from campus_checkin.schemas.attendance import ValidationDetails, ValidationResult
from campus_checkin.schemas.token import AttendanceToken
from campus_checkin.services.codec import TokenCodec
from campus_checkin.services.replay import Clock, ReplayGuard
from campus_checkin.services.signing import SignatureEngine

logger = logging.getLogger(__name__)


class TokenValidator:
    """State machine that decides whether a scanned token admits check-in."""

    def __init__(
        self,
        engine: SignatureEngine,
        replay_guard: ReplayGuard,
        *,
        codec: TokenCodec | None = None,
        clock: Clock = utcnow,
        max_age: timedelta | None = None,
        clock_skew: timedelta | None = None,
        grace_before: timedelta | None = None,
        grace_after: timedelta | None = None,
        supported_versions: Iterable[str] | None = None,
        accept_legacy: bool | None = None,
    ) -> None:
        self.engine = engine
        self.replay_guard = replay_guard
        self.codec = codec or TokenCodec()
        self._clock = clock
        self.max_age = settings.max_token_age if max_age is None else max_age
        self.clock_skew = settings.clock_skew_tolerance if clock_skew is None else clock_skew
        self.grace_before = settings.grace_before if grace_before is None else grace_before
        self.grace_after = settings.grace_after if grace_after is None else grace_after
        self.supported_versions = frozenset(
            settings.qr_supported_versions if supported_versions is None else supported_versions
        )
        self.accept_legacy = (
            settings.qr_accept_legacy_tokens if accept_legacy is None else accept_legacy
        )

    def validate(
        self,
        raw: str,
        event_start: datetime | None = None,
        event_end: datetime | None = None,
    ) -> ValidationResult:
        """Validate a scanned string, optionally against authoritative event times."""
        details = ValidationDetails()
        try:
            token = self.authenticate(raw, details)
            self._check_time_window(token, self._clock(), event_start, event_end)
            details.time_valid = True

            if token.is_legacy:
                logger.info("Accepted legacy token for event %s without replay check", token.event_id)
            else:
                self._check_replay(token)
                details.replay_check = True
        except CheckInError as err:
            return ValidationResult(
                is_valid=False,
                error=err.message,
                error_code=err.code,
                details=details,
            )

        return ValidationResult(
            is_valid=True,
            event_id=token.event_id,
            metadata=token.metadata,
            details=details,
        )

    def authenticate(
        self, raw: str, details: ValidationDetails | None = None
    ) -> AttendanceToken:
        """Run the stages that need no event record, up to and including the signature.

        Nothing in the returned token may be trusted before this succeeds.
        Stage flags are set on ``details`` as each stage passes.

        Raises:
            CheckInError: The first failing stage's error.
        """
        if details is None:
            details = ValidationDetails()
        token = self.codec.decode(raw)
        self._check_completeness(token)
        details.format_valid = True
        self._check_version(token)
        self._check_age(token, self._clock())
        self._check_signature(token)
        details.hash_valid = True
        return token

    def _check_completeness(self, token: AttendanceToken) -> None:
        if token.is_legacy:
            if not self.accept_legacy:
                raise TokenFormatError("Invalid QR code format: missing required fields (nonce)")
            return
        if token.nonce is None:
            raise TokenFormatError("Invalid QR code format: missing required fields (nonce)")
        if token.version is None:
            raise TokenFormatError("Invalid QR code format: missing required fields (version)")

    def _check_version(self, token: AttendanceToken) -> None:
        if token.version is not None and token.version not in self.supported_versions:
            raise UnsupportedVersionError(f"QR code version {token.version} is not supported")

    def _check_age(self, token: AttendanceToken, now: datetime) -> None:
        age = now - token.issued_at
        if age > self.max_age:
            raise ExpiredError("QR code has expired (too old)")
        if -age > self.clock_skew:
            raise ExpiredError("QR code timestamp is in the future")

    def _check_signature(self, token: AttendanceToken) -> None:
        if not self.engine.verify(token.event_id, token.issued_at_iso, token.nonce, token.signature):
            logger.warning("Rejected QR code with invalid signature for event %s", token.event_id)
            raise SignatureError("Invalid QR code signature")

    def _check_time_window(
        self,
        token: AttendanceToken,
        now: datetime,
        event_start: datetime | None,
        event_end: datetime | None,
    ) -> None:
        valid_from = token.metadata.valid_from
        valid_until = token.metadata.valid_until
        if valid_from is not None and now < valid_from:
            raise TimeWindowError("QR code is outside valid time window")
        if valid_until is not None and now > valid_until:
            raise TimeWindowError("QR code is outside valid time window")

        if event_start is not None and now < ensure_aware(event_start) - self.grace_before:
            raise TimeWindowError("QR code is outside valid time window")
        if event_end is not None and now > ensure_aware(event_end) + self.grace_after:
            raise TimeWindowError("QR code is outside valid time window")

    def _check_replay(self, token: AttendanceToken) -> None:
        if not self.replay_guard.check_and_record(token.replay_key):
            logger.info("Rejected replayed QR code for event %s", token.event_id)
            raise ReplayError("QR code was recently scanned (replay protection)")
