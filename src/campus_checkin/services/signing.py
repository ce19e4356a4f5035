"""Signature engine holding the process-wide QR secret."""
from __future__ import annotations

import logging
from functools import lru_cache

from campus_checkin.core import security
from campus_checkin.core.settings import settings

logger = logging.getLogger(__name__)


class SignatureEngine:
    """Signs and verifies attendance tokens with a secret loaded once."""

    __slots__ = ("_secret",)

    def __init__(self, secret: str | bytes) -> None:
        if not secret:
            raise ValueError("QR signing secret must not be empty")
        self._secret = secret.encode("utf-8") if isinstance(secret, str) else bytes(secret)

    def __repr__(self) -> str:
        return "SignatureEngine(secret=<redacted>)"

    def sign(self, event_id: str, issued_at: str, nonce: str | None) -> str:
        """Return the hex signature for the given token fields."""
        return security.sign(event_id, issued_at, nonce, self._secret)

    def verify(self, event_id: str, issued_at: str, nonce: str | None, signature: str) -> bool:
        """Return True if ``signature`` was produced by this engine's secret."""
        return security.verify(event_id, issued_at, nonce, signature, self._secret)


@lru_cache(maxsize=1)
def get_signature_engine() -> SignatureEngine:
    """Return the shared signature engine built from settings."""
    logger.debug("Initialising QR signature engine")
    return SignatureEngine(settings.qr_secret_key.get_secret_value())
