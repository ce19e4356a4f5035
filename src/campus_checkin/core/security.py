"""Keyed signatures for attendance tokens and JWT helpers for identities."""
from __future__ import annotations

import hashlib
import hmac
from datetime import UTC, datetime, timedelta

from jose import jwt

from campus_checkin.core.settings import settings

SIGNATURE_HEX_LENGTH = 64  # SHA-256


def _signing_payload(event_id: str, issued_at: str, nonce: str | None) -> bytes:
    parts = [event_id, issued_at]
    if nonce is not None:
        parts.append(nonce)
    # JSON escapes can still smuggle lone surrogates into decoded fields.
    return "-".join(parts).encode("utf-8", "surrogatepass")


def sign(event_id: str, issued_at: str, nonce: str | None, secret: bytes) -> str:
    """Return the HMAC-SHA256 hex digest binding the token fields to ``secret``.

    Args:
        event_id: Identifier of the event the token admits to.
        issued_at: Canonical ISO-8601 timestamp string exactly as transmitted.
        nonce: Hex nonce, or None for legacy tokens that predate nonces.
        secret: Process-wide signing secret.

    Returns:
        Lowercase 64-character hex digest.
    """
    return hmac.new(secret, _signing_payload(event_id, issued_at, nonce), hashlib.sha256).hexdigest()


def verify(
    event_id: str,
    issued_at: str,
    nonce: str | None,
    signature: str,
    secret: bytes,
) -> bool:
    """Recompute the signature and compare it in constant time.

    Returns:
        True if ``signature`` matches the fields under ``secret``; False otherwise.
    """
    if len(signature) != SIGNATURE_HEX_LENGTH:
        return False
    expected = sign(event_id, issued_at, nonce, secret)
    return hmac.compare_digest(expected.encode("ascii"), signature.lower().encode("ascii", "replace"))


def create_access_token(subject: str, extra_claims: dict[str, str] | None = None) -> str:
    """Create JWT access token for user authentication."""
    to_encode: dict[str, object] = {"sub": subject}
    if extra_claims:
        to_encode.update(extra_claims)
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = expire
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> dict[str, object]:
    """Decode and verify a JWT access token, raising ``JWTError`` on failure."""
    payload: dict[str, object] = jwt.decode(
        token,
        settings.secret_key,
        algorithms=[settings.jwt_algorithm],
    )
    return payload
