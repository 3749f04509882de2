"""HMAC signing utilities for webhook payloads."""

from __future__ import annotations

import hashlib
import hmac


def build_message(timestamp: str, payload: bytes | str) -> bytes:
    """Build the signed input ``{timestamp}.{payload}``."""
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return b".".join([timestamp.encode("utf-8"), payload])


def sign(secret: str, message: bytes) -> str:
    """Create a hex-encoded HMAC signature."""
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify(secret: str, message: bytes, signature: str) -> bool:
    """Verify HMAC signature in constant time."""
    expected = sign(secret, message)
    return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))
