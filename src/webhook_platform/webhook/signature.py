"""Timestamped HMAC-SHA256 signature tokens for webhook payloads.

A token binds a millisecond timestamp to a payload::

    t=1700000000000,v1=<64 lowercase hex chars>

where ``v1`` is ``HMAC-SHA256(secret, "{t}.{payload}")``. The timestamp is the
only freshness guard: a captured token stays valid for as long as its drift
is within the tolerance window.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from webhook_platform.common import metrics
from webhook_platform.common.clock import Clock, resolve_clock
from webhook_platform.common.errors import ErrorKind, WebhookError
from webhook_platform.common.hmac import build_message, sign, verify
from webhook_platform.common.logging import get_logger
from webhook_platform.common.settings import DEFAULT_TOLERANCE_MS

logger = get_logger(__name__)

TIMESTAMP_FIELD = "t"
SIGNATURE_FIELD = "v1"

MISSING_SIGNATURE_MESSAGE = "Missing signature header"
INVALID_FORMAT_MESSAGE = "Invalid signature format. Expected: t=timestamp,v1=signature"
EXPIRED_MESSAGE = "Webhook timestamp is outside tolerance window"
INVALID_SIGNATURE_MESSAGE = "Invalid signature"

# Millisecond timestamps fit in a signed 64-bit integer.
_TIMESTAMP_RE = re.compile(r"-?[0-9]{1,19}")


def is_timestamp(value: str) -> bool:
    """Whether ``value`` is a decimal millisecond timestamp."""
    return _TIMESTAMP_RE.fullmatch(value) is not None


@dataclass(frozen=True)
class SignedToken:
    """Parsed ``t=...,v1=...`` signature token.

    ``timestamp`` keeps the literal text from the token so the signed input
    can be rebuilt byte-for-byte.
    """

    timestamp: str
    signature: str

    @property
    def timestamp_ms(self) -> int:
        return int(self.timestamp)

    @classmethod
    def parse(cls, value: str) -> SignedToken:
        """Parse a token, ignoring unknown fields and field order.

        Raises:
            WebhookError: ``invalid_signature`` when the value is empty, a
                required field is missing, or ``t`` is not an integer.
        """
        if not value:
            raise WebhookError(ErrorKind.INVALID_SIGNATURE, MISSING_SIGNATURE_MESSAGE)

        timestamp: str | None = None
        signature: str | None = None
        for part in value.split(","):
            if part.startswith(f"{TIMESTAMP_FIELD}="):
                timestamp = part[len(TIMESTAMP_FIELD) + 1 :]
            elif part.startswith(f"{SIGNATURE_FIELD}="):
                signature = part[len(SIGNATURE_FIELD) + 1 :]

        if timestamp is None or signature is None:
            raise WebhookError(ErrorKind.INVALID_SIGNATURE, INVALID_FORMAT_MESSAGE)

        if not is_timestamp(timestamp):
            raise WebhookError(
                ErrorKind.INVALID_SIGNATURE,
                INVALID_FORMAT_MESSAGE,
                details={"field": TIMESTAMP_FIELD},
            )

        return cls(timestamp=timestamp, signature=signature)

    def format(self) -> str:
        return f"{TIMESTAMP_FIELD}={self.timestamp},{SIGNATURE_FIELD}={self.signature}"

    def __str__(self) -> str:
        return self.format()


def generate_signature(
    payload: bytes | str,
    secret: str,
    timestamp_ms: int | None = None,
    *,
    clock: Clock | None = None,
) -> str:
    """
    Sign a payload and return its ``t=...,v1=...`` token.

    Deterministic for a given payload, secret and timestamp.

    Args:
        payload: Raw request body, signed verbatim
        secret: Endpoint webhook secret
        timestamp_ms: Timestamp to embed (defaults to ``clock()``)
        clock: Millisecond clock used when no timestamp is given

    Returns:
        Signature token string
    """
    if timestamp_ms is None:
        timestamp_ms = resolve_clock(clock)()

    timestamp = str(timestamp_ms)
    token = SignedToken(
        timestamp=timestamp,
        signature=sign(secret, build_message(timestamp, payload)),
    )
    metrics.record_signature_generated()
    return token.format()


def verify_signature(
    payload: bytes | str,
    signature: str,
    secret: str,
    tolerance_ms: int = DEFAULT_TOLERANCE_MS,
    *,
    clock: Clock | None = None,
) -> bool:
    """
    Verify a signature token against a payload.

    Checks run in order and the first failure is terminal: token format,
    timestamp drift (symmetric, inclusive at ``tolerance_ms``), then a
    constant-time digest comparison.

    Args:
        payload: Raw request body exactly as received
        signature: Signature header value
        secret: Endpoint webhook secret
        tolerance_ms: Maximum allowed drift in milliseconds
        clock: Millisecond clock used as the drift reference

    Returns:
        True if the signature is valid

    Raises:
        WebhookError: ``invalid_signature`` or ``timestamp_expired``
    """
    if tolerance_ms < 0:
        raise ValueError("tolerance_ms must be non-negative")

    try:
        token = SignedToken.parse(signature)

        now_ms = resolve_clock(clock)()
        drift = abs(now_ms - token.timestamp_ms)
        metrics.record_drift(drift)
        if drift > tolerance_ms:
            raise WebhookError(
                ErrorKind.TIMESTAMP_EXPIRED,
                EXPIRED_MESSAGE,
                details={"drift_ms": drift, "tolerance_ms": tolerance_ms},
            )

        message = build_message(token.timestamp, payload)
        if not verify(secret, message, token.signature):
            raise WebhookError(ErrorKind.INVALID_SIGNATURE, INVALID_SIGNATURE_MESSAGE)
    except WebhookError as exc:
        logger.warning("Webhook signature rejected", kind=exc.kind.value, reason=exc.message)
        metrics.record_verification(exc.kind.value)
        raise

    metrics.record_verification("valid")
    return True
