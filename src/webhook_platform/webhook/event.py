"""Verified webhook event envelopes."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from webhook_platform.common import metrics
from webhook_platform.common.clock import Clock, resolve_clock
from webhook_platform.common.errors import ErrorKind, WebhookError
from webhook_platform.common.logging import get_logger
from webhook_platform.common.settings import DEFAULT_TOLERANCE_MS
from webhook_platform.webhook.headers import (
    DELIVERY_ID_HEADER,
    EVENT_ID_HEADER,
    SIGNATURE_HEADER,
    TIMESTAMP_HEADER,
    normalize_headers,
)
from webhook_platform.webhook.signature import is_timestamp, verify_signature

logger = get_logger(__name__)


@dataclass(frozen=True)
class WebhookEvent:
    """An inbound webhook event whose signature has been verified."""

    event_id: str
    delivery_id: str
    timestamp: int
    type: str
    data: Any

    def to_dict(self) -> dict[str, Any]:
        return {
            "eventId": self.event_id,
            "deliveryId": self.delivery_id,
            "timestamp": self.timestamp,
            "type": self.type,
            "data": self.data,
        }


def _decode_payload(payload: bytes | str) -> Any:
    try:
        return json.loads(payload)
    except ValueError as exc:
        raise WebhookError(ErrorKind.INVALID_PAYLOAD, "Invalid JSON payload") from exc


def _event_timestamp(value: str, clock: Clock) -> int:
    if not value:
        return clock()
    if not is_timestamp(value):
        raise WebhookError(
            ErrorKind.INVALID_PAYLOAD,
            "Invalid X-Timestamp header",
            details={"header": TIMESTAMP_HEADER},
        )
    return int(value)


def _event_type(decoded: Any) -> str:
    if isinstance(decoded, dict) and isinstance(decoded.get("type"), str):
        return decoded["type"]
    return ""


def _event_data(decoded: Any) -> Any:
    if isinstance(decoded, dict) and decoded.get("data") is not None:
        return decoded["data"]
    return decoded


def construct_event(
    payload: bytes | str,
    headers: Mapping[str, Any],
    secret: str,
    tolerance_ms: int = DEFAULT_TOLERANCE_MS,
    *,
    clock: Clock | None = None,
) -> WebhookEvent:
    """
    Verify an inbound webhook and decode it into a :class:`WebhookEvent`.

    Args:
        payload: Raw request body exactly as received
        headers: Request headers; names are matched case-insensitively and
            list values use their first element
        secret: Endpoint webhook secret
        tolerance_ms: Maximum allowed drift in milliseconds
        clock: Millisecond clock for the drift check and timestamp fallback

    Returns:
        The verified event

    Raises:
        WebhookError: ``missing_header``, any verification failure, or
            ``invalid_payload``
    """
    clock = resolve_clock(clock)
    normalized = normalize_headers(headers)

    signature = normalized.get(SIGNATURE_HEADER, "")
    try:
        if not signature:
            raise WebhookError(ErrorKind.MISSING_HEADER, "Missing X-Signature header")

        verify_signature(payload, signature, secret, tolerance_ms, clock=clock)

        decoded = _decode_payload(payload)
        event = WebhookEvent(
            event_id=normalized.get(EVENT_ID_HEADER, ""),
            delivery_id=normalized.get(DELIVERY_ID_HEADER, ""),
            timestamp=_event_timestamp(normalized.get(TIMESTAMP_HEADER, ""), clock),
            type=_event_type(decoded),
            data=_event_data(decoded),
        )
    except WebhookError as exc:
        metrics.record_event_constructed(exc.kind.value)
        raise

    metrics.record_event_constructed("valid")
    logger.debug(
        "Webhook event verified",
        event_id=event.event_id,
        delivery_id=event.delivery_id,
        event_type=event.type,
    )
    return event
