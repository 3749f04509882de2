"""Webhook signing, verification and event envelopes."""

from webhook_platform.webhook.event import WebhookEvent, construct_event
from webhook_platform.webhook.headers import normalize_headers
from webhook_platform.webhook.receiver import WebhookReceiver
from webhook_platform.webhook.signature import (
    SignedToken,
    generate_signature,
    verify_signature,
)

__all__ = [
    "SignedToken",
    "WebhookEvent",
    "WebhookReceiver",
    "construct_event",
    "generate_signature",
    "normalize_headers",
    "verify_signature",
]
