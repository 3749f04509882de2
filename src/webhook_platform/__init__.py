"""
Webhook Platform: signed webhook delivery primitives.

Signs outgoing event payloads with a timestamped HMAC-SHA256 token and
verifies received payloads before decoding them into event envelopes.
"""

from webhook_platform.common.errors import ErrorKind, WebhookError
from webhook_platform.webhook import (
    SignedToken,
    WebhookEvent,
    WebhookReceiver,
    construct_event,
    generate_signature,
    verify_signature,
)

__version__ = "1.0.0"

__all__ = [
    "ErrorKind",
    "SignedToken",
    "WebhookError",
    "WebhookEvent",
    "WebhookReceiver",
    "construct_event",
    "generate_signature",
    "verify_signature",
]
