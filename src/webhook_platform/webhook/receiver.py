"""Receiver bound to a single endpoint secret."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from webhook_platform.common.clock import Clock
from webhook_platform.common.errors import ErrorKind, WebhookError
from webhook_platform.common.settings import DEFAULT_TOLERANCE_MS, Settings
from webhook_platform.webhook.event import WebhookEvent, construct_event
from webhook_platform.webhook.signature import generate_signature, verify_signature


class WebhookReceiver:
    """Signs and verifies webhooks with a fixed secret, tolerance and clock."""

    def __init__(
        self,
        secret: str,
        tolerance_ms: int = DEFAULT_TOLERANCE_MS,
        clock: Clock | None = None,
    ) -> None:
        if not isinstance(secret, str) or not secret:
            raise ValueError("secret must be a non-empty string")
        if tolerance_ms < 0:
            raise ValueError("tolerance_ms must be non-negative")
        self._secret = secret
        self._tolerance_ms = tolerance_ms
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock | None = None) -> WebhookReceiver:
        if not settings.secret:
            raise WebhookError(
                ErrorKind.CONFIGURATION_ERROR,
                "Webhook secret not configured",
            )
        return cls(settings.secret, settings.tolerance_ms, clock=clock)

    @property
    def tolerance_ms(self) -> int:
        return self._tolerance_ms

    def sign(self, payload: bytes | str, timestamp_ms: int | None = None) -> str:
        return generate_signature(payload, self._secret, timestamp_ms, clock=self._clock)

    def verify(self, payload: bytes | str, signature: str) -> bool:
        return verify_signature(
            payload, signature, self._secret, self._tolerance_ms, clock=self._clock
        )

    def construct_event(self, payload: bytes | str, headers: Mapping[str, Any]) -> WebhookEvent:
        return construct_event(
            payload, headers, self._secret, self._tolerance_ms, clock=self._clock
        )

    def __repr__(self) -> str:
        return f"WebhookReceiver(tolerance_ms={self._tolerance_ms})"
