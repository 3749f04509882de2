"""Starlette integration for inbound webhook endpoints."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

import structlog
from starlette.applications import Starlette
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route
from starlette.types import ASGIApp

from webhook_platform.common.errors import WebhookError
from webhook_platform.common.logging import get_logger
from webhook_platform.common.metrics import metrics_endpoint
from webhook_platform.common.settings import Settings
from webhook_platform.webhook.event import WebhookEvent
from webhook_platform.webhook.receiver import WebhookReceiver

logger = get_logger(__name__)

EventHandler = Callable[[WebhookEvent], Awaitable[Any] | Any]


class WebhookSignatureMiddleware(BaseHTTPMiddleware):
    """Verify signed POST requests before they reach the endpoint.

    On success the event is stored on ``request.state.webhook_event``.
    """

    def __init__(
        self,
        app: ASGIApp,
        receiver: WebhookReceiver,
        paths: Iterable[str] | None = None,
    ) -> None:
        super().__init__(app)
        self._receiver = receiver
        self._paths = set(paths) if paths is not None else None

    def _is_protected(self, request: Request) -> bool:
        if request.method != "POST":
            return False
        return self._paths is None or request.url.path in self._paths

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self._is_protected(request):
            return await call_next(request)

        body = await request.body()
        try:
            event = self._receiver.construct_event(body, request.headers)
        except WebhookError as exc:
            logger.info("Rejected webhook request", path=request.url.path, kind=exc.kind.value)
            return exc.to_response()

        request.state.webhook_event = event
        structlog.contextvars.bind_contextvars(
            event_id=event.event_id,
            delivery_id=event.delivery_id,
        )
        try:
            return await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("event_id", "delivery_id")


def create_webhook_app(
    settings: Settings,
    handler: EventHandler | None = None,
    receiver: WebhookReceiver | None = None,
) -> Starlette:
    """Create a Starlette app that accepts signed webhooks on ``settings.webhook_path``."""
    receiver = receiver or WebhookReceiver.from_settings(settings)

    async def receive(request: Request) -> JSONResponse:
        event: WebhookEvent = request.state.webhook_event
        if handler is not None:
            result = handler(event)
            if inspect.isawaitable(result):
                await result
        logger.info("Webhook received", event_type=event.type)
        return JSONResponse({"received": True, "eventId": event.event_id})

    async def health(_request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app = Starlette(
        routes=[
            Route(settings.webhook_path, receive, methods=["POST"]),
            Route("/health", health, methods=["GET"]),
            Route("/metrics", metrics_endpoint, methods=["GET"]),
        ]
    )
    app.add_middleware(
        WebhookSignatureMiddleware,
        receiver=receiver,
        paths=[settings.webhook_path],
    )
    return app
