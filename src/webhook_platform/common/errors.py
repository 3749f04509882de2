"""Shared error type and codes."""

from __future__ import annotations

from enum import Enum
from typing import Any

from starlette.responses import JSONResponse


class ErrorKind(str, Enum):
    """Machine-checkable failure kinds."""

    INVALID_SIGNATURE = "invalid_signature"
    TIMESTAMP_EXPIRED = "timestamp_expired"
    MISSING_HEADER = "missing_header"
    INVALID_PAYLOAD = "invalid_payload"
    CONFIGURATION_ERROR = "configuration_error"


_STATUS_CODES = {
    ErrorKind.INVALID_SIGNATURE: 400,
    ErrorKind.TIMESTAMP_EXPIRED: 400,
    ErrorKind.MISSING_HEADER: 400,
    ErrorKind.INVALID_PAYLOAD: 400,
    ErrorKind.CONFIGURATION_ERROR: 500,
}


class WebhookError(Exception):
    """Terminal failure raised by signing, verification and envelope parsing.

    A single tagged type: callers branch on ``kind`` rather than on
    subclasses. Messages never carry the secret or digest material.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details

    @property
    def status_code(self) -> int:
        return _STATUS_CODES.get(self.kind, 400)

    @property
    def code(self) -> str:
        return self.kind.value

    def to_dict(self) -> dict[str, Any]:
        return _error_payload(self.code, self.message, self.details)

    def to_response(self) -> JSONResponse:
        return error_response(self.code, self.message, self.status_code, self.details)

    def __repr__(self) -> str:
        return f"WebhookError(kind={self.kind.value!r}, message={self.message!r})"


def _error_payload(code: str, message: str, details: dict[str, Any] | None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
        }
    }
    if details:
        payload["error"]["details"] = details
    return payload


def error_response(
    code: str,
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    return JSONResponse(_error_payload(code, message, details), status_code=status_code)
