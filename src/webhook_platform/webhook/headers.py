"""Inbound webhook header names and normalization."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

SIGNATURE_HEADER = "x-signature"
TIMESTAMP_HEADER = "x-timestamp"
EVENT_ID_HEADER = "x-event-id"
DELIVERY_ID_HEADER = "x-delivery-id"


def _scalar(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        value = value[0] if value else ""
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("latin-1")
    return str(value)


def normalize_headers(headers: Mapping[str, Any]) -> dict[str, str]:
    """Return a lowercase-keyed, scalar-valued copy of ``headers``.

    Sequence values (as passed by some frameworks) collapse to their first
    element. When two names differ only by case, the later one wins.
    """
    return {str(name).lower(): _scalar(headers[name]) for name in headers.keys()}
