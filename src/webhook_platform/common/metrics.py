"""Prometheus metrics for webhook signing and verification."""

import os

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
    multiprocess,
)
from starlette.requests import Request
from starlette.responses import Response

# === Counters ===

VERIFICATIONS_TOTAL = Counter(
    "webhook_verifications_total",
    "Total webhook signature verifications",
    ["outcome"],  # outcome: valid, invalid_signature, timestamp_expired, ...
)

SIGNATURES_GENERATED_TOTAL = Counter(
    "webhook_signatures_generated_total",
    "Total webhook signatures generated",
)

EVENTS_CONSTRUCTED_TOTAL = Counter(
    "webhook_events_constructed_total",
    "Total webhook event envelopes built",
    ["outcome"],
)

# === Histograms ===

SIGNATURE_DRIFT = Histogram(
    "webhook_signature_drift_seconds",
    "Absolute drift between token timestamp and receiver clock",
    buckets=[0.1, 0.5, 1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0],
)


# === Helper Functions ===


def record_verification(outcome: str) -> None:
    """Record a verification outcome."""
    VERIFICATIONS_TOTAL.labels(outcome=outcome).inc()


def record_signature_generated() -> None:
    SIGNATURES_GENERATED_TOTAL.inc()


def record_event_constructed(outcome: str) -> None:
    EVENTS_CONSTRUCTED_TOTAL.labels(outcome=outcome).inc()


def record_drift(drift_ms: int) -> None:
    """Record observed clock drift."""
    SIGNATURE_DRIFT.observe(drift_ms / 1000.0)


# === HTTP Endpoint ===


async def metrics_endpoint(_request: Request) -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    multiproc_dir = os.environ.get("PROMETHEUS_MULTIPROC_DIR")
    if multiproc_dir:
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)  # type: ignore[no-untyped-call]
        return Response(
            generate_latest(registry),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    return Response(
        generate_latest(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
