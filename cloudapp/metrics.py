"""Prometheus metrics helpers."""

from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

DISPATCH_LATENCY = Histogram(
    "cloudapp_dispatch_latency_seconds",
    "Latency of function dispatches, binding through serialization",
    labelnames=("function",),
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
    registry=REGISTRY,
)

DISPATCH_TOTAL = Counter(
    "cloudapp_dispatch_total",
    "Number of function dispatches by response status",
    labelnames=("function", "status"),
    registry=REGISTRY,
)


def observe_dispatch(*, function: str, status_code: int, latency_ms: float) -> None:
    DISPATCH_LATENCY.labels(function=function).observe(latency_ms / 1000.0)
    DISPATCH_TOTAL.labels(function=function, status=str(status_code)).inc()


def render_metrics() -> tuple[bytes, str]:
    payload = generate_latest(REGISTRY)
    return payload, CONTENT_TYPE_LATEST
