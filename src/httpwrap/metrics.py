"""Prometheus instruments shared by the sync and async executors."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_ATTEMPTS = Counter(
    "httpwrap_request_attempts_total",
    "Outbound request attempts",
    ["method", "outcome"],
)
REQUEST_LATENCY = Histogram(
    "httpwrap_request_latency_seconds",
    "Latency of a full execute() call including retries",
    ["method"],
)


def record_attempt(method: str, outcome: str) -> None:
    REQUEST_ATTEMPTS.labels(method=method, outcome=outcome).inc()


__all__ = ["REQUEST_ATTEMPTS", "REQUEST_LATENCY", "record_attempt"]
