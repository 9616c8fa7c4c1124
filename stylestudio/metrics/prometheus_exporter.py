"""Prometheus exporter helpers."""

from __future__ import annotations

from prometheus_client import Counter, Gauge


generation_requests_total = Counter(
    "stylestudio_generation_requests_total",
    "Total number of styled image generation requests.",
    ["mode"],
)

generation_failures_total = Counter(
    "stylestudio_generation_failures_total",
    "Generation requests that ended with a service error.",
    ["mode"],
)

generation_in_flight = Gauge(
    "stylestudio_generation_in_flight",
    "Number of generation requests currently awaiting the service.",
)

isolation_fallback_total = Counter(
    "stylestudio_isolation_fallback_total",
    "Uploads that kept the original image because background isolation failed.",
)

classification_fallback_total = Counter(
    "stylestudio_classification_fallback_total",
    "Classifications replaced by the default category.",
    ["reason"],
)
