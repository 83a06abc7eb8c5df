"""Prometheus counters for access decisions and dropped requests."""

from __future__ import annotations

from prometheus_client import Counter, start_http_server

from .logger import get_logger

logger = get_logger(__name__, component="metrics")

AUTH_DECISIONS = Counter(
    "radius_vlan_auth_decisions_total",
    "Access-Request decisions by result",
    ["result"],
)
DROPPED_REQUESTS = Counter(
    "radius_vlan_dropped_requests_total",
    "Requests dropped without a response, by reason",
    ["reason"],
)


def record_decision(result: str) -> None:
    """``result`` is one of accept, fallback_accept, reject."""
    AUTH_DECISIONS.labels(result=result).inc()


def record_drop(reason: str) -> None:
    DROPPED_REQUESTS.labels(reason=reason).inc()


def start_metrics_server(address: str, port: int) -> bool:
    """Expose /metrics over HTTP; ``port`` 0 leaves it disabled."""
    if not port:
        return False
    start_http_server(port, addr=address)
    logger.info(
        "Prometheus metrics endpoint listening",
        event="service.metrics.start",
        host=address,
        port=port,
    )
    return True


__all__ = [
    "AUTH_DECISIONS",
    "DROPPED_REQUESTS",
    "record_decision",
    "record_drop",
    "start_metrics_server",
]
