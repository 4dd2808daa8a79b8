from __future__ import annotations

"""
Prometheus metrics for the token distribution engine.

We expose:
- operations: committed / rolled-back state-changing calls per component & op
- payouts: base units paid out per component and kind (reward, principal, tge, vested)
- pulls: base units pulled from stakers per component
- positions: currently active staking positions / vesting entries
- latency: wall time spent inside an operation (including the ledger call)

Amounts are recorded in token *base units*; convert at query time with the
configured decimals.
"""


import time
from contextlib import contextmanager
from typing import Optional

from prometheus_client import (CONTENT_TYPE_LATEST, CollectorRegistry, Counter,
                               Gauge, Histogram, generate_latest)

# Use a dedicated registry so embedding apps can choose to merge or expose it directly.
REGISTRY = CollectorRegistry()

# ────────────────────────────────────────────────────────────────────────────────
# Label conventions
#   component: "flexible" | "fixed_term" | "vesting" | "roles" | "pausable" | "token"
#   result: "ok" | "failed"
#   kind: "reward" | "principal" | "tge" | "vested"
# ────────────────────────────────────────────────────────────────────────────────

OPERATIONS = Counter(
    "tokendist_operations_total",
    "State-changing operations by component, operation and result.",
    labelnames=("component", "op", "result"),
    registry=REGISTRY,
)

TOKENS_PAID = Counter(
    "tokendist_tokens_paid_base_units_total",
    "Token base units transferred out of the engine, by component and kind.",
    labelnames=("component", "kind"),
    registry=REGISTRY,
)

TOKENS_PULLED = Counter(
    "tokendist_tokens_pulled_base_units_total",
    "Token base units pulled into the engine from stakers, by component.",
    labelnames=("component",),
    registry=REGISTRY,
)

ACTIVE_POSITIONS = Gauge(
    "tokendist_active_positions",
    "Currently active positions (stakes or vesting entries), by component.",
    labelnames=("component",),
    registry=REGISTRY,
)

_LATENCY_BUCKETS = (
    0.0005,
    0.001,
    0.0025,
    0.005,
    0.01,
    0.025,
    0.05,
    0.1,
    0.25,
    1.0,
)

OPERATION_SECONDS = Histogram(
    "tokendist_operation_seconds",
    "Wall time spent inside a state-changing operation, by component.",
    labelnames=("component",),
    buckets=_LATENCY_BUCKETS,
    registry=REGISTRY,
)

# ────────────────────────────────────────────────────────────────────────────────
# Recording helpers
# ────────────────────────────────────────────────────────────────────────────────


def record_operation(component: str, op: str, result: str) -> None:
    """Increment the operation counter ('ok' | 'failed')."""
    OPERATIONS.labels(component=component, op=op, result=result).inc()


def record_paid(component: str, kind: str, amount: int) -> None:
    if amount > 0:
        TOKENS_PAID.labels(component=component, kind=kind).inc(float(amount))


def record_pulled(component: str, amount: int) -> None:
    if amount > 0:
        TOKENS_PULLED.labels(component=component).inc(float(amount))


def set_active_positions(component: str, count: int) -> None:
    ACTIVE_POSITIONS.labels(component=component).set(count)


@contextmanager
def time_operation(component: str):
    """Context manager observing the latency of one operation."""
    start = time.perf_counter()
    try:
        yield
    finally:
        OPERATION_SECONDS.labels(component=component).observe(time.perf_counter() - start)


# ────────────────────────────────────────────────────────────────────────────────
# ASGI mounting helper
# ────────────────────────────────────────────────────────────────────────────────


def _start(status: int, content_type: bytes) -> dict:
    return {
        "type": "http.response.start",
        "status": status,
        "headers": [(b"content-type", content_type), (b"cache-control", b"no-store")],
    }


def make_prometheus_asgi_app(registry: Optional[CollectorRegistry] = None):
    """ASGI callable exposing ``registry`` (default: ours) in text format at the root path only."""
    source = registry if registry is not None else REGISTRY
    text_type = CONTENT_TYPE_LATEST.encode("ascii")

    async def app(scope, receive, send):
        if scope.get("type") == "http" and scope.get("path", "/") in ("", "/"):
            await send(_start(200, text_type))
            await send({"type": "http.response.body", "body": generate_latest(source)})
        else:
            await send(_start(404, b"text/plain"))
            await send({"type": "http.response.body", "body": b"not found"})

    return app


__all__ = [
    "REGISTRY",
    "OPERATIONS",
    "TOKENS_PAID",
    "TOKENS_PULLED",
    "ACTIVE_POSITIONS",
    "OPERATION_SECONDS",
    "record_operation",
    "record_paid",
    "record_pulled",
    "set_active_positions",
    "time_operation",
    "make_prometheus_asgi_app",
]
