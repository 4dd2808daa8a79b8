import asyncio

import pytest

from tokendist import metrics
from tokendist.errors import StakingNotStarted
from tokendist.staking.flexible import FlexibleStakingLedger

from .conftest import ADMIN, ALICE, STAKING, UNIT


def _sample(name, **labels):
    return metrics.REGISTRY.get_sample_value(name, labels) or 0.0


def test_operation_counters(ledger, roles, clock):
    fx = FlexibleStakingLedger(ledger, roles, address=STAKING, clock=clock)
    ledger.approve(ALICE, STAKING, UNIT)

    ok = _sample("tokendist_operations_total", component="flexible", op="start", result="ok")
    failed = _sample("tokendist_operations_total", component="flexible", op="claim_reward", result="failed")
    pulled = _sample("tokendist_tokens_pulled_base_units_total", component="flexible")

    fx.start(ALICE, UNIT)
    with pytest.raises(StakingNotStarted):
        fx.claim_reward(ADMIN)

    assert _sample("tokendist_operations_total", component="flexible", op="start", result="ok") == ok + 1
    assert _sample("tokendist_operations_total", component="flexible", op="claim_reward", result="failed") == failed + 1
    assert _sample("tokendist_tokens_pulled_base_units_total", component="flexible") == pulled + UNIT
    assert _sample("tokendist_active_positions", component="flexible") == 1


def test_record_helpers_ignore_non_positive_amounts():
    before = _sample("tokendist_tokens_paid_base_units_total", component="test", kind="reward")
    metrics.record_paid("test", "reward", 0)
    metrics.record_paid("test", "reward", -5)
    assert _sample("tokendist_tokens_paid_base_units_total", component="test", kind="reward") == before
    metrics.record_paid("test", "reward", 7)
    assert _sample("tokendist_tokens_paid_base_units_total", component="test", kind="reward") == before + 7


def test_time_operation_observes():
    before = _sample("tokendist_operation_seconds_count", component="timed")
    with metrics.time_operation("timed"):
        pass
    assert _sample("tokendist_operation_seconds_count", component="timed") == before + 1


def _call(app, path):
    sent = []

    async def receive():
        return {"type": "http.request"}

    async def send(msg):
        sent.append(msg)

    asyncio.run(app({"type": "http", "path": path}, receive, send))
    return sent


def test_asgi_app_serves_registry():
    app = metrics.make_prometheus_asgi_app()
    start, body = _call(app, "/")
    assert start["status"] == 200
    assert b"tokendist_operations_total" in body["body"]

    start, _ = _call(app, "/nope")
    assert start["status"] == 404
