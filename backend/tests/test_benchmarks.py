"""
Unit tests for the benchmark universe and the broadcaster (no network).
"""

import asyncio
import random

import pytest

from app.services.benchmarks.broadcaster import BenchmarkBroadcaster, classify_trend
from app.services.benchmarks.universe import BenchmarkUniverse


class FakeSocket:
    """Collects sent messages; optionally fails every send."""

    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    async def accept(self):
        pass

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(message)


DEEPLY_NESTED = "[" * 100000 + "]" * 100000


def _subscribe(broadcaster, socket, industry, metrics, subcategory=None):
    message = {"type": "subscribe_metrics", "industry": industry, "metrics": metrics}
    if subcategory is not None:
        message["subcategory"] = subcategory
    asyncio.run(broadcaster.handle_subscribe_metrics(socket, message))


# -----------------------------------------------------------------------------
# Universe
# -----------------------------------------------------------------------------

def test_lookup_industry_value(universe):
    assert universe.lookup("tech", "digital_transformation") == {"average": 80, "maxValue": 95}
    assert universe.resolve("tech", "digital_transformation")[0] == "industry"


@pytest.mark.parametrize("industry, metric, table", [
    ("technology", "revenue_growth", "tech"),
    ("fs", "cash_flow", "finance"),
    ("health", "r_and_d", "healthcare"),
])
def test_lookup_industry_alias(universe, industry, metric, table):
    source, table_key, _ = universe.resolve(industry, metric)
    assert (source, table_key) == ("industry_alias", table)
    assert universe.lookup(industry, metric) == universe.lookup(table, metric)


def test_lookup_default_and_metric_alias(universe):
    assert universe.lookup("retail", "roi") == {"average": 15, "maxValue": 27}
    assert universe.resolve("unknown", "Margin") == ("metric_alias", None, "profit_margin")
    assert universe.lookup("unknown", "Margin") == {"average": 15, "maxValue": 27}


def test_lookup_fallback(universe):
    assert universe.lookup("space_mining", "asteroid_yield") == {"average": 50, "maxValue": 90}
    assert universe.lookup("", "") == {"average": 50, "maxValue": 90}


def test_lookup_returns_copy(universe):
    value = universe.lookup("tech", "r_and_d")
    value["average"] = -1
    assert universe.lookup("tech", "r_and_d")["average"] == 15


def test_perturb_keeps_max_value_invariant(universe):
    for _ in range(5):
        universe.perturb()

    tables = list(universe.industry_state.values()) + [universe.default_state]
    for table in tables:
        for value in table.values():
            assert value["maxValue"] == round(value["average"] * 1.8, 2)


def test_perturb_step_is_bounded():
    universe = BenchmarkUniverse(rng=random.Random(7))
    universe.perturb()
    # Industry factor in [0.992, 1.012]; default factor in [0.994, 1.009]
    assert 18 * 0.992 - 0.01 <= universe.lookup("tech", "revenue_growth")["average"] <= 18 * 1.012 + 0.01
    assert 200 * 0.994 - 0.01 <= universe.lookup("x", "customer_acquisition_cost")["average"] <= 200 * 1.009 + 0.01


def test_seeded_universes_are_reproducible():
    a = BenchmarkUniverse(rng=random.Random(3))
    b = BenchmarkUniverse(rng=random.Random(3))
    a.perturb()
    b.perturb()
    assert a.industry_state == b.industry_state
    assert a.default_state == b.default_state


def test_universes_do_not_share_state():
    a = BenchmarkUniverse(rng=random.Random(1))
    b = BenchmarkUniverse(rng=random.Random(1))
    a.perturb()
    assert b.lookup("tech", "digital_transformation") == {"average": 80, "maxValue": 95}


def test_snapshot_is_isolated(universe):
    snapshot = universe.snapshot()
    universe.perturb()
    assert snapshot.lookup("tech", "profit_margin") == {"average": 20, "maxValue": 36}


# -----------------------------------------------------------------------------
# Trend classification
# -----------------------------------------------------------------------------

@pytest.mark.parametrize("previous, current, expected", [
    (100, 101, ("up", 1.0)),
    (100, 99, ("down", 1.0)),
    (100, 100.4, ("stable", 0.4)),
    (100, 99.6, ("stable", 0.4)),
    (0, 5, ("stable", 0.0)),
])
def test_classify_trend(previous, current, expected):
    assert classify_trend(previous, current) == expected


# -----------------------------------------------------------------------------
# Broadcaster
# -----------------------------------------------------------------------------

def test_subscribe_metrics_sends_initial_values(broadcaster):
    socket = FakeSocket()
    _subscribe(broadcaster, socket, "tech", ["digital_transformation", "mystery"])

    update, confirmation = socket.sent
    assert update["type"] == "benchmark_update"
    assert update["data"]["digital_transformation"]["average"] == 80
    assert update["data"]["digital_transformation"]["trend"] == "stable"
    assert update["data"]["digital_transformation"]["metadata"]["confidenceScore"] == 92
    assert update["data"]["mystery"]["maxValue"] == 90

    assert confirmation["type"] == "subscription_confirmed"
    assert confirmation["metrics"] == ["digital_transformation", "mystery"]


def test_resubscribe_does_not_duplicate(broadcaster):
    socket = FakeSocket()
    _subscribe(broadcaster, socket, "tech", ["roi"])
    _subscribe(broadcaster, socket, "tech", ["roi", "roi"])
    assert broadcaster.subscriptions[socket] == {("tech", None, "roi")}


def test_broadcast_groups_by_industry_and_subcategory(broadcaster):
    socket = FakeSocket()
    _subscribe(broadcaster, socket, "tech", ["revenue_growth", "profit_margin"])
    _subscribe(broadcaster, socket, "retail", ["profit_margin"], subcategory="fashion")
    socket.sent.clear()

    sent = asyncio.run(broadcaster.broadcast_once())

    assert sent == 2
    groups = {(m["industry"], m["subcategory"]): m for m in socket.sent}
    assert set(groups) == {("tech", None), ("retail", "fashion")}

    tech = groups[("tech", None)]["data"]
    assert set(tech) == {"revenue_growth", "profit_margin"}
    for value in tech.values():
        assert value["trend"] in ("up", "down", "stable")
        assert value["maxValue"] == round(value["average"] * 1.8, 2)
        assert value["metadata"]["isRealTime"] is True


class FixedRng:
    """Random source whose walk always draws `value`."""

    def __init__(self, value: float):
        self.value = value

    def random(self):
        return self.value

    def randrange(self, n):
        return 0


def test_broadcast_trend_against_pre_update_values(broadcaster):
    socket = FakeSocket()
    _subscribe(broadcaster, socket, "tech", ["revenue_growth"])
    socket.sent.clear()
    before = broadcaster.universe.snapshot()

    asyncio.run(broadcaster.broadcast_once())

    (message,) = socket.sent
    update = message["data"]["revenue_growth"]
    previous = before.lookup("tech", "revenue_growth")["average"]
    current = broadcaster.universe.lookup("tech", "revenue_growth")["average"]
    assert update["average"] == current
    assert (update["trend"], update["changePercent"]) == classify_trend(previous, current)


@pytest.mark.parametrize("draw, trend, change_percent", [
    (1.0, "up", 1.2),
    (0.0, "down", 0.8),
    (0.4, "stable", 0.0),
])
def test_broadcast_trend_direction(draw, trend, change_percent):
    broadcaster = BenchmarkBroadcaster(universe=BenchmarkUniverse(rng=FixedRng(draw)), interval=3600)
    socket = FakeSocket()
    _subscribe(broadcaster, socket, "tech", ["revenue_growth"])
    socket.sent.clear()

    asyncio.run(broadcaster.broadcast_once())

    update = socket.sent[0]["data"]["revenue_growth"]
    assert update["trend"] == trend
    assert update["changePercent"] == change_percent


def test_failing_metric_does_not_abort_updates(broadcaster, monkeypatch):
    first, second, only_failing = FakeSocket(), FakeSocket(), FakeSocket()
    _subscribe(broadcaster, first, "tech", ["roi", "r_and_d"])
    _subscribe(broadcaster, second, "tech", ["revenue_growth"])
    _subscribe(broadcaster, only_failing, "tech", ["roi"])
    for socket in (first, second, only_failing):
        socket.sent.clear()

    lookup = broadcaster.universe.lookup

    def flaky_lookup(industry, metric):
        if metric == "roi":
            raise RuntimeError("lookup failed")
        return lookup(industry, metric)

    monkeypatch.setattr(broadcaster.universe, "lookup", flaky_lookup)

    assert asyncio.run(broadcaster.broadcast_once()) == 2
    assert set(first.sent[0]["data"]) == {"r_and_d"}
    assert set(second.sent[0]["data"]) == {"revenue_growth"}
    # A group with nothing left to report is skipped, the subscription is kept
    assert only_failing.sent == []
    assert only_failing in broadcaster.subscriptions


def test_broadcast_without_subscribers(broadcaster):
    assert asyncio.run(broadcaster.broadcast_once()) == 0
    # Universe untouched when nobody listens
    assert broadcaster.universe.lookup("tech", "digital_transformation")["average"] == 80


def test_failed_send_drops_subscriptions(broadcaster):
    good, bad = FakeSocket(), FakeSocket()
    _subscribe(broadcaster, good, "tech", ["roi"])
    _subscribe(broadcaster, bad, "tech", ["roi"])
    bad.fail = True

    assert asyncio.run(broadcaster.broadcast_once()) == 1
    assert bad not in broadcaster.subscriptions
    assert good in broadcaster.subscriptions


def test_unsubscribe_metrics(broadcaster):
    socket = FakeSocket()
    _subscribe(broadcaster, socket, "tech", ["roi", "r_and_d"])
    asyncio.run(broadcaster.handle_text(
        socket, '{"type": "unsubscribe_metrics", "industry": "tech", "metrics": ["roi"]}'
    ))

    assert socket.sent[-1]["type"] == "unsubscription_confirmed"
    assert socket.sent[-1]["metrics"] == ["roi"]
    assert broadcaster.subscriptions[socket] == {("tech", None, "r_and_d")}


@pytest.mark.parametrize("raw, error", [
    ("", "Empty message received"),
    ("hello", 'Message must be valid JSON or "ping" command'),
    ("[1, 2]", "Invalid message format"),
    ('{"type": "dance"}', "Unknown message type: dance"),
    ('{"type": "subscribe_metrics", "industry": "tech"}',
     "Invalid subscription data: industry and metrics array are required"),
    pytest.param(DEEPLY_NESTED, "Failed to process message", id="deeply-nested-json"),
])
def test_protocol_errors(broadcaster, raw, error):
    socket = FakeSocket()
    asyncio.run(broadcaster.handle_text(socket, raw))

    (message,) = socket.sent
    assert message["type"] == "error"
    assert message["error"] == error
    assert "expectedFormat" in message["details"]
    assert message["timestamp"].endswith("Z")


def test_snapshot_metrics(broadcaster):
    snapshot = broadcaster.snapshot_metrics("finance", ["debt_to_equity"])
    assert snapshot["industry"] == "finance"
    assert snapshot["data"]["debt_to_equity"]["average"] == 3


def test_connection_lifecycle_controls_task():
    async def scenario():
        broadcaster = BenchmarkBroadcaster(universe=BenchmarkUniverse(rng=random.Random(0)), interval=3600)
        first, second = FakeSocket(), FakeSocket()

        await broadcaster.connect(first)
        assert broadcaster.is_running
        await broadcaster.connect(second)

        broadcaster.disconnect(first)
        assert broadcaster.is_running
        broadcaster.disconnect(second)
        assert not broadcaster.is_running
        await broadcaster.shutdown()

    asyncio.run(scenario())
