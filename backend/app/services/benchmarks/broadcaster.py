"""
broadcaster.py — Live Benchmark Feed over WebSocket

Purpose:
- Track live connections and their metric subscriptions.
- Answer the inbound JSON protocol (ping, subscribe, subscribe_metrics,
  unsubscribe_metrics).
- Every BENCHMARK_BROADCAST_INTERVAL_SECONDS: perturb the universe, then push one
  `benchmark_update` per (industry, subcategory) group to each subscriber.

Lifecycle:
- The periodic task starts when the first connection is accepted and is
  cancelled when the last connection leaves (counted by live connections, not
  by subscriptions).
- A connection's subscriptions are dropped on disconnect or on a failed send.

Failure isolation:
- Protocol errors, and any other failure while handling a message, are answered
  with a typed `error` message to that connection only; the connection stays open.
- A failing metric is logged and skipped; the rest of the update still goes out.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from app.core.config import settings
from app.core.logging import get_logger
from app.services.benchmarks.universe import BenchmarkUniverse

logger = get_logger(__name__)

SubscriptionKey = Tuple[str, Optional[str], str]  # (industry, subcategory, metric)

DATA_SOURCE = "European Market Index"
UPDATE_FREQUENCY = "15s"
INITIAL_CONFIDENCE_SCORE = 92

EXPECTED_FORMAT = 'JSON with {type: string, ...} or "ping" string'
EXAMPLE_MESSAGE = json.dumps({"type": "subscribe", "channel": "updates"}, separators=(",", ":"))


class ProtocolError(ValueError):
    """Inbound message the feed cannot act on."""


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-05-01T12:00:00.000Z"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def classify_trend(previous: float, current: float) -> Tuple[str, float]:
    """
    Compare a metric's new average against its pre-update value.

    up     → current > previous × 1.005
    down   → current < previous × 0.995
    stable → otherwise
    changePercent is the relative move in percent, one decimal place.
    """
    if not previous:
        return "stable", 0.0

    ratio = current / previous
    if current > previous * 1.005:
        trend, change = "up", (ratio - 1) * 100
    elif current < previous * 0.995:
        trend, change = "down", (1 - ratio) * 100
    else:
        trend, change = "stable", abs((ratio - 1) * 100)
    return trend, round(change, 1)


class BenchmarkBroadcaster:
    """Connection registry, subscription book and periodic sender for one universe."""

    def __init__(self, universe: Optional[BenchmarkUniverse] = None, interval: Optional[float] = None):
        self.universe = universe or BenchmarkUniverse()
        self.interval = interval if interval is not None else settings.BENCHMARK_BROADCAST_INTERVAL_SECONDS
        self.connections: Set[Any] = set()
        self.subscriptions: Dict[Any, Set[SubscriptionKey]] = {}
        self._task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------ #
    # Connection lifecycle
    async def connect(self, websocket) -> None:
        await websocket.accept()
        self.connections.add(websocket)
        logger.info("WebSocket client connected (%d live)", len(self.connections))
        if len(self.connections) == 1:
            self._start()

    def disconnect(self, websocket) -> None:
        self.connections.discard(websocket)
        self.subscriptions.pop(websocket, None)
        logger.info("WebSocket client disconnected (%d live)", len(self.connections))
        if not self.connections:
            self._stop()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("Benchmark broadcast started (every %ss)", self.interval)

    def _stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.info("Benchmark broadcast stopped")

    async def shutdown(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.broadcast_once()
            except Exception:
                logger.exception("Benchmark broadcast tick failed")

    # ------------------------------------------------------------------ #
    # Sending
    async def _send(self, websocket, message: Dict[str, Any]) -> bool:
        try:
            await websocket.send_json(message)
            return True
        except Exception as e:
            logger.error(f"Error sending {message.get('type')} message: {e}")
            return False

    async def send_error(self, websocket, error: str) -> None:
        await self._send(websocket, {
            "type": "error",
            "error": error,
            "details": {
                "expectedFormat": EXPECTED_FORMAT,
                "example": EXAMPLE_MESSAGE,
            },
            "timestamp": utc_timestamp(),
        })

    def _metadata(self, timestamp: str, confidence_score: Optional[int] = None) -> Dict[str, Any]:
        rng = self.universe.rng
        return {
            "dataSource": DATA_SOURCE,
            "lastUpdated": timestamp,
            "sampleSize": 200 + rng.randrange(100),
            "isRealTime": True,
            "updateFrequency": UPDATE_FREQUENCY,
            "europeanIndex": True,
            "confidenceScore": confidence_score if confidence_score is not None else 88 + rng.randrange(10),
        }

    # ------------------------------------------------------------------ #
    # Inbound protocol
    async def handle_text(self, websocket, raw: str) -> None:
        """Process one inbound text frame; errors go back to the sender only."""
        try:
            await self._dispatch(websocket, raw)
        except ProtocolError as exc:
            logger.info("Rejected WebSocket message: %s", exc)
            await self.send_error(websocket, str(exc))
        except Exception:
            logger.exception("Error processing WebSocket message")
            await self.send_error(websocket, "Failed to process message")

    async def _dispatch(self, websocket, raw: str) -> None:
        if not raw or not raw.strip():
            raise ProtocolError("Empty message received")

        try:
            data = json.loads(raw)
        except ValueError:
            if raw.strip().lower() == "ping":
                await self._send(websocket, {"type": "pong", "timestamp": utc_timestamp()})
                return
            raise ProtocolError('Message must be valid JSON or "ping" command')

        if not isinstance(data, dict):
            raise ProtocolError("Invalid message format")

        message_type = data.get("type")
        logger.debug("Received WebSocket message: %s", message_type or "[unknown]")

        if message_type == "ping":
            await self._send(websocket, {"type": "pong", "timestamp": utc_timestamp()})
        elif message_type == "subscribe":
            await self.handle_subscribe(websocket, data)
        elif message_type == "subscribe_metrics":
            await self.handle_subscribe_metrics(websocket, data)
        elif message_type == "unsubscribe_metrics":
            await self.handle_unsubscribe_metrics(websocket, data)
        else:
            raise ProtocolError(f"Unknown message type: {message_type}")

    async def handle_subscribe(self, websocket, data: Dict[str, Any]) -> None:
        """Legacy channel subscription: confirm, then send one synthetic sample."""
        channel = data.get("channel")
        logger.info("Client subscribed to channel: %s", channel)

        await self._send(websocket, {
            "type": "subscription_confirmed",
            "channel": channel,
            "timestamp": utc_timestamp(),
        })

        timestamp = utc_timestamp()
        await self._send(websocket, {
            "type": "benchmark_update",
            "timestamp": timestamp,
            "data": {
                "test_metric": {
                    "value": 100,
                    "average": 80,
                    "maxValue": 120,
                    "trend": "up",
                    "changePercent": 5,
                    "metadata": {
                        "dataSource": DATA_SOURCE,
                        "lastUpdated": timestamp,
                        "sampleSize": 250,
                        "isRealTime": True,
                        "updateFrequency": UPDATE_FREQUENCY,
                        "europeanIndex": True,
                        "confidenceScore": 95,
                    },
                },
            },
        })

    async def handle_subscribe_metrics(self, websocket, data: Dict[str, Any]) -> None:
        industry = data.get("industry")
        subcategory = data.get("subcategory")
        metrics = data.get("metrics")

        if (
            not industry
            or not isinstance(industry, str)
            or not isinstance(metrics, list)
            or not metrics
            or not all(isinstance(m, str) and m for m in metrics)
        ):
            raise ProtocolError("Invalid subscription data: industry and metrics array are required")
        if subcategory is not None and not isinstance(subcategory, str):
            raise ProtocolError("Invalid subscription data: subcategory must be a string")

        metrics = list(dict.fromkeys(metrics))
        keys = self.subscriptions.setdefault(websocket, set())
        keys.update((industry, subcategory, metric) for metric in metrics)
        logger.info("Client subscribed to metrics for industry %s: [%s]", industry, ", ".join(metrics))

        timestamp = utc_timestamp()
        updates = {}
        for metric in metrics:
            value = self.universe.lookup(industry, metric)
            updates[metric] = {
                "average": value["average"],
                "maxValue": value["maxValue"],
                "trend": "stable",
                "changePercent": 0,
                "metadata": self._metadata(timestamp, confidence_score=INITIAL_CONFIDENCE_SCORE),
            }

        await self._send(websocket, {"type": "benchmark_update", "timestamp": timestamp, "data": updates})
        await self._send(websocket, {
            "type": "subscription_confirmed",
            "industry": industry,
            "subcategory": subcategory,
            "metrics": metrics,
            "timestamp": utc_timestamp(),
        })

    async def handle_unsubscribe_metrics(self, websocket, data: Dict[str, Any]) -> None:
        """Drop the named metrics, or every metric of the industry/subcategory when none are named."""
        industry = data.get("industry")
        subcategory = data.get("subcategory")
        metrics = data.get("metrics")

        if not industry or not isinstance(industry, str):
            raise ProtocolError("Invalid unsubscription data: industry is required")
        if metrics is not None and not isinstance(metrics, list):
            raise ProtocolError("Invalid unsubscription data: metrics must be an array")

        keys = self.subscriptions.get(websocket, set())
        removed = sorted(
            key for key in keys
            if key[0] == industry
            and key[1] == subcategory
            and (not metrics or key[2] in metrics)
        )
        keys.difference_update(removed)
        if not keys:
            self.subscriptions.pop(websocket, None)

        await self._send(websocket, {
            "type": "unsubscription_confirmed",
            "industry": industry,
            "subcategory": subcategory,
            "metrics": [key[2] for key in removed],
            "timestamp": utc_timestamp(),
        })

    # ------------------------------------------------------------------ #
    # Broadcast
    @staticmethod
    def _group(keys: Iterable[SubscriptionKey]) -> Dict[Tuple[str, Optional[str]], List[str]]:
        groups: Dict[Tuple[str, Optional[str]], List[str]] = {}
        for industry, subcategory, metric in sorted(keys, key=lambda k: (k[0], k[1] or "", k[2])):
            groups.setdefault((industry, subcategory), []).append(metric)
        return groups

    def _metric_update(self, previous: BenchmarkUniverse, industry: str, metric: str, timestamp: str) -> Dict[str, Any]:
        current = self.universe.lookup(industry, metric)
        before = previous.lookup(industry, metric)
        trend, change_percent = classify_trend(before["average"], current["average"])
        return {
            "average": current["average"],
            "maxValue": current["maxValue"],
            "trend": trend,
            "changePercent": change_percent,
            "metadata": self._metadata(timestamp),
        }

    async def broadcast_once(self) -> int:
        """
        Perturb the universe and push updates to every subscriber.

        Returns the number of messages sent.
        """
        if not self.subscriptions:
            logger.debug("No clients subscribed, skipping benchmark update broadcast")
            return 0

        previous = self.universe.snapshot()
        self.universe.perturb()
        timestamp = utc_timestamp()
        logger.info("Broadcasting benchmark updates to %d clients", len(self.subscriptions))

        sent = 0
        for websocket, keys in list(self.subscriptions.items()):
            for (industry, subcategory), metrics in self._group(keys).items():
                updates = {}
                for metric in metrics:
                    try:
                        updates[metric] = self._metric_update(previous, industry, metric, timestamp)
                    except Exception:
                        logger.exception("Error processing metric %s for industry %s", metric, industry)
                if not updates:
                    continue

                delivered = await self._send(websocket, {
                    "type": "benchmark_update",
                    "timestamp": timestamp,
                    "industry": industry,
                    "subcategory": subcategory,
                    "data": updates,
                })
                if not delivered:
                    self.subscriptions.pop(websocket, None)
                    break
                sent += 1
        return sent

    # ------------------------------------------------------------------ #
    # REST snapshot
    def snapshot_metrics(self, industry: str, metrics: Iterable[str]) -> Dict[str, Any]:
        """Current values for a polling client, same shape as a fresh subscription update."""
        timestamp = utc_timestamp()
        data = {}
        for metric in metrics:
            value = self.universe.lookup(industry, metric)
            data[metric] = {
                "average": value["average"],
                "maxValue": value["maxValue"],
                "trend": "stable",
                "changePercent": 0,
                "metadata": self._metadata(timestamp, confidence_score=INITIAL_CONFIDENCE_SCORE),
            }
        return {"industry": industry, "timestamp": timestamp, "data": data}
