"""
WebSocket endpoint for the live benchmark feed (/ws)
"""

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from app.api.deps import get_benchmarks
from app.core.logging import get_logger
from app.services.benchmarks.broadcaster import BenchmarkBroadcaster

logger = get_logger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def benchmark_feed(websocket: WebSocket, benchmarks: BenchmarkBroadcaster = Depends(get_benchmarks)):
    """Accept, then hand every text frame to the broadcaster until the client leaves."""
    await benchmarks.connect(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            raw = message.get("text")
            if raw is None and message.get("bytes") is not None:
                raw = message["bytes"].decode("utf-8", errors="replace")
            await benchmarks.handle_text(websocket, raw or "")
    except WebSocketDisconnect:
        pass
    finally:
        benchmarks.disconnect(websocket)
