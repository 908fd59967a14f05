"""
benchmarks.py — REST Snapshot of the Live Benchmark Feed

- GET /benchmarks/{industry}?metrics=a,b → current `{average, maxValue, ...}`
  per metric, resolved through the same fallback chain as the WebSocket feed.
"""

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_benchmarks
from app.core.errors import AppError
from app.services.benchmarks.broadcaster import BenchmarkBroadcaster

router = APIRouter(prefix="/benchmarks", tags=["benchmarks"])


@router.get("/{industry}")
def get_benchmarks_snapshot(
    industry: str,
    metrics: str = Query(..., description="Comma-separated metric ids"),
    benchmarks: BenchmarkBroadcaster = Depends(get_benchmarks),
):
    metric_ids = [m.strip() for m in metrics.split(",") if m.strip()]
    if not metric_ids:
        raise AppError("At least one metric is required", status_code=400)
    return benchmarks.snapshot_metrics(industry, metric_ids)
