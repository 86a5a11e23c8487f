"""Health check and metrics endpoints."""
import time

from fastapi import APIRouter, Depends, Request

from core.observability import get_correlation_id, metrics, Timer
from web.config import VERSION
from web.schemas import HealthResponse, MetricsResponse
from ._deps import limiter, get_store, get_logger, PortalStore, START_TIME

router = APIRouter(tags=["health"])
logger = get_logger(__name__)


@router.get("/health", response_model=HealthResponse)
@limiter.limit("60/minute")
async def health_check(request: Request, store: PortalStore = Depends(get_store)):
    """Health check endpoint for Docker/load balancer monitoring."""
    try:
        with Timer("health_check_db") as timer:
            stats = await store.get_stats()
        store_status = {"status": "connected", "latency_ms": round(timer.elapsed_ms, 2), **stats}
        status = "healthy"
    except Exception as e:
        logger.error(f"Health check could not read the store: {e}")
        store_status = {"status": f"error: {e}"}
        status = "degraded"

    return {
        "status": status,
        "version": VERSION,
        "uptime_seconds": int(time.time() - START_TIME),
        "correlation_id": get_correlation_id(),
        "store": store_status,
    }


@router.get("/metrics", response_model=MetricsResponse)
@limiter.limit("60/minute")
async def get_metrics_endpoint(request: Request):
    """Get application metrics."""
    return {
        "uptime_seconds": int(time.time() - START_TIME),
        "correlation_id": get_correlation_id(),
        **metrics.get_stats(),
    }
