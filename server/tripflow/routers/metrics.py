"""Prometheus scrape endpoint for booking lifecycle metrics."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST

from ..core.observability import get_prometheus_metrics

router = APIRouter(tags=["Observability"])


@router.get(
    "/metrics",
    summary="Booking metrics",
    description=(
        "Prometheus exposition of bookings created, status transitions, capacity "
        "rejections, verified payments and per-departure seat utilization, plus "
        "HTTP request counts and latencies"
    ),
    response_class=Response,
)
async def metrics() -> Response:
    """Serve the service's dedicated Prometheus registry."""
    return Response(content=get_prometheus_metrics(), media_type=CONTENT_TYPE_LATEST)
