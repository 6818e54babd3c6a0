"""Prometheus metrics endpoint.

Returns plain text in Prometheus exposition format, e.g.:

  # HELP store_operations_total Collection store operations
  # TYPE store_operations_total counter
  store_operations_total{backend="sql",operation="add",outcome="ok"} 12.0

Restrict access to /metrics in production (internal port or scrape-only
network); the series reveal request rates and error patterns.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
