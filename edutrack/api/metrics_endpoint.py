"""Prometheus scrape endpoint.

Plain-text exposition format, not JSON. Besides the HTTP counters from
MetricsMiddleware it carries the domain series defined in core/metrics.py:

  progression_transitions_total{from_status="completed",to_status="validated"} 12.0
  notifications_created_total{type="delay"} 3.0

Restrict /metrics at the ingress in production; the series reveal request
rates and how busy each role is.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
