"""Liveness and readiness probes.

/health answers "is the process alive": always 200, with a status field
that turns "degraded" when a configured dependency does not answer.
Returning 503 there would make the orchestrator restart a process that is
only waiting on Redis or Postgres.

/ready answers "should traffic come here": 503 while a configured database
is unreachable. Redis is not critical (the blacklist can fall back to
process memory), so it never fails readiness. Unconfigured dependencies
count as fine: the in-memory store needs neither.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status

from edutrack.core.config import SETTINGS
from edutrack.db.engine import ping_database
from edutrack.db.redis import ping_redis
from edutrack.repos.store import store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _checks() -> dict[str, str]:
    checks: dict[str, str] = {}
    if SETTINGS.redis_url:
        checks["redis"] = "ok" if await ping_redis() else "degraded"
    else:
        checks["redis"] = "not_configured"
    if SETTINGS.database_url:
        checks["database"] = "ok" if await ping_database() else "degraded"
    else:
        checks["database"] = "not_configured"
    return checks


@router.get("/health")
async def health() -> dict:
    checks = await _checks()
    overall = "degraded" if "degraded" in checks.values() else "ok"
    if overall != "ok":
        logger.warning("Health degraded: %s", checks)
    return {
        "status": overall,
        "env": SETTINGS.app_env,
        "checks": checks,
        "store": {"users": len(store.users.list_all())},
    }


@router.get("/ready")
async def ready() -> Response:
    if SETTINGS.database_url and not await ping_database():
        logger.warning("Not ready: database unreachable")
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)
