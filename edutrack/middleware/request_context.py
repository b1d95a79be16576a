"""Request context middleware: one id per request, one log line per request.

The request id lives in a ContextVar (not a thread-local: async requests
share threads) and a root-logger filter copies it onto every LogRecord, so
any module's log line can be correlated with the request that caused it.

require_user() stores the authenticated user id and role on request.state;
the summary line picks them up so JSON logs can be filtered by role.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")
user_id_var: ContextVar[int | None] = ContextVar("user_id", default=None)
role_var: ContextVar[str | None] = ContextVar("role", default=None)


class _RequestContextFilter(logging.Filter):
    """Adds request_id (and user/role once authenticated) to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("-")  # type: ignore[attr-defined]
        if getattr(record, "user_id", None) is None:
            record.user_id = user_id_var.get(None)  # type: ignore[attr-defined]
        if getattr(record, "role", None) is None:
            record.role = role_var.get(None)  # type: ignore[attr-defined]
        return True


# Install the filter on the root logger so ALL loggers inherit it.
# Guard against duplicate installation across module reloads.
root_logger = logging.getLogger()
if not any(isinstance(f, _RequestContextFilter) for f in root_logger.filters):
    root_logger.addFilter(_RequestContextFilter())


def bind_principal(request: Request, user_id: int, role: str) -> None:
    """Attach the authenticated identity to the request and the log context."""
    request.state.user_id = user_id
    request.state.role = role
    user_id_var.set(user_id)
    role_var.set(role)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assigns a request ID, times the request and logs a summary line.

    An incoming X-Request-ID header is reused so a caller can correlate its
    own logs; the id is echoed back on the response.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request_id_var.set(req_id)

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        logger.info(
            "%s %s → %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "user_id": getattr(request.state, "user_id", None),
                "role": getattr(request.state, "role", None),
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        response.headers["X-Request-ID"] = req_id
        return response
