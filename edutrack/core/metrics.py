"""Prometheus metric inventory.

Every metric the service exports is declared here; the modules that own the
behaviour import the metric and increment it at the point of action.
Scraped from GET /metrics.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Domain metrics
# ---------------------------------------------------------------------------

PROGRESSION_TRANSITIONS = Counter(
    "progression_transitions_total",
    "Lesson progression status changes",
    ["from_status", "to_status"],  # from_status is "none" for a new row
)

NOTIFICATIONS_CREATED = Counter(
    "notifications_created_total",
    "Notification rows written, by type",
    ["type"],
)

TOKEN_BLACKLIST_CHECKS = Counter(
    "token_blacklist_checks_total",
    "Token blacklist lookups by result",
    ["result"],  # "revoked" or "valid"
)

LOGIN_ATTEMPTS = Counter(
    "login_attempts_total",
    "Login attempts by outcome",
    ["outcome"],  # "success" or "failure"
)
