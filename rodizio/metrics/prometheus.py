# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics: single source of truth for all metric objects.
Imported by services and middleware. Never instantiated in controllers.
"""

from prometheus_client import Counter, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "rodizio_requests_total",
    "Total HTTP requests to the rotation service",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "rodizio_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "rodizio_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Business Metrics (updated by service layer only) ──
GENERATIONS_TOTAL = Counter(
    "rodizio_generations_total",
    "Total rotation generation runs",
    ["mode", "status"],
)
GENERATION_DURATION = Histogram(
    "rodizio_generation_duration_seconds",
    "Time to plan and persist one rotation window",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)
ASSIGNMENTS_WRITTEN = Counter(
    "rodizio_assignments_written_total",
    "Assignment rows inserted or changed by generation runs",
)
UNFILLED_ROLES = Counter(
    "rodizio_unfilled_roles_total",
    "Service dates whose role could not be staffed",
    ["role"],
)
WEBHOOK_SENT = Counter(
    "rodizio_webhook_sent_total",
    "Generated-rotation webhook deliveries",
    ["status"],
)
