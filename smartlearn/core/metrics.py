"""Application metrics using the Prometheus client library.

Every metric the service exposes is declared here, so this file doubles as
the inventory of what is measured.  Modules import the metric they own
and increment/observe it at the point of action.

HTTP metrics are populated by MetricsMiddleware.  Store metrics are
populated by the backends through ``observe_store_operation``, so the
three backends report under identical names and differ only in the
``backend`` label.  Domain counters track what learners actually do.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager

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
# Collection store metrics
# ---------------------------------------------------------------------------

STORE_OPERATIONS = Counter(
    "store_operations_total",
    "Collection store operations by backend, operation and outcome",
    ["backend", "operation", "outcome"],  # outcome: ok|error
)

STORE_OPERATION_DURATION = Histogram(
    "store_operation_duration_seconds",
    "Collection store operation duration in seconds",
    ["backend", "operation"],
    # Memory ops are sub-millisecond; SQLite commits land in 1-25ms.
    buckets=[0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0],
)

# ---------------------------------------------------------------------------
# Domain metrics
# ---------------------------------------------------------------------------

ENROLLMENTS = Counter(
    "enrollments_total",
    "Enrollment requests by outcome",
    ["outcome"],  # created|existing|failed
)

PROGRESS_UPDATES = Counter(
    "progress_updates_total",
    "Progress record mutations by action",
    ["action"],  # created|completed|uncompleted|noop|reset
)


@contextmanager
def observe_store_operation(backend: str, operation: str) -> Iterator[None]:
    """Time a store operation and count it as ok or error."""
    start = time.monotonic()
    try:
        yield
    except Exception:
        STORE_OPERATIONS.labels(backend=backend, operation=operation, outcome="error").inc()
        raise
    else:
        STORE_OPERATIONS.labels(backend=backend, operation=operation, outcome="ok").inc()
    finally:
        STORE_OPERATION_DURATION.labels(backend=backend, operation=operation).observe(
            time.monotonic() - start
        )
