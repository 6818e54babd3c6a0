"""Per-request correlation id and access log.

Every request gets an id, taken from the client's X-Request-ID header when
present or generated otherwise.  The id lives in a ContextVar so any log
line emitted while serving the request (ledger, tracker, store backend)
carries it without threading it through call signatures, and it is echoed
back on the response for client-side correlation.

A ContextVar rather than a thread-local: concurrent requests share the
event loop thread, and each asyncio task sees its own copy of the var.
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


class _RequestContextFilter(logging.Filter):
    """Attach the current request id to every LogRecord."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get("-")  # type: ignore[attr-defined]
        return True


def install_request_id_filter() -> None:
    """Install the filter on the root logger once."""
    root = logging.getLogger()
    if not any(isinstance(f, _RequestContextFilter) for f in root.filters):
        root.addFilter(_RequestContextFilter())


install_request_id_filter()


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        token = request_id_var.set(req_id)
        start = time.monotonic()
        try:
            response = await call_next(request)
            duration_ms = round((time.monotonic() - start) * 1000, 1)

            extra: dict[str, object] = {
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            }
            # Learner-scoped routes name the user and course in the path.
            params = request.path_params
            for field in ("user_id", "course_id"):
                if field in params:
                    extra[field] = params[field]

            logger.info(
                "%s %s -> %d (%.1fms)",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
                extra=extra,
            )
            response.headers["X-Request-ID"] = req_id
            return response
        finally:
            request_id_var.reset(token)
