"""Development request log for the activity-image API.

One line per API request, tagged with a short request id that is also
returned as X-Request-ID. Generation requests additionally report which
provider produced the image, whether the fallback prompt was needed and
how many attempts it took. Activity payloads are never logged; they carry
user-written titles and descriptions.
"""

import logging
import time
import uuid
from typing import Callable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger("api.requests")

LOGGED_PATH_PREFIX = "/api/"


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


def describe_image_outcome(outcome: Optional[dict]) -> str:
    """Render the generation outcome a route stored on request.state."""
    if not outcome:
        return ""
    return " provider={provider} fallback={fallback} attempts={attempts}".format(
        provider=outcome.get("provider", "unknown"),
        fallback=outcome.get("fallback"),
        attempts=outcome.get("attempts"),
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log API requests with their id, status, duration and image outcome."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not request.url.path.startswith(LOGGED_PATH_PREFIX):
            return await call_next(request)

        request_id = new_request_id()
        # Routes read this to tag their own log lines
        request.state.request_id = request_id
        started = time.perf_counter()
        line = f"[{request_id}] {request.method} {request.url.path}"

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error("%s - ERROR (%.3fs): %s", line, time.perf_counter() - started, e)
            raise

        outcome = describe_image_outcome(getattr(request.state, "image_outcome", None))
        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        logger.log(
            level,
            "%s - %s (%.3fs)%s",
            line,
            response.status_code,
            time.perf_counter() - started,
            outcome,
        )

        response.headers["X-Request-ID"] = request_id
        return response


def configure_request_logging(log_level: str = "INFO") -> None:
    """Set the request logger level; records go through the root handlers."""
    logging.getLogger("api.requests").setLevel(
        getattr(logging, log_level.upper(), logging.INFO)
    )
