"""
Request correlation middleware.

Each request gets an id (the caller's X-Request-ID if it looks sane, else a
fresh one). It is stored on request.state, echoed on the response, and bound
to the logging context for the duration of the request.
"""

import re
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from lectern.config import get_settings
from lectern.logging_config import get_logger, request_id_var, user_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_VALID_ID = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")


def resolve_request_id(incoming: str) -> str:
    """Reuse a client-supplied id only if it is short and header-safe."""
    if incoming and _VALID_ID.match(incoming):
        return incoming
    return uuid.uuid4().hex


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag requests with an id and report slow ones."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER, ""))
        request.state.request_id = request_id
        rid_token = request_id_var.set(request_id)
        uid_token = user_id_var.set(None)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started) * 1000
            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers["Server-Timing"] = f"app;dur={elapsed_ms:.1f}"
            if elapsed_ms > get_settings().slow_request_ms:
                logger.warning(
                    "Slow request %s %s took %.0f ms",
                    request.method,
                    request.url.path,
                    elapsed_ms,
                    extra={"status": response.status_code},
                )
            return response
        finally:
            request_id_var.reset(rid_token)
            user_id_var.reset(uid_token)
