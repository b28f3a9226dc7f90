"""
JSON error responses.

Every error body has a `detail`; validation errors add a per-field list and
server errors add the request id so a learner can quote it in a bug report.
Error responses carry CORS headers themselves because unhandled exceptions
are answered outside the CORS middleware.
"""

from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from lectern.api.middleware.request_id import REQUEST_ID_HEADER
from lectern.logging_config import get_logger

logger = get_logger(__name__)


def _headers(request: Request, origins: List[str], extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    headers: Dict[str, str] = dict(extra or {})
    origin = request.headers.get("origin")
    if origin and origin in origins:
        headers["Access-Control-Allow-Origin"] = origin
        headers["Access-Control-Allow-Credentials"] = "true"
        headers["Vary"] = "Origin"
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        headers[REQUEST_ID_HEADER] = request_id
    return headers


def register_exception_handlers(app: FastAPI, origins: List[str], debug: bool = False) -> None:
    """Attach the HTTP, validation and catch-all handlers to `app`."""

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        body = {"detail": exc.detail}
        if exc.status_code >= 500:
            body["request_id"] = getattr(request.state, "request_id", None)
        return JSONResponse(
            status_code=exc.status_code,
            content=body,
            headers=_headers(request, origins, exc.headers),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err["loc"] if part != "body"),
                "message": err["msg"],
                "type": err["type"],
            }
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": "Validation error", "errors": errors},
            headers=_headers(request, origins),
        )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        body = {
            "detail": f"{type(exc).__name__}: {exc}" if debug else "Internal server error",
            "request_id": getattr(request.state, "request_id", None),
        }
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body,
            headers=_headers(request, origins),
        )
