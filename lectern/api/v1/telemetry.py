"""
Client telemetry sink.
"""

from fastapi import APIRouter, Request, Response, status

from lectern.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def ingest_telemetry(request: Request):
    """Accept anything and answer 204; telemetry must never fail the client."""
    try:
        body = await request.body()
        logger.debug("Telemetry received", extra={"bytes": len(body)})
    except Exception:
        logger.debug("Telemetry body unreadable", exc_info=True)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
