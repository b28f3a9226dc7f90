"""
Response shapes shared by several routers.
"""

from typing import Any, Optional

from pydantic import BaseModel


class SuccessResponse(BaseModel):
    """`{"ok": true}` plus an optional message or payload."""

    ok: bool = True
    message: Optional[str] = None
    data: Optional[Any] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    ai_configured: bool = False
