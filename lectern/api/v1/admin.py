"""
Admin endpoints. Access is granted by the ADMIN_EMAILS allow-list.
"""

import math
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Response, status

from lectern.api.deps import AdminUser, CurrentUser, DbSession
from lectern.engines.progression.ranks import get_ranks_safe, seed_default_ranks
from lectern.engines.usage.token_usage import (
    TokenUsageReporter,
    UsageReport,
    UserUsageDetail,
    parse_range,
    report_to_csv,
)
from lectern.kernel.identity.admin import is_admin_email
from lectern.logging_config import get_logger
from lectern.schemas.admin import AdminMeResponse, RanksResponse, SetEloRequest, SetEloResponse

logger = get_logger(__name__)

router = APIRouter()


@router.get("/me", response_model=AdminMeResponse)
async def admin_me(user: CurrentUser):
    return AdminMeResponse(email=user.email, is_admin=is_admin_email(user.email))


@router.post("/elo", response_model=SetEloResponse)
async def set_own_elo(data: SetEloRequest, admin: AdminUser, db: DbSession):
    """Set the caller's ELO (rounded, must be >= 0)."""
    if not math.isfinite(data.elo) or data.elo < 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid elo")
    admin.elo = int(math.floor(data.elo + 0.5))
    await db.flush()
    logger.info("Admin set ELO", extra={"user_id": str(admin.id), "elo": admin.elo})
    return SetEloResponse(id=admin.id, elo=admin.elo)


@router.post("/ranks/seed", response_model=RanksResponse)
async def seed_ranks(admin: AdminUser, db: DbSession):
    """Upsert the default rank ladder."""
    await seed_default_ranks(db)
    return RanksResponse(ranks=await get_ranks_safe(db))


@router.get("/tokens", response_model=UsageReport)
async def token_report(
    admin: AdminUser,
    db: DbSession,
    range: Optional[str] = "30d",
    start: Optional[str] = Query(None, alias="from"),
    end: Optional[str] = Query(None, alias="to"),
    model: Optional[str] = None,
    route: Optional[str] = None,
    q: Optional[str] = None,
    sort: str = "total",
    order: str = "desc",
    page: int = 1,
    per_page: int = 50,
    format: Optional[str] = None,
):
    """
    Per-user token usage in a window.

    The window is `range` (24h, 7d, 30d, all) unless `from`/`to` are given.
    `format=csv` returns every matching row as a CSV attachment.
    """
    window = parse_range(range, start, end)
    reporter = TokenUsageReporter(db)
    as_csv = (format or "").lower() == "csv"
    report = await reporter.report(
        window,
        model=(model or "").strip() or None,
        route=(route or "").strip() or None,
        search=(q or "").strip() or None,
        sort=(sort or "total").lower(),
        order=(order or "desc").lower(),
        page=page,
        per_page=None if as_csv else per_page,
    )
    if as_csv:
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d-%H-%M-%S")
        return Response(
            content=report_to_csv(report.rows),
            media_type="text/csv; charset=utf-8",
            headers={
                "Content-Disposition": f"attachment; filename=tokens_{stamp}.csv",
                "Cache-Control": "no-store",
            },
        )
    return report


@router.get("/tokens/{user_id}", response_model=UserUsageDetail)
async def token_user_detail(
    user_id: uuid.UUID,
    admin: AdminUser,
    db: DbSession,
    range: Optional[str] = "30d",
    start: Optional[str] = Query(None, alias="from"),
    end: Optional[str] = Query(None, alias="to"),
    model: Optional[str] = None,
    route: Optional[str] = None,
):
    """Usage time series for one user, bucketed by hour for windows of two days or less."""
    try:
        return await TokenUsageReporter(db).user_detail(
            user_id,
            parse_range(range, start, end),
            model=(model or "").strip() or None,
            route=(route or "").strip() or None,
        )
    except LookupError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
