"""
AI token usage ledger: best-effort recording and admin reports.
"""

import csv
import io
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from lectern.kernel.models.token_usage import TokenUsage
from lectern.kernel.models.user import User
from lectern.logging_config import get_logger

logger = get_logger(__name__)

_PROVIDER_RE = re.compile(r"^(?:openai:|google:|gemini:)", re.IGNORECASE)
_RANGES = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}
SORT_KEYS = ("user", "requests", "input", "output", "total", "last")


def canonicalize_model_id(name: Optional[str]) -> str:
    """Strip provider prefixes and fold alias model names."""
    model = _PROVIDER_RE.sub("", str(name or "").strip())
    model = re.sub("gpt-5-mini", "gpt-5", model, flags=re.IGNORECASE)
    model = re.sub("flash-lite", "flash", model, flags=re.IGNORECASE)
    return model


async def record_token_usage(
    session: AsyncSession,
    *,
    user_id: Optional[uuid.UUID],
    route: str,
    model: str,
    tokens_input: int = 0,
    tokens_output: int = 0,
    total_tokens: Optional[int] = None,
) -> None:
    """
    Log one AI call. Never raises; anonymous calls are not recorded.

    The row joins the caller's transaction and is committed with it.
    """
    if not user_id:
        return
    try:
        tokens_input = max(0, int(tokens_input or 0))
        tokens_output = max(0, int(tokens_output or 0))
        if total_tokens is None:
            total_tokens = tokens_input + tokens_output
        session.add(
            TokenUsage(
                user_id=user_id,
                route=route,
                model=canonicalize_model_id(model),
                tokens_input=tokens_input,
                tokens_output=tokens_output,
                total_tokens=max(0, int(total_tokens)),
            )
        )
    except Exception:
        logger.warning("Token usage not recorded", extra={"route": route}, exc_info=True)


class UsageRange(BaseModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    bucket: Literal["hour", "day"] = "day"


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_range(
    range_key: Optional[str] = "30d",
    start: Optional[str] = None,
    end: Optional[str] = None,
    now: Optional[datetime] = None,
) -> UsageRange:
    """
    Resolve a report window.

    Explicit `start`/`end` win over `range_key` (24h, 7d, 30d or all; anything
    else means 30d). Windows of two days or less are bucketed by hour.
    """
    now = now or datetime.now(timezone.utc)
    lo, hi = _parse_dt(start), _parse_dt(end)
    if lo is None and hi is None:
        key = (range_key or "30d").lower()
        if key != "all":
            lo, hi = now - _RANGES.get(key, _RANGES["30d"]), now
    if lo is not None and hi is not None and hi - lo <= timedelta(days=2):
        bucket = "hour"
    else:
        bucket = "day"
    return UsageRange(start=lo, end=hi, bucket=bucket)


class UsageSummary(BaseModel):
    requests: int = 0
    tokens_input: int = 0
    tokens_output: int = 0
    total_tokens: int = 0


class UserUsageRow(UsageSummary):
    user_id: uuid.UUID
    name: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None
    last_activity: Optional[datetime] = None


class UsageReport(BaseModel):
    page: int
    per_page: int
    total_users: int
    total_pages: int
    sort: str
    order: str
    summary: UsageSummary
    rows: List[UserUsageRow]


class UsageBucket(UsageSummary):
    bucket_start: datetime


class UserUsageDetail(BaseModel):
    user_id: uuid.UUID
    username: Optional[str] = None
    email: Optional[str] = None
    bucket: str
    summary: UsageSummary
    series: List[UsageBucket]
    by_model: Dict[str, int]


class TokenUsageReporter:
    """Aggregates the token ledger for the admin panel."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _filters(window: UsageRange, model: Optional[str], route: Optional[str]) -> list:
        conditions = []
        if window.start is not None:
            conditions.append(TokenUsage.created_at >= window.start)
        if window.end is not None:
            conditions.append(TokenUsage.created_at <= window.end)
        if model:
            conditions.append(TokenUsage.model == model)
        if route:
            conditions.append(TokenUsage.route == route)
        return conditions

    async def report(
        self,
        window: UsageRange,
        *,
        model: Optional[str] = None,
        route: Optional[str] = None,
        search: Optional[str] = None,
        sort: str = "total",
        order: str = "desc",
        page: int = 1,
        per_page: Optional[int] = 50,
    ) -> UsageReport:
        """Per-user aggregates plus an overall summary. per_page=None returns every row."""
        conditions = self._filters(window, model, route)
        sort = sort if sort in SORT_KEYS else "total"
        order = "asc" if order == "asc" else "desc"

        summary_q = select(
            func.count(TokenUsage.id),
            func.coalesce(func.sum(TokenUsage.tokens_input), 0),
            func.coalesce(func.sum(TokenUsage.tokens_output), 0),
            func.coalesce(func.sum(TokenUsage.total_tokens), 0),
        ).where(*conditions)
        s = (await self.session.execute(summary_q)).one()
        summary = UsageSummary(requests=s[0], tokens_input=s[1], tokens_output=s[2], total_tokens=s[3])

        requests = func.count(TokenUsage.id).label("requests")
        tin = func.coalesce(func.sum(TokenUsage.tokens_input), 0).label("tokens_input")
        tout = func.coalesce(func.sum(TokenUsage.tokens_output), 0).label("tokens_output")
        total = func.coalesce(func.sum(TokenUsage.total_tokens), 0).label("total_tokens")
        last = func.max(TokenUsage.created_at).label("last_activity")
        agg = (
            select(TokenUsage.user_id.label("user_id"), requests, tin, tout, total, last)
            .where(*conditions)
            .group_by(TokenUsage.user_id)
            .subquery()
        )
        q = select(agg, User.name, User.username, User.email, User.image).join(User, User.id == agg.c.user_id)
        if search:
            pattern = f"%{search.lower()}%"
            q = q.where(
                or_(
                    func.lower(func.coalesce(User.username, "")).like(pattern),
                    func.lower(func.coalesce(User.email, "")).like(pattern),
                )
            )

        count_q = select(func.count()).select_from(q.subquery())
        total_users = (await self.session.execute(count_q)).scalar_one()

        column = {
            "user": User.username,
            "requests": agg.c.requests,
            "input": agg.c.tokens_input,
            "output": agg.c.tokens_output,
            "total": agg.c.total_tokens,
            "last": agg.c.last_activity,
        }[sort]
        ordering = column.asc() if order == "asc" else column.desc()
        q = q.order_by(ordering, User.email.asc())

        page = max(1, page)
        if per_page is not None:
            per_page = min(200, max(1, per_page))
            q = q.limit(per_page).offset((page - 1) * per_page)

        rows = [UserUsageRow.model_validate(dict(r._mapping)) for r in (await self.session.execute(q)).all()]
        effective_per_page = per_page or max(1, len(rows))
        return UsageReport(
            page=page,
            per_page=effective_per_page,
            total_users=total_users,
            total_pages=max(1, -(-total_users // effective_per_page)),
            sort=sort,
            order=order,
            summary=summary,
            rows=rows,
        )

    async def user_detail(
        self,
        user_id: uuid.UUID,
        window: UsageRange,
        *,
        model: Optional[str] = None,
        route: Optional[str] = None,
    ) -> UserUsageDetail:
        """
        Time series and per-model totals for one user.

        Raises:
            LookupError: If the user doesn't exist
        """
        user = await self.session.get(User, user_id)
        if user is None:
            raise LookupError("User not found")

        q = (
            select(TokenUsage)
            .where(TokenUsage.user_id == user_id, *self._filters(window, model, route))
            .order_by(TokenUsage.created_at)
        )
        entries = (await self.session.execute(q)).scalars().all()

        summary = UsageSummary()
        buckets: Dict[datetime, UsageBucket] = {}
        by_model: Dict[str, int] = {}
        for e in entries:
            created = e.created_at if e.created_at.tzinfo else e.created_at.replace(tzinfo=timezone.utc)
            start = created.replace(minute=0, second=0, microsecond=0)
            if window.bucket == "day":
                start = start.replace(hour=0)
            b = buckets.setdefault(start, UsageBucket(bucket_start=start))
            for agg in (summary, b):
                agg.requests += 1
                agg.tokens_input += e.tokens_input
                agg.tokens_output += e.tokens_output
                agg.total_tokens += e.total_tokens
            by_model[e.model] = by_model.get(e.model, 0) + e.total_tokens

        return UserUsageDetail(
            user_id=user.id,
            username=user.username,
            email=user.email,
            bucket=window.bucket,
            summary=summary,
            series=[buckets[k] for k in sorted(buckets)],
            by_model=by_model,
        )


CSV_HEADER = [
    "user_id",
    "name",
    "username",
    "email",
    "requests",
    "tokens_input",
    "tokens_output",
    "total_tokens",
    "last_activity",
]


def report_to_csv(rows: List[UserUsageRow]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for r in rows:
        writer.writerow([
            str(r.user_id),
            r.name or "",
            r.username or "",
            r.email or "",
            r.requests,
            r.tokens_input,
            r.tokens_output,
            r.total_tokens,
            r.last_activity.isoformat() if r.last_activity else "",
        ])
    return buf.getvalue()
