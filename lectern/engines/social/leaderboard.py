"""
Leaderboard ordering and queries.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, List, Literal, Optional, Sequence

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lectern.kernel.models.progress import QuizAttempt
from lectern.kernel.models.social import Follow
from lectern.kernel.models.user import User

Scope = Literal["global", "friends"]
Timeframe = Literal["all", "30d"]

# Candidate pool fetched before the final sort/slice
CANDIDATE_POOL = 500
MAX_LIMIT = 100


class LeaderboardRow(BaseModel):
    id: uuid.UUID
    name: Optional[str] = None
    username: Optional[str] = None
    image: Optional[str] = None
    elo: int
    streak: int = 0
    last_active: Optional[datetime] = None


def parse_scope(value: Optional[str]) -> Scope:
    return "friends" if (value or "").lower() == "friends" else "global"


def parse_timeframe(value: Optional[str]) -> Timeframe:
    return "30d" if (value or "").lower() in ("30d", "30") else "all"


def clamp_limit(value: Any, default: int = 50) -> int:
    try:
        limit = int(value)
    except (TypeError, ValueError):
        limit = default
    return min(MAX_LIMIT, max(1, limit))


def _ts(value: Optional[datetime]) -> float:
    if value is None:
        return 0.0
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def sort_leaderboard(rows: Sequence[LeaderboardRow]) -> List[LeaderboardRow]:
    """ELO descending, then most recent activity, then id ascending."""
    return sorted(rows, key=lambda r: (-r.elo, -_ts(r.last_active), str(r.id)))


async def fetch_leaderboard(
    session: AsyncSession,
    viewer_id: uuid.UUID,
    scope: Scope = "global",
    timeframe: Timeframe = "all",
    limit: int = 50,
    now: Optional[datetime] = None,
) -> List[LeaderboardRow]:
    """
    Leaderboard rows for the viewer. Opted-out users never appear.

    `friends` is the viewer plus everyone they follow. With `30d`, only users
    active in the last 30 days are kept and their latest attempt counts as
    their activity time.
    """
    q = select(User).where(User.leaderboard_opt_out.is_(False), User.is_active.is_(True))
    if scope == "friends":
        following = select(Follow.following_id).where(Follow.follower_id == viewer_id)
        ids = set((await session.execute(following)).scalars().all())
        ids.add(viewer_id)
        q = q.where(User.id.in_(ids))
    q = q.order_by(User.elo.desc()).limit(CANDIDATE_POOL)
    users = (await session.execute(q)).scalars().all()

    rows = [
        LeaderboardRow(
            id=u.id,
            name=u.name,
            username=u.username,
            image=u.image,
            elo=u.elo,
            streak=u.streak,
            last_active=u.last_studied_at,
        )
        for u in users
    ]

    if timeframe == "30d" and rows:
        since = (now or datetime.now(timezone.utc)) - timedelta(days=30)
        attempts_q = (
            select(QuizAttempt.user_id, func.max(QuizAttempt.created_at))
            .where(QuizAttempt.user_id.in_([r.id for r in rows]), QuizAttempt.created_at >= since)
            .group_by(QuizAttempt.user_id)
        )
        latest = dict((await session.execute(attempts_q)).all())
        for r in rows:
            if r.id in latest:
                r.last_active = latest[r.id]
        rows = [r for r in rows if r.last_active is not None and _ts(r.last_active) >= since.timestamp()]

    return sort_leaderboard(rows)[:clamp_limit(limit)]
