"""
Leaderboard endpoint.
"""

from typing import Optional

from fastapi import APIRouter

from lectern.api.deps import CurrentUser, DbSession
from lectern.engines.progression.ranks import get_ranks_safe, pick_rank_for_elo
from lectern.engines.social.leaderboard import clamp_limit, fetch_leaderboard, parse_scope, parse_timeframe
from lectern.schemas.users import LeaderboardEntry, LeaderboardResponse

router = APIRouter()


@router.get("", response_model=LeaderboardResponse)
async def get_leaderboard(
    user: CurrentUser,
    db: DbSession,
    scope: Optional[str] = "global",
    timeframe: Optional[str] = "all",
    limit: Optional[str] = "50",
):
    """
    Ranked learners.

    scope: global | friends (you plus the people you follow)
    timeframe: all | 30d
    limit: clamped to 1..100
    """
    scope_v = parse_scope(scope)
    timeframe_v = parse_timeframe(timeframe)
    rows = await fetch_leaderboard(db, user.id, scope_v, timeframe_v, clamp_limit(limit))
    ranks = await get_ranks_safe(db)
    entries = [
        LeaderboardEntry(
            position=i + 1,
            id=r.id,
            name=r.name,
            username=r.username,
            image=r.image,
            elo=r.elo,
            streak=r.streak,
            last_active=r.last_active,
            rank=pick_rank_for_elo(ranks, r.elo),
            is_self=r.id == user.id,
        )
        for i, r in enumerate(rows)
    ]
    return LeaderboardResponse(scope=scope_v, timeframe=timeframe_v, entries=entries)
