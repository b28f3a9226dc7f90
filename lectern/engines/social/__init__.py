"""
Social Engine - profiles, follow graph and leaderboard.
"""

from lectern.engines.social.social_service import (
    SocialService,
    ProfileConflictError,
    UserStats,
    clean_profile_update,
    quiz_accuracy,
)
from lectern.engines.social.leaderboard import (
    LeaderboardRow,
    clamp_limit,
    fetch_leaderboard,
    parse_scope,
    parse_timeframe,
    sort_leaderboard,
)

__all__ = [
    "SocialService",
    "ProfileConflictError",
    "UserStats",
    "clean_profile_update",
    "quiz_accuracy",
    "LeaderboardRow",
    "clamp_limit",
    "fetch_leaderboard",
    "parse_scope",
    "parse_timeframe",
    "sort_leaderboard",
]
