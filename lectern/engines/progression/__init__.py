"""
Progression Engine - subtopic unlocking, navigation cursor, streaks and ranks.

The unlocked subtopic is derived, never stored:
    unlocked = min(last_mastered + 1, max(0, len(subtopics) - 1))
"""

from lectern.engines.progression.unlock import derive_unlocked_index, last_mastered_index
from lectern.engines.progression.cursor import LectureCursor
from lectern.engines.progression.streak import next_streak, bump_daily_streak
from lectern.engines.progression.ranks import (
    FALLBACK_RANKS,
    RankDef,
    pick_rank_for_elo,
    get_ranks_safe,
    seed_default_ranks,
    update_ranks,
)
from lectern.engines.progression.progress_service import (
    ProgressService,
    SubtopicState,
    CompletionResult,
)

__all__ = [
    "derive_unlocked_index",
    "last_mastered_index",
    "LectureCursor",
    "next_streak",
    "bump_daily_streak",
    "FALLBACK_RANKS",
    "RankDef",
    "pick_rank_for_elo",
    "get_ranks_safe",
    "seed_default_ranks",
    "update_ranks",
    "ProgressService",
    "SubtopicState",
    "CompletionResult",
]
