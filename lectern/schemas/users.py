"""
Profile, social graph and leaderboard schemas.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel

from lectern.engines.progression.ranks import RankDef


class MeResponse(BaseModel):
    id: uuid.UUID
    email: str
    name: Optional[str] = None
    username: Optional[str] = None
    bio: Optional[str] = None
    image: Optional[str] = None
    elo: int
    streak: int
    last_studied_at: Optional[datetime] = None
    leaderboard_opt_out: bool = False
    mastered_count: int = 0
    quiz_accuracy: int = 0
    is_admin: bool = False
    rank: Optional[RankDef] = None


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    username: Optional[str] = None
    bio: Optional[str] = None
    image: Optional[str] = None
    leaderboard_opt_out: Optional[bool] = None


class PublicProfile(BaseModel):
    id: uuid.UUID
    name: Optional[str] = None
    username: Optional[str] = None
    bio: Optional[str] = None
    image: Optional[str] = None
    elo: int
    streak: int
    mastered_count: int = 0
    followers: int = 0
    following: int = 0
    is_following: bool = False
    rank: Optional[RankDef] = None


class FollowRequest(BaseModel):
    target_user_id: Optional[uuid.UUID] = None


class FollowResponse(BaseModel):
    ok: bool = True
    following: bool


class FollowingResponse(BaseModel):
    following: List[uuid.UUID]


class LeaderboardEntry(BaseModel):
    position: int
    id: uuid.UUID
    name: Optional[str] = None
    username: Optional[str] = None
    image: Optional[str] = None
    elo: int
    streak: int
    last_active: Optional[datetime] = None
    rank: Optional[RankDef] = None
    is_self: bool = False


class LeaderboardResponse(BaseModel):
    scope: Literal["global", "friends"]
    timeframe: Literal["all", "30d"]
    entries: List[LeaderboardEntry]
