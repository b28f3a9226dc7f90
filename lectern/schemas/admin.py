"""
Admin panel schemas.
"""

import uuid
from typing import List, Optional

from pydantic import BaseModel, Field

from lectern.engines.progression.ranks import RankDef


class AdminMeResponse(BaseModel):
    email: str
    is_admin: bool


class SetEloRequest(BaseModel):
    elo: float


class SetEloResponse(BaseModel):
    ok: bool = True
    id: uuid.UUID
    elo: int


class RankUpdate(BaseModel):
    slug: str
    name: Optional[str] = None
    min_elo: Optional[int] = None
    icon_url: Optional[str] = None


class RanksPatchRequest(BaseModel):
    ranks: List[RankUpdate] = Field(default_factory=list)


class RanksResponse(BaseModel):
    ok: bool = True
    ranks: List[RankDef]
