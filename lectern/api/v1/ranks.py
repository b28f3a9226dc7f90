"""
Rank ladder endpoints.
"""

from fastapi import APIRouter

from lectern.api.deps import AdminUser, DbSession
from lectern.engines.progression.ranks import get_ranks_safe, update_ranks
from lectern.schemas.admin import RanksPatchRequest, RanksResponse

router = APIRouter()


@router.get("", response_model=RanksResponse)
async def list_ranks(db: DbSession):
    """Stored ranks, or the default ladder when none are stored."""
    return RanksResponse(ranks=await get_ranks_safe(db))


@router.patch("", response_model=RanksResponse)
async def patch_ranks(data: RanksPatchRequest, admin: AdminUser, db: DbSession):
    ranks = await update_ranks(db, [r.model_dump(exclude_unset=True) for r in data.ranks])
    return RanksResponse(ranks=ranks)
