"""
ELO rank ladder.
"""

from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lectern.kernel.models.rank import Rank
from lectern.logging_config import get_logger

logger = get_logger(__name__)


class RankDef(BaseModel):
    slug: str
    name: str
    min_elo: int
    icon_url: Optional[str] = None

    class Config:
        from_attributes = True


FALLBACK_RANKS: List[RankDef] = [
    RankDef(slug="bronze", name="Bronze", min_elo=1000),
    RankDef(slug="silver", name="Silver", min_elo=1200),
    RankDef(slug="gold", name="Gold", min_elo=1400),
    RankDef(slug="diamond", name="Diamond", min_elo=1600),
    RankDef(slug="master", name="Master", min_elo=1800),
]


def pick_rank_for_elo(ranks: List[RankDef], elo: int) -> Optional[RankDef]:
    """Highest rank whose threshold `elo` reaches. `ranks` must be sorted ascending."""
    match = None
    for rank in ranks:
        if elo >= rank.min_elo:
            match = rank
        else:
            break
    return match


async def get_ranks_safe(session: AsyncSession) -> List[RankDef]:
    """Stored ranks ascending by min_elo, or the fallback ladder if none/unreadable."""
    try:
        result = await session.execute(select(Rank).order_by(Rank.min_elo))
        rows = result.scalars().all()
    except SQLAlchemyError:
        logger.warning("Rank table unavailable; using fallback ladder", exc_info=True)
        return list(FALLBACK_RANKS)
    if not rows:
        return list(FALLBACK_RANKS)
    return [RankDef.model_validate(r) for r in rows]


async def seed_default_ranks(session: AsyncSession) -> None:
    """Upsert the default ladder."""
    for default in FALLBACK_RANKS:
        row = await session.get(Rank, default.slug)
        if row is None:
            session.add(Rank(slug=default.slug, name=default.name, min_elo=default.min_elo))
        else:
            row.name = default.name
            row.min_elo = default.min_elo
    await session.flush()


async def update_ranks(session: AsyncSession, items: List[dict]) -> List[RankDef]:
    """
    Apply partial rank edits keyed by slug.

    `name` is trimmed to 40 chars, `min_elo` floored at 0 and `icon_url` may be
    set to None. Unknown slugs and items without a slug are skipped.
    """
    for item in items:
        slug = item.get("slug") if isinstance(item, dict) else None
        if not isinstance(slug, str):
            continue
        row = await session.get(Rank, slug)
        if row is None:
            continue
        if isinstance(item.get("name"), str):
            row.name = item["name"].strip()[:40]
        min_elo = item.get("min_elo")
        if isinstance(min_elo, int) and not isinstance(min_elo, bool):
            row.min_elo = max(0, min_elo)
        if "icon_url" in item and (item["icon_url"] is None or isinstance(item["icon_url"], str)):
            row.icon_url = item["icon_url"]
    await session.flush()
    result = await session.execute(select(Rank).order_by(Rank.min_elo))
    return [RankDef.model_validate(r) for r in result.scalars().all()]
