"""Unit tests for the ELO rank ladder."""

import pytest

from lectern.engines.progression import (
    FALLBACK_RANKS,
    RankDef,
    get_ranks_safe,
    pick_rank_for_elo,
    seed_default_ranks,
    update_ranks,
)


class TestPickRankForElo:
    """Tests for pick_rank_for_elo."""

    def test_below_lowest_threshold_has_no_rank(self):
        assert pick_rank_for_elo(FALLBACK_RANKS, 999) is None

    @pytest.mark.parametrize(
        "elo,slug",
        [(1000, "bronze"), (1199, "bronze"), (1200, "silver"), (1650, "diamond"), (5000, "master")],
    )
    def test_thresholds(self, elo, slug):
        assert pick_rank_for_elo(FALLBACK_RANKS, elo).slug == slug

    def test_empty_ladder(self):
        assert pick_rank_for_elo([], 1500) is None

    def test_custom_ladder(self):
        ladder = [RankDef(slug="novice", name="Novice", min_elo=0), RankDef(slug="pro", name="Pro", min_elo=50)]
        assert pick_rank_for_elo(ladder, 10).slug == "novice"


class TestStoredRanks:
    """Tests for the DB-backed ladder."""

    @pytest.mark.asyncio
    async def test_empty_table_uses_fallback(self, db_session):
        ranks = await get_ranks_safe(db_session)
        assert [r.slug for r in ranks] == [r.slug for r in FALLBACK_RANKS]

    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, db_session):
        await seed_default_ranks(db_session)
        await seed_default_ranks(db_session)
        ranks = await get_ranks_safe(db_session)
        assert len(ranks) == len(FALLBACK_RANKS)
        assert [r.min_elo for r in ranks] == sorted(r.min_elo for r in ranks)

    @pytest.mark.asyncio
    async def test_update_ranks_partial_edits(self, db_session):
        await seed_default_ranks(db_session)
        ranks = await update_ranks(
            db_session,
            [
                {"slug": "gold", "name": "  Shiny Gold " + "x" * 60, "icon_url": "https://cdn.example.com/gold.png"},
                {"slug": "bronze", "min_elo": -20},
                {"slug": "silver", "min_elo": "1300"},
                {"slug": "nonexistent", "name": "Ghost"},
                {"name": "No slug"},
            ],
        )
        by_slug = {r.slug: r for r in ranks}
        assert by_slug["gold"].name.startswith("Shiny Gold")
        assert len(by_slug["gold"].name) == 40
        assert by_slug["gold"].icon_url == "https://cdn.example.com/gold.png"
        assert by_slug["bronze"].min_elo == 0
        # non-int min_elo is ignored
        assert by_slug["silver"].min_elo == 1200
        assert "nonexistent" not in by_slug
        assert ranks[0].slug == "bronze"

    @pytest.mark.asyncio
    async def test_update_ranks_can_clear_icon(self, db_session):
        await seed_default_ranks(db_session)
        await update_ranks(db_session, [{"slug": "master", "icon_url": "https://cdn.example.com/m.png"}])
        ranks = await update_ranks(db_session, [{"slug": "master", "icon_url": None}])
        assert {r.slug: r for r in ranks}["master"].icon_url is None
