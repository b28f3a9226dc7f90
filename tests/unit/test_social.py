"""Unit tests for profile cleaning, accuracy and leaderboard ordering."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from lectern.engines.social import (
    LeaderboardRow,
    clamp_limit,
    clean_profile_update,
    parse_scope,
    parse_timeframe,
    quiz_accuracy,
    sort_leaderboard,
)


class TestQuizAccuracy:
    """Tests for quiz_accuracy rounding."""

    def test_no_attempts(self):
        assert quiz_accuracy(0, 0) == 0

    def test_rounds_half_up(self):
        assert quiz_accuracy(1, 8) == 13  # 12.5
        assert quiz_accuracy(2, 3) == 67
        assert quiz_accuracy(1, 3) == 33

    def test_perfect(self):
        assert quiz_accuracy(7, 7) == 100


class TestCleanProfileUpdate:
    """Tests for clean_profile_update."""

    def test_trims_and_truncates(self):
        data = clean_profile_update({"name": "  Ada  ", "bio": "b" * 400})
        assert data["name"] == "Ada"
        assert len(data["bio"]) == 280

    def test_username_is_normalized(self):
        assert clean_profile_update({"username": "  AdaL  "})["username"] == "adal"

    def test_empty_username_clears(self):
        assert clean_profile_update({"username": "   "}) == {"username": None}

    def test_wrong_types_dropped(self):
        data = clean_profile_update({"name": 5, "leaderboard_opt_out": "yes", "role": "admin"})
        assert data == {}

    def test_opt_out_flag(self):
        assert clean_profile_update({"leaderboard_opt_out": True}) == {"leaderboard_opt_out": True}


class TestLeaderboardHelpers:
    """Tests for leaderboard parsing and ordering."""

    @pytest.mark.parametrize("value,expected", [("friends", "friends"), ("FRIENDS", "friends"), ("x", "global"), (None, "global")])
    def test_parse_scope(self, value, expected):
        assert parse_scope(value) == expected

    @pytest.mark.parametrize("value,expected", [("30d", "30d"), ("30", "30d"), ("all", "all"), (None, "all")])
    def test_parse_timeframe(self, value, expected):
        assert parse_timeframe(value) == expected

    @pytest.mark.parametrize("value,expected", [(None, 50), ("abc", 50), ("0", 1), ("-4", 1), ("500", 100), ("25", 25)])
    def test_clamp_limit(self, value, expected):
        assert clamp_limit(value) == expected

    def test_sort_order(self):
        now = datetime(2026, 10, 17, tzinfo=timezone.utc)
        a = LeaderboardRow(id=uuid.UUID(int=2), elo=1200, last_active=now - timedelta(days=1))
        b = LeaderboardRow(id=uuid.UUID(int=3), elo=1200, last_active=now)
        c = LeaderboardRow(id=uuid.UUID(int=1), elo=1500)
        d = LeaderboardRow(id=uuid.UUID(int=4), elo=1000)
        e = LeaderboardRow(id=uuid.UUID(int=5), elo=1000)
        assert [r.id.int for r in sort_leaderboard([e, a, d, b, c])] == [1, 3, 2, 4, 5]
