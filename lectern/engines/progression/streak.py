"""
Daily study streak, counted in UTC calendar days.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Tuple


def _utc_date(value: datetime) -> date:
    # SQLite hands back naive datetimes; they are stored as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).date()


def next_streak(
    last_studied_at: Optional[datetime],
    current_streak: int,
    now: datetime,
) -> Tuple[int, bool]:
    """
    Compute the streak after studying at `now`.

    Returns:
        (streak, changed). When `changed` is False the stored streak and
        last_studied_at should be left alone.
    """
    today = _utc_date(now)
    if last_studied_at is not None:
        last_day = _utc_date(last_studied_at)
        if last_day == today:
            if current_streak < 1:
                return 1, True
            return current_streak, False
        if last_day == today - timedelta(days=1):
            return max(1, current_streak + 1), True
    return 1, True


def bump_daily_streak(user, now: Optional[datetime] = None) -> int:
    """Apply next_streak() to a user row in place and return the new streak."""
    now = now or datetime.now(timezone.utc)
    streak, changed = next_streak(user.last_studied_at, user.streak or 0, now)
    if changed:
        user.streak = streak
        user.last_studied_at = now
    return streak
