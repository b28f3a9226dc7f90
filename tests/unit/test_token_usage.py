"""Unit tests for the token usage ledger helpers."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from lectern.engines.usage import (
    CSV_HEADER,
    UserUsageRow,
    canonicalize_model_id,
    parse_range,
    report_to_csv,
)

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


class TestCanonicalizeModelId:
    """Tests for canonicalize_model_id."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("openai:gpt-4o-mini", "gpt-4o-mini"),
            ("OpenAI:gpt-5-mini", "gpt-5"),
            ("google:gemini-2.0-flash-lite", "gemini-2.0-flash"),
            ("  gemini:gemini-1.5-pro ", "gemini-1.5-pro"),
            (None, ""),
        ],
    )
    def test_canonical_names(self, raw, expected):
        assert canonicalize_model_id(raw) == expected


class TestParseRange:
    """Tests for parse_range."""

    def test_default_is_thirty_days_by_day(self):
        window = parse_range(now=NOW)
        assert window.start == NOW - timedelta(days=30)
        assert window.end == NOW
        assert window.bucket == "day"

    def test_24h_is_hourly(self):
        window = parse_range("24h", now=NOW)
        assert window.start == NOW - timedelta(hours=24)
        assert window.bucket == "hour"

    def test_unknown_key_means_thirty_days(self):
        assert parse_range("90d", now=NOW).start == NOW - timedelta(days=30)

    def test_all_is_unbounded(self):
        window = parse_range("all", now=NOW)
        assert window.start is None and window.end is None
        assert window.bucket == "day"

    def test_explicit_bounds_win(self):
        window = parse_range("7d", start="2026-10-01T00:00:00Z", end="2026-10-02T00:00:00", now=NOW)
        assert window.start == datetime(2026, 10, 1, tzinfo=timezone.utc)
        assert window.end == datetime(2026, 10, 2, tzinfo=timezone.utc)
        assert window.bucket == "hour"

    def test_unparseable_bounds_fall_back_to_key(self):
        window = parse_range("7d", start="yesterday", end="now", now=NOW)
        assert window.start == NOW - timedelta(days=7)


class TestReportCsv:
    """Tests for CSV export."""

    def test_header_and_rows(self):
        uid = uuid.uuid4()
        row = UserUsageRow(
            user_id=uid,
            name="Ada, L.",
            email="ada@example.com",
            requests=3,
            tokens_input=10,
            tokens_output=5,
            total_tokens=15,
            last_activity=NOW,
        )
        lines = report_to_csv([row]).splitlines()
        assert lines[0] == ",".join(CSV_HEADER)
        assert lines[1].startswith(f'{uid},"Ada, L.",,ada@example.com,3,10,5,15,')

    def test_empty_report_has_header_only(self):
        assert report_to_csv([]).splitlines() == [",".join(CSV_HEADER)]
