"""
Usage Engine - AI token accounting.
"""

from lectern.engines.usage.token_usage import (
    CSV_HEADER,
    canonicalize_model_id,
    record_token_usage,
    parse_range,
    UsageRange,
    UsageReport,
    UserUsageRow,
    UserUsageDetail,
    TokenUsageReporter,
    report_to_csv,
)

__all__ = [
    "CSV_HEADER",
    "canonicalize_model_id",
    "record_token_usage",
    "parse_range",
    "UsageRange",
    "UsageReport",
    "UserUsageRow",
    "UserUsageDetail",
    "TokenUsageReporter",
    "report_to_csv",
]
