"""Source record models."""

from .source_rows import AdMetricRow, AttributionRow, SmsMetricRow, SourceRow, TransactionRow

__all__ = [
    "AdMetricRow",
    "AttributionRow",
    "SmsMetricRow",
    "SourceRow",
    "TransactionRow",
]
