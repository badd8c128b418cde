"""Timestamp helpers shared by the quota ledger and the artifact cache.

All stored timestamps are naive local time in ISO-8601 form. Timezone-aware
values written by other tools are converted to local time on read.
"""

from datetime import datetime


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into naive local time.

    Raises:
        ValueError: If the value is not ISO-8601
    """
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def same_month(first: datetime, second: datetime) -> bool:
    return first.year == second.year and first.month == second.month
