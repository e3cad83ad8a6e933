"""Datetime utilities for timezone-aware UTC timestamps.

Usage:
    from libs.common.datetime_utils import utc_now

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
"""

from datetime import date, datetime, time, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime.

    Always use this for timestamps in the database instead of the naive
    datetime.utcnow().
    """
    return datetime.now(timezone.utc)


def date_range_bounds(
    from_date: Optional[date], to_date: Optional[date]
) -> tuple[Optional[datetime], Optional[datetime]]:
    """Turn an inclusive calendar date range into datetime bounds.

    The upper bound covers the whole of ``to_date`` (up to 23:59:59).
    """
    start = (
        datetime.combine(from_date, time.min, tzinfo=timezone.utc)
        if from_date
        else None
    )
    end = (
        datetime.combine(to_date, time(23, 59, 59), tzinfo=timezone.utc)
        if to_date
        else None
    )
    return start, end
