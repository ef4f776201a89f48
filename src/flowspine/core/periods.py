"""Cache period arithmetic.

Every cache write issued during one request expires at the same instant:
the end of the cache period the request started in.  Periods are fixed
windows aligned to the Unix epoch, so with the default one-hour period all
entries written between 10:00:00 and 10:59:59 UTC expire at 11:00:00.

Tags:
    cache, expiry, periods, flow-spine
"""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def current_period_end(period_seconds: int, now: datetime | None = None) -> int:
    """Return the end of the current cache period as Unix epoch seconds.

    Args:
        period_seconds: Length of one period (must be positive).
        now: Reference time (defaults to :func:`utc_now`).

    Example:
        >>> from datetime import UTC, datetime
        >>> current_period_end(3600, datetime(2024, 1, 1, 10, 15, tzinfo=UTC))
        1704106800
    """
    if period_seconds <= 0:
        raise ValueError(f"period_seconds must be positive, got {period_seconds}")

    ts = int((now or utc_now()).timestamp())
    return (ts // period_seconds + 1) * period_seconds
