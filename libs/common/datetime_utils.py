"""Datetime utilities.

Usage:
    from libs.common.datetime_utils import utc_now

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

Calendar questions (today's date, the current dues year) are answered in the
fund's local timezone, configured through ``TIMEZONE``.
"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from libs.common.config import get_settings


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime.

    Always use this for timestamps in the database.
    """
    return datetime.now(timezone.utc)


def local_now() -> datetime:
    """Current time in the configured local timezone."""
    return datetime.now(ZoneInfo(get_settings().TIMEZONE))


def local_today() -> date:
    return local_now().date()


def current_year() -> int:
    return local_now().year
