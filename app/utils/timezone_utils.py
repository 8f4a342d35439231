from __future__ import annotations

from datetime import datetime, timezone as dt_timezone

import pytz

DEFAULT_TIMEZONE = "UTC"
DISPLAY_TIMEZONE = "Asia/Kolkata"


class TimezoneUtils:
    """Timezone helpers; storage and comparisons are always UTC."""

    @staticmethod
    def utc_now() -> datetime:
        """Return the current UTC timestamp (timezone aware)."""
        return datetime.now(dt_timezone.utc)

    @staticmethod
    def ensure_timezone_aware(
        dt: datetime | None, assume_utc: bool = True
    ) -> datetime | None:
        """Guarantee that a datetime carries timezone information."""
        if dt is None:
            return None
        if dt.tzinfo is None:
            if not assume_utc:
                raise ValueError("Naive datetime provided without explicit timezone handling.")
            return dt.replace(tzinfo=dt_timezone.utc)
        return dt

    @staticmethod
    def to_timezone(dt: datetime | None, tz_name: str = DISPLAY_TIMEZONE) -> datetime | None:
        """Convert a datetime to the named timezone, falling back to UTC for unknown names."""
        dt = TimezoneUtils.ensure_timezone_aware(dt)
        if dt is None:
            return None
        try:
            target = pytz.timezone(tz_name)
        except pytz.UnknownTimeZoneError:
            target = pytz.timezone(DEFAULT_TIMEZONE)
        return dt.astimezone(target)

    @staticmethod
    def format_for_display(
        dt: datetime | None, tz_name: str = DISPLAY_TIMEZONE, fmt: str = "%d %b %Y, %I:%M %p %Z"
    ) -> str:
        localized = TimezoneUtils.to_timezone(dt, tz_name)
        if localized is None:
            return ""
        return localized.strftime(fmt)
