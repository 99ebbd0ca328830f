"""Shared time helpers.

All timestamps are stored in UTC. Calendar days (report ranges, bill days)
are interpreted in the single business timezone from settings.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from app.shared.exceptions import ValidationException


def utc_now() -> datetime:
    """Return aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Normalize datetime to UTC timezone."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def day_start(day: date, tz: ZoneInfo) -> datetime:
    """Return UTC instant of local midnight opening ``day``."""
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)


def day_bounds(day: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """Return ``[start, end)`` UTC bounds covering the whole local ``day``."""
    return day_start(day, tz), day_start(day + timedelta(days=1), tz)


def local_day(moment: datetime, tz: ZoneInfo) -> date:
    return ensure_utc(moment).astimezone(tz).date()


@dataclass(frozen=True, slots=True)
class DateRange:
    """Optional inclusive calendar-day range.

    ``end`` covers the entire final day: anything before the next local
    midnight is inside the range.
    """

    start: date | None = None
    end: date | None = None

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValidationException("Range start must not be after range end")

    def to_utc_bounds(self, tz: ZoneInfo) -> tuple[datetime | None, datetime | None]:
        lower = day_start(self.start, tz) if self.start is not None else None
        upper = day_start(self.end + timedelta(days=1), tz) if self.end is not None else None
        return lower, upper

    @property
    def label(self) -> str:
        if self.start and self.end and self.start == self.end:
            return self.start.isoformat()
        if self.start and self.end:
            return f"{self.start.isoformat()} to {self.end.isoformat()}"
        if self.start:
            return f"From {self.start.isoformat()}"
        if self.end:
            return f"Up to {self.end.isoformat()}"
        return "All dates"
