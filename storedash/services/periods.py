"""Calendar windows for reports, in the store's local time."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from storedash.config import settings
from storedash.services.aggregation import ReportError


def store_zone(name: str | None = None) -> ZoneInfo:
    return ZoneInfo(name or settings.store_timezone)


def local_today(tz: ZoneInfo | None = None, now: datetime | None = None) -> date:
    zone = tz or store_zone()
    current = now or datetime.now(zone)
    return current.astimezone(zone).date()


def start_of_day(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def end_of_day(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.max, tzinfo=tz)


def local_day(value: datetime, tz: ZoneInfo) -> date:
    """Calendar day of a timestamp as seen from the store. Naive values are UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=ZoneInfo("UTC"))
    return value.astimezone(tz).date()


def days_between(start: date, end: date) -> int:
    return (end - start).days


@dataclass(frozen=True)
class ReportWindow:
    """Inclusive calendar-day range ``[start_day, end_day]``."""

    start_day: date
    end_day: date
    tz: ZoneInfo

    @property
    def start(self) -> datetime:
        return start_of_day(self.start_day, self.tz)

    @property
    def end(self) -> datetime:
        return end_of_day(self.end_day, self.tz)

    @property
    def day_count(self) -> int:
        return days_between(self.start_day, self.end_day) + 1

    def previous(self) -> ReportWindow:
        """The immediately preceding window of the same length."""
        prev_end = self.start_day - timedelta(days=1)
        prev_start = prev_end - timedelta(days=days_between(self.start_day, self.end_day))
        return ReportWindow(prev_start, prev_end, self.tz)

    def iter_days(self) -> list[date]:
        return [self.start_day + timedelta(days=offset) for offset in range(self.day_count)]


def today_window(tz: ZoneInfo | None = None, now: datetime | None = None) -> ReportWindow:
    zone = tz or store_zone()
    today = local_today(zone, now)
    return ReportWindow(today, today, zone)


def default_window(tz: ZoneInfo | None = None, now: datetime | None = None) -> ReportWindow:
    """Start of the current month through today."""
    zone = tz or store_zone()
    today = local_today(zone, now)
    return ReportWindow(today.replace(day=1), today, zone)


def is_default_window(window: ReportWindow, now: datetime | None = None) -> bool:
    default = default_window(window.tz, now)
    return window.start_day == default.start_day and window.end_day == default.end_day


def resolve_window(
    start_day: date | None,
    end_day: date | None,
    tz: ZoneInfo | None = None,
    now: datetime | None = None,
) -> ReportWindow:
    """Fill missing bounds from the default window.

    Raises:
        ReportError: If the resolved start falls after the resolved end.
    """
    default = default_window(tz, now)
    window = ReportWindow(start_day or default.start_day, end_day or default.end_day, default.tz)
    if window.start_day > window.end_day:
        raise ReportError(
            f"startDate {window.start_day.isoformat()} is after endDate {window.end_day.isoformat()}"
        )
    return window
