from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta
from typing import Optional

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD")


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into naive local time.

    A trailing 'Z' or a UTC offset is converted to the server's local clock,
    since every stored timestamp and day boundary is naive local time.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(f"Invalid timestamp {value!r}")
    return to_local_naive(parsed)


def to_local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def optional_datetime(value) -> Optional[datetime]:
    if value in (None, ""):
        return None
    return parse_iso_datetime(value)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Half-open [start, end) range covering one local calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def at_hour(day: date, hour: int) -> datetime:
    return datetime.combine(day, time(hour=hour))


def hours_between(start: datetime, end: datetime) -> float:
    """Elapsed hours rounded to 2 decimals."""
    return round((end - start).total_seconds() / 3600, 2)


def minutes_between(start: datetime, end: datetime) -> int:
    """Elapsed minutes rounded half-up to a whole minute."""
    return int(math.floor((end - start).total_seconds() / 60 + 0.5))


def period_start(period: str, now: datetime) -> datetime:
    """Start of a trailing reporting window ('week', 'month' or 'year')."""
    if period == "week":
        return now - timedelta(days=7)
    if period == "month":
        month = now.month - 1 or 12
        year = now.year - 1 if now.month == 1 else now.year
        return now.replace(year=year, month=month, day=min(now.day, _days_in_month(year, month)))
    if period == "year":
        day = now.day
        if now.month == 2 and day == 29:
            day = 28
        return now.replace(year=now.year - 1, day=day)
    raise ValidationError(f"Unknown period {period!r}")


def _days_in_month(year: int, month: int) -> int:
    if month == 12:
        return 31
    return (date(year, month + 1, 1) - timedelta(days=1)).day


def end_of_day(day: date) -> datetime:
    """Last representable instant of a day, for inclusive upper bounds."""
    return datetime.combine(day, time.max)
