"""
Date parsing and rendering in the fixed display timezone.

The data sources deliver dates as loosely formatted strings:
- "2025-05-11 10:00:00", "2025-05-11", "2025-5-1 9:30"
- "5/11/2025 10:00", "5/11/25"
- "2025-05-11T14:00:00Z" (document store, UTC)
- "Ongoing" or "" (no concrete date)

Every parsed value is returned as a naive datetime holding the civil time of
DISPLAY_TZ. Naive inputs are taken literally, aware inputs are converted.
Nothing in here raises for malformed input: unparseable strings give None.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo

from dateutil import parser as dateutil_parser

from popcal.config import DISPLAY_TZ, ONGOING

logger = logging.getLogger(__name__)

_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_WEEKDAYS_LONG = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_MONTHS_LONG = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

_TIME = r"(?:\s+(\d{1,2}):(\d{2})(?::(\d{2}))?)?"
_MDY_RE = re.compile(r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{2,4})" + _TIME + r"$")
_YMD_RE = re.compile(r"^(\d{4})[/\-](\d{1,2})[/\-](\d{1,2})" + _TIME + r"$")


@lru_cache(maxsize=None)
def display_zone(name: str = DISPLAY_TZ) -> ZoneInfo:
    return ZoneInfo(name)


def clean(value: Optional[str]) -> str:
    return "" if value is None else str(value).strip()


def is_ongoing(value: Optional[str]) -> bool:
    return clean(value).lower() == ONGOING.lower()


def has_time(value: Optional[str]) -> bool:
    """
    A raw value carries a time of day if it contains a colon.
    """
    return ":" in clean(value)


def _to_display_zone(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(display_zone()).replace(tzinfo=None)


def _from_match(year: str, month: str, day: str, hour, minute, second) -> Optional[datetime]:
    if len(year) == 2:
        year = "20" + year
    try:
        return datetime(
            int(year),
            int(month),
            int(day),
            int(hour or 0),
            int(minute or 0),
            int(second or 0),
        )
    except ValueError:
        return None


# dateutil fills missing fields from `default`; parsing against two
# different defaults exposes any year, month or day the text did not give.
_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def _parse_native(text: str) -> Optional[datetime]:
    try:
        first, second = (dateutil_parser.parse(text, default=d) for d in _DEFAULTS)
    except (ValueError, OverflowError):
        return None
    if first.date() != second.date():
        return None
    return first


def _parse_mdy(text: str) -> Optional[datetime]:
    m = _MDY_RE.match(text)
    if not m:
        return None
    month, day, year, hour, minute, second = m.groups()
    return _from_match(year, month, day, hour, minute, second)


def _parse_ymd(text: str) -> Optional[datetime]:
    m = _YMD_RE.match(text)
    if not m:
        return None
    year, month, day, hour, minute, second = m.groups()
    return _from_match(year, month, day, hour, minute, second)


_STRATEGIES = (_parse_native, _parse_mdy, _parse_ymd)


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a raw date string into a naive datetime in the display zone.

    Returns None for "", "Ongoing" and anything no strategy understands.
    """
    text = clean(value)
    if not text or is_ongoing(text):
        return None

    for strategy in _STRATEGIES:
        dt = strategy(text)
        if dt is not None:
            return _to_display_zone(dt)

    logger.debug("Unparseable date value: %r", text)
    return None


def parse_date(value: Optional[str]) -> Optional[date]:
    dt = parse_datetime(value)
    return dt.date() if dt is not None else None


def now_in_display_zone() -> datetime:
    return datetime.now(display_zone()).replace(tzinfo=None)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def format_short_date(d: date) -> str:
    """
    e.g. "Sun, May 11"
    """
    return f"{_WEEKDAYS[d.weekday()]}, {_MONTHS[d.month - 1]} {d.day}"


def format_long_date(d: date) -> str:
    """
    e.g. "Sunday, May 11, 2025"
    """
    return f"{_WEEKDAYS_LONG[d.weekday()]}, {_MONTHS_LONG[d.month - 1]} {d.day}, {d.year}"


def format_month_year(month: int, year: int) -> str:
    """
    Header text for a 0-based month, e.g. "May 2025".
    """
    return f"{_MONTHS_LONG[month]} {year}"


def format_time(dt: datetime) -> str:
    """
    12-hour clock, e.g. "10:00 AM", "5:30 PM".
    """
    hour = dt.hour % 12 or 12
    suffix = "AM" if dt.hour < 12 else "PM"
    return f"{hour}:{dt.minute:02d} {suffix}"


# ---------------------------------------------------------------------------
# Expiry
# ---------------------------------------------------------------------------


def is_expired(end: Optional[str], now: Optional[datetime] = None) -> bool:
    """
    Whether an item whose end value is `end` lies entirely in the past.

    - empty, "Ongoing" or unparseable end -> never expired
    - date-only end -> expired once that whole day has passed
    - end with a time -> expired once that moment has passed

    `now` is a naive datetime in the display zone (defaults to the current time).
    """
    end_dt = parse_datetime(end)
    if end_dt is None:
        return False

    current = now if now is not None else now_in_display_zone()
    if has_time(end):
        return end_dt < current
    return end_dt.date() < current.date()
