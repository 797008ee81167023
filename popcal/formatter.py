"""
Human-readable date ranges.

format_date_range() maps (start, end, all_day, recurring) to one display
string. The cases are checked in a fixed order and the first match wins:

 1) "Ongoing", no end                 -> "Ongoing"
 2) start, end "Ongoing"              -> "Starting Sun, May 11, ongoing"
 3) same day, both timed              -> "Sun, May 11, 10:00 AM – 5:00 PM"
 4) different days, both timed        -> "Sun, May 11, 10:00 AM - Tue, May 13, 5:00 PM"
 5) date only, no end                 -> "Sun, May 11"
 6) different dates, no times         -> "Sun, May 11 – Tue, May 13"
 7) all day, start = end or no end    -> "Sun, May 11 (all day)"
 8) all day, start != end             -> "Sun, May 11 - Tue, May 13 (all day)"
 9) recurring                         -> "Fri, May 16, 5:30 PM – 8:30 PM"
10) timed start, no end               -> "Sun, May 11, starting at 2:00 PM"
11) no start, end                     -> "Sun, May 11, ending at 5:00 PM"
12) nothing                           -> "Date and time to be announced"

Cases 3-6 apply only to items that are neither all-day nor recurring.
Unparseable values count as absent.
"""

from __future__ import annotations

from popcal.config import ONGOING, TBD_TEXT
from popcal.dates import (
    clean,
    format_short_date,
    format_time,
    has_time,
    is_ongoing,
    parse_datetime,
)
from popcal.model import TimeBoundedItem


def format_date_range(start: str, end: str, all_day: bool = False, recurring: bool = False) -> str:
    start_raw = clean(start)
    end_raw = clean(end)

    start_ongoing = is_ongoing(start_raw)
    end_ongoing = is_ongoing(end_raw)

    start_dt = parse_datetime(start_raw)
    end_dt = parse_datetime(end_raw)

    has_start = start_dt is not None
    has_end = end_dt is not None
    start_timed = has_start and has_time(start_raw)
    end_timed = has_end and has_time(end_raw)
    plain = not all_day and not recurring

    # 1) / 2) open-ended items
    if start_ongoing and not has_end and not end_ongoing:
        return ONGOING
    if has_start and end_ongoing:
        return f"Starting {format_short_date(start_dt)}, ongoing"

    start_date = format_short_date(start_dt) if has_start else ""
    end_date = format_short_date(end_dt) if has_end else ""
    same_day = has_start and has_end and start_dt.date() == end_dt.date()

    # 3) / 4) exact times
    if start_timed and end_timed and plain:
        if same_day:
            return f"{start_date}, {format_time(start_dt)} – {format_time(end_dt)}"
        return f"{start_date}, {format_time(start_dt)} - {end_date}, {format_time(end_dt)}"

    # 5) / 6) dates without times
    if has_start and not has_end and not start_timed and plain:
        return start_date
    if has_start and has_end and not start_timed and not end_timed and plain and start_dt != end_dt:
        return f"{start_date} – {end_date}"

    # 7) / 8) all day
    if all_day and not recurring and has_start:
        if not has_end or start_dt == end_dt:
            return f"{start_date} (all day)"
        return f"{start_date} - {end_date} (all day)"

    # 9) recurring, framed as the next occurrence
    if recurring and has_start:
        if not has_end:
            return f"{start_date}, {format_time(start_dt)}"
        return f"{start_date}, {format_time(start_dt)} – {format_time(end_dt)}"

    # 10) / 11) one side only
    if has_start and not has_end:
        if not start_timed:
            return start_date
        return f"{start_date}, starting at {format_time(start_dt)}"
    if not has_start and has_end:
        return f"{end_date}, ending at {format_time(end_dt)}"

    # 12)
    if not has_start and not has_end:
        return TBD_TEXT

    # Mixed date-only / timed values, or identical date-only values
    if same_day:
        return start_date
    return f"{start_date} – {end_date}"


def format_item_dates(item: TimeBoundedItem) -> str:
    return format_date_range(item.start, item.end, item.all_day, item.recurring)
