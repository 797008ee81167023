"""
iCalendar (.ics) export.

One item becomes one calendar file that can be imported into:
- Google Calendar
- Outlook
- Apple Calendar

Timed items are written in the display timezone (TZID), all-day items as
plain dates. A single day of a multi-day item can be exported on its own.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import List, Optional

from popcal.config import DISPLAY_TZ, ICS_PRODID, ICS_UID_DOMAIN
from popcal.dates import has_time, parse_datetime
from popcal.model import TimeBoundedItem

_MAX_LINE_OCTETS = 75


def _ics_escape(text: str) -> str:
    """
    Escape text for ICS fields (RFC 5545 TEXT).
    """
    return (
        text.replace("\\", "\\\\")
        .replace("\r\n", "\\n")
        .replace("\r", "\\n")
        .replace("\n", "\\n")
        .replace(";", "\\;")
        .replace(",", "\\,")
    )


def _fold(line: str) -> str:
    """
    Fold a content line so no physical line exceeds 75 octets.
    """
    if len(line.encode("utf-8")) <= _MAX_LINE_OCTETS:
        return line

    parts: List[str] = []
    current = ""
    limit = _MAX_LINE_OCTETS
    for ch in line:
        if len((current + ch).encode("utf-8")) > limit:
            parts.append(current)
            current = ""
            # continuation lines start with a space, which counts
            limit = _MAX_LINE_OCTETS - 1
        current += ch
    parts.append(current)
    return "\r\n ".join(parts)


def _dt_local(dt: datetime) -> str:
    return dt.strftime("%Y%m%dT%H%M%S")


def _d_value(d: date) -> str:
    return d.strftime("%Y%m%d")


def _uid(item: TimeBoundedItem, dtstart: str) -> str:
    return f"{item.name.replace(' ', '_')}_{dtstart}@{ICS_UID_DOMAIN}"


def is_multi_day(item: TimeBoundedItem) -> bool:
    """
    Timed, non-recurring, non-all-day item whose start and end fall on different days.
    """
    start = parse_datetime(item.start)
    end = parse_datetime(item.end)
    if start is None or end is None:
        return False
    return (
        start.date() != end.date()
        and has_time(item.start)
        and has_time(item.end)
        and not item.all_day
        and not item.recurring
    )


def _calendar(event_lines: List[str], now: Optional[datetime]) -> str:
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%dT%H%M%SZ")

    lines: List[str] = []
    lines.append("BEGIN:VCALENDAR")
    lines.append("VERSION:2.0")
    lines.append(f"PRODID:{ICS_PRODID}")
    lines.append("CALSCALE:GREGORIAN")
    lines.append(f"X-WR-TIMEZONE:{DISPLAY_TZ}")
    lines.append("BEGIN:VEVENT")
    lines.extend(event_lines)
    lines.append(f"DTSTAMP:{stamp}")
    lines.append("END:VEVENT")
    lines.append("END:VCALENDAR")

    # ICS standard uses CRLF
    return "\r\n".join(_fold(line) for line in lines) + "\r\n"


def _details(item: TimeBoundedItem) -> List[str]:
    lines = [f"SUMMARY:{_ics_escape(item.name)}"]
    if item.location:
        lines.append(f"LOCATION:{_ics_escape(item.location)}")
    description = item.long_description or item.short_description
    if description:
        lines.append(f"DESCRIPTION:{_ics_escape(description)}")
    if item.external_link:
        lines.append(f"URL:{item.external_link}")
    return lines


def build_ics(item: TimeBoundedItem, now: Optional[datetime] = None) -> str:
    """
    Calendar text for the whole item.

    Raises ValueError if the item has no usable start date.
    """
    start = parse_datetime(item.start)
    if start is None:
        raise ValueError(f"{item.id}: no start date to export")
    end = parse_datetime(item.end)
    if end is not None and end < start:
        end = start

    if item.all_day:
        last_day = (end or start).date()
        dtstart = _d_value(start.date())
        # DTEND of an all-day event is the day after the last day
        lines = [
            f"UID:{_uid(item, dtstart)}",
            f"DTSTART;VALUE=DATE:{dtstart}",
            f"DTEND;VALUE=DATE:{_d_value(last_day + timedelta(days=1))}",
        ]
    else:
        dtstart = _dt_local(start)
        lines = [
            f"UID:{_uid(item, dtstart)}",
            f"DTSTART;TZID={DISPLAY_TZ}:{dtstart}",
        ]
        if end is not None:
            lines.append(f"DTEND;TZID={DISPLAY_TZ}:{_dt_local(end)}")

    return _calendar(lines + _details(item), now)


def _parse_clock(value: str) -> time:
    parts = [int(p) for p in value.strip().split(":")]
    while len(parts) < 3:
        parts.append(0)
    return time(parts[0], parts[1], parts[2])


def build_single_day_ics(
    item: TimeBoundedItem,
    day: date,
    start_time: str,
    end_time: str,
    now: Optional[datetime] = None,
) -> str:
    """
    Calendar text for one day of a multi-day item, e.g. a pop-up open
    10:00-17:00 every day of a week.
    """
    dtstart = _dt_local(datetime.combine(day, _parse_clock(start_time)))
    dtend = _dt_local(datetime.combine(day, _parse_clock(end_time)))
    lines = [
        f"UID:{_uid(item, dtstart)}",
        f"DTSTART;TZID={DISPLAY_TZ}:{dtstart}",
        f"DTEND;TZID={DISPLAY_TZ}:{dtend}",
    ]
    return _calendar(lines + _details(item), now)


def ics_filename(item: TimeBoundedItem, day: Optional[date] = None) -> str:
    base = item.name.replace(" ", "_") or item.id
    if day is not None:
        return f"{base}_{day.isoformat()}.ics"
    return f"{base}.ics"


def export_item_to_ics(
    item: TimeBoundedItem,
    out_path: str | Path,
    day: Optional[date] = None,
    now: Optional[datetime] = None,
) -> Path:
    """
    Write the item (or, for a multi-day item, one `day` of it) to an .ics file.

    The single-day variant uses the item's own start and end times of day.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    if day is not None and is_multi_day(item):
        start = parse_datetime(item.start)
        end = parse_datetime(item.end)
        text = build_single_day_ics(
            item,
            day,
            start.strftime("%H:%M:%S"),
            end.strftime("%H:%M:%S"),
            now=now,
        )
    else:
        text = build_ics(item, now=now)

    # newline="" keeps the CRLF line endings as written
    with out.open("w", encoding="utf-8", newline="") as fh:
        fh.write(text)
    return out
