"""
Week-local bar placement.

For one week row of the month grid:

1. resolve every item to a (start, end) date span, clamped to the month
2. keep the items whose span touches the week and clip them to its 7 columns
3. order them: multi-day first, then by first cell
4. first-fit slot assignment: each item takes the lowest slot row that is
   free in every column it covers (occupancy is a slot x column table that
   only lives for this week)
5. an item is drawn only if it is among the first `visible_cap` items
   assigned to every one of its columns; otherwise it is hidden for the
   whole week but still counts toward each of its days

Bars that find no free row below MAX_SLOTS get slot_index None and stay hidden.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from popcal.config import DAYS_PER_WEEK, MAX_SLOTS, WEEKS_PER_GRID
from popcal.dates import parse_datetime
from popcal.grid import first_weekday, month_bounds
from popcal.model import CornerStyle, PlacedBar, TimeBoundedItem, WeekPlacement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemDates:
    """
    Calendar days covered by an item, before any clamping.

    end_coerced is set when the source end was earlier than the start.
    """

    start: date
    end: date
    end_coerced: bool = False


@dataclass(frozen=True)
class ItemSpan:
    """
    An item's span inside one displayed month.
    """

    item: TimeBoundedItem
    start: date
    end: date
    start_cell: int
    end_cell: int

    @property
    def is_multi_day(self) -> bool:
        return self.start_cell != self.end_cell

    @property
    def start_week(self) -> int:
        return self.start_cell // DAYS_PER_WEEK

    @property
    def end_week(self) -> int:
        return self.end_cell // DAYS_PER_WEEK


def resolve_dates(item: TimeBoundedItem) -> Optional[ItemDates]:
    """
    Concrete days of an item, or None if it has no usable start.

    A missing, "Ongoing" or unparseable end means the item covers its start
    day only. An end before the start collapses to the start.
    """
    start_dt = parse_datetime(item.start)
    if start_dt is None:
        return None

    end_dt = parse_datetime(item.end)
    if end_dt is None:
        return ItemDates(start_dt.date(), start_dt.date())

    if end_dt < start_dt:
        return ItemDates(start_dt.date(), start_dt.date(), end_coerced=True)
    return ItemDates(start_dt.date(), end_dt.date())


def resolve_span(item: TimeBoundedItem, month: int, year: int) -> Optional[ItemSpan]:
    """
    Clamp an item to the displayed month and map it to grid cells.

    Returns None when the item has no start or does not overlap the month.
    """
    dates = resolve_dates(item)
    if dates is None:
        return None

    first, last = month_bounds(month, year)
    if dates.end < first or dates.start > last:
        return None

    start = max(dates.start, first)
    end = min(dates.end, last)
    offset = first_weekday(month, year)
    return ItemSpan(
        item=item,
        start=start,
        end=end,
        start_cell=offset + start.day - 1,
        end_cell=offset + end.day - 1,
    )


def resolve_spans(items: Iterable[TimeBoundedItem], month: int, year: int) -> List[ItemSpan]:
    spans: List[ItemSpan] = []
    for item in items:
        span = resolve_span(item, month, year)
        if span is not None:
            spans.append(span)
    return spans


def _check_week(week: int) -> None:
    if not 0 <= week < WEEKS_PER_GRID:
        raise ValueError(f"week must be in 0..{WEEKS_PER_GRID - 1}, got {week!r}")


def _check_cap(visible_cap: int) -> None:
    if not isinstance(visible_cap, int) or visible_cap < 1:
        raise ValueError(f"visible_cap must be a positive integer, got {visible_cap!r}")


def _week_columns(span: ItemSpan, week: int) -> Optional[Tuple[int, int]]:
    base = week * DAYS_PER_WEEK
    if span.end_cell < base or span.start_cell > base + DAYS_PER_WEEK - 1:
        return None
    start_col = max(0, span.start_cell - base)
    end_col = min(DAYS_PER_WEEK - 1, span.end_cell - base)
    if start_col > end_col:
        return None
    return start_col, end_col


def _show_label(span: ItemSpan, week: int, start_col: int) -> bool:
    if not span.is_multi_day:
        return True
    starts_here = week == span.start_week and start_col == span.start_cell % DAYS_PER_WEEK
    return starts_here or start_col == 0


def _corner_style(span: ItemSpan, week: int) -> CornerStyle:
    has_start = week == span.start_week
    has_end = week == span.end_week
    if has_start and has_end:
        return CornerStyle.BOTH
    if has_start:
        return CornerStyle.LEFT
    if has_end:
        return CornerStyle.RIGHT
    return CornerStyle.SQUARE


def _first_free_slot(occupancy: List[List[bool]], start_col: int, end_col: int) -> Optional[int]:
    for slot, row in enumerate(occupancy):
        if not any(row[col] for col in range(start_col, end_col + 1)):
            return slot
    return None


def place_spans(week: int, spans: Sequence[ItemSpan], visible_cap: int) -> WeekPlacement:
    """
    Place already resolved spans into one week row.
    """
    _check_week(week)
    _check_cap(visible_cap)

    in_week: List[Tuple[ItemSpan, int, int]] = []
    for span in spans:
        cols = _week_columns(span, week)
        if cols is not None:
            in_week.append((span, cols[0], cols[1]))

    # Stable sort: ties keep source order
    in_week.sort(key=lambda entry: (not entry[0].is_multi_day, entry[0].start_cell))

    occupancy = [[False] * DAYS_PER_WEEK for _ in range(MAX_SLOTS)]
    counts = [0] * DAYS_PER_WEEK
    bars: List[PlacedBar] = []

    for span, start_col, end_col in in_week:
        slot = _first_free_slot(occupancy, start_col, end_col)
        if slot is None:
            logger.warning(
                "No free slot for %r in week %d (ceiling %d); hidden", span.item.id, week, MAX_SLOTS
            )
        else:
            for col in range(start_col, end_col + 1):
                occupancy[slot][col] = True

        # Position of this item among the items assigned to each of its days
        positions = []
        for col in range(start_col, end_col + 1):
            positions.append(counts[col])
            counts[col] += 1

        visible = slot is not None and all(pos < visible_cap for pos in positions)

        bars.append(
            PlacedBar(
                item=span.item,
                week=week,
                start_column=start_col,
                end_column=end_col,
                slot_index=slot,
                is_multi_day=span.is_multi_day,
                show_label=_show_label(span, week, start_col),
                corner_style=_corner_style(span, week),
                visible=visible,
            )
        )

    return WeekPlacement(week=week, bars=tuple(bars), column_counts=tuple(counts))


def place_week(
    week: int,
    items: Sequence[TimeBoundedItem],
    month: int,
    year: int,
    visible_cap: int,
) -> WeekPlacement:
    """
    Place every item touching `week` of the (0-based) month grid.
    """
    month_bounds(month, year)
    return place_spans(week, resolve_spans(items, month, year), visible_cap)
