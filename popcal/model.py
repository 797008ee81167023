"""
Central data model definitions used across the project.

This module defines the canonical structure of items and layout results so that:
- the data source, the layout core and the front-ends share the same field names
- a render pass only ever sees immutable values
- the renderer receives plain data (columns, slots, corners), never widgets
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class TimeBoundedItem:
    """
    One event or pop-up as delivered by the data source.

    start / end keep the raw strings from the source: an ISO-like date or
    datetime, the sentinel "Ongoing", or "".
    """

    id: str
    name: str
    start: str = ""
    end: str = ""
    all_day: bool = False
    recurring: bool = False
    location: str = ""
    short_description: str = ""
    long_description: str = ""
    image_ref: str = ""
    external_link: str = ""
    link_text: str = ""
    display: bool = True
    calendar: bool = True
    listing: bool = True


@dataclass(frozen=True)
class CalendarCell:
    """
    One of the 42 cells of the month grid.
    """

    index: int
    week: int
    weekday: int
    in_month: bool
    date: Optional[date] = None


class CornerStyle(str, Enum):
    BOTH = "both-rounded"
    LEFT = "left-rounded"
    RIGHT = "right-rounded"
    SQUARE = "square"


@dataclass(frozen=True)
class PlacedBar:
    """
    The segment of one item inside one week.

    start_column / end_column are inclusive, 0 = Sunday. slot_index is the
    vertical row inside the week, or None when the slot ceiling was exhausted.
    """

    item: TimeBoundedItem
    week: int
    start_column: int
    end_column: int
    slot_index: Optional[int]
    is_multi_day: bool
    show_label: bool
    corner_style: CornerStyle
    visible: bool = True

    @property
    def columns(self) -> range:
        return range(self.start_column, self.end_column + 1)

    @property
    def span(self) -> int:
        return self.end_column - self.start_column + 1


@dataclass(frozen=True)
class WeekPlacement:
    """
    Placement result for one week row.

    column_counts[c] is the number of items assigned to column c,
    visible or not.
    """

    week: int
    bars: Tuple[PlacedBar, ...]
    column_counts: Tuple[int, ...]

    @property
    def visible_bars(self) -> List[PlacedBar]:
        return [b for b in self.bars if b.visible]

    @property
    def hidden_bars(self) -> List[PlacedBar]:
        return [b for b in self.bars if not b.visible]


@dataclass(frozen=True)
class OverflowEntry:
    """
    A "+N more" marker for one day and every item that touches that day.
    """

    week: int
    column: int
    date: date
    hidden_count: int
    items: Tuple[TimeBoundedItem, ...] = ()

    @property
    def label(self) -> str:
        return f"+{self.hidden_count} more"


@dataclass(frozen=True)
class MonthLayout:
    """
    Everything a renderer needs to draw one month.
    """

    month: int
    year: int
    visible_cap: int
    cells: Tuple[CalendarCell, ...]
    weeks: Tuple[WeekPlacement, ...]
    overflow: Tuple[OverflowEntry, ...] = ()
    active_item_id: Optional[str] = None
    warnings: Tuple[str, ...] = field(default=())

    def overflow_for(self, week: int, column: int) -> Optional[OverflowEntry]:
        for entry in self.overflow:
            if entry.week == week and entry.column == column:
                return entry
        return None

    def bars_for_item(self, item_id: str) -> List[PlacedBar]:
        """
        All visible segments of one item, e.g. to highlight a multi-day bar.
        """
        return [b for w in self.weeks for b in w.bars if b.visible and b.item.id == item_id]

    def is_active(self, bar: PlacedBar) -> bool:
        return self.active_item_id is not None and bar.item.id == self.active_item_id
