"""
One complete render pass of the month calendar.

render_month() takes an immutable RenderContext and returns a MonthLayout:
grid -> per-week placement -> overflow markers. It keeps no state between
calls; RenderSession is the small state machine a front-end drives:

- a data load (begin_load / complete_load, last write wins)
- month navigation (navigate)
- viewport change (resize, re-placement only)
- item selection (select)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from popcal.config import NARROW_VIEWPORT_PX, NARROW_VISIBLE_CAP, WEEKS_PER_GRID, WIDE_VISIBLE_CAP
from popcal.grid import build_month_grid
from popcal.model import MonthLayout, OverflowEntry, TimeBoundedItem, WeekPlacement
from popcal.overflow import resolve_overflow
from popcal.placement import place_spans, resolve_dates, resolve_spans

logger = logging.getLogger(__name__)


def visible_cap_for_width(width: int) -> int:
    """
    Bars shown per day for a viewport `width` in pixels.
    """
    return NARROW_VISIBLE_CAP if width <= NARROW_VIEWPORT_PX else WIDE_VISIBLE_CAP


@dataclass(frozen=True)
class RenderContext:
    month: int
    year: int
    items: Tuple[TimeBoundedItem, ...] = ()
    visible_cap: int = WIDE_VISIBLE_CAP
    active_item_id: Optional[str] = None


def _data_quality_warnings(items: Sequence[TimeBoundedItem]) -> List[str]:
    warnings: List[str] = []
    for item in items:
        if not (item.start or "").strip():
            continue
        dates = resolve_dates(item)
        if dates is None:
            warnings.append(f"{item.id}: unparseable start {item.start!r}, left off the grid")
        elif dates.end_coerced:
            warnings.append(f"{item.id}: end {item.end!r} before start {item.start!r}, shown as one day")
    return warnings


def render_month(context: RenderContext) -> MonthLayout:
    cells = build_month_grid(context.month, context.year)
    spans = resolve_spans(context.items, context.month, context.year)

    weeks: List[WeekPlacement] = []
    overflow: List[OverflowEntry] = []
    for week in range(WEEKS_PER_GRID):
        placement = place_spans(week, spans, context.visible_cap)
        weeks.append(placement)
        overflow.extend(resolve_overflow(placement, cells, context.items, context.visible_cap))

    warnings = _data_quality_warnings(context.items)
    for message in warnings:
        logger.warning(message)

    return MonthLayout(
        month=context.month,
        year=context.year,
        visible_cap=context.visible_cap,
        cells=tuple(cells),
        weeks=tuple(weeks),
        overflow=tuple(overflow),
        active_item_id=context.active_item_id,
        warnings=tuple(warnings),
    )


class RenderSession:
    """
    Holds the current render context and re-renders on every trigger.

    Each trigger replaces the context as a whole; the item tuple is never
    modified in place.
    """

    def __init__(self, context: RenderContext) -> None:
        self._context = context
        self._issued = 0
        self._applied = 0
        self.layout: MonthLayout = render_month(context)

    @property
    def context(self) -> RenderContext:
        return self._context

    def _apply(self, context: RenderContext) -> MonthLayout:
        self._context = context
        self.layout = render_month(context)
        return self.layout

    def begin_load(self) -> int:
        """
        Register a data fetch and return its ticket.
        """
        self._issued += 1
        return self._issued

    def complete_load(self, ticket: int, items: Sequence[TimeBoundedItem]) -> Optional[MonthLayout]:
        """
        Swap in the items of a finished fetch.

        Results of a fetch older than the last applied one are dropped and
        None is returned.
        """
        if ticket <= self._applied:
            logger.debug("Dropping stale load %d (applied: %d)", ticket, self._applied)
            return None
        self._applied = ticket
        return self._apply(replace(self._context, items=tuple(items)))

    def navigate(self, delta: int) -> MonthLayout:
        index = self._context.year * 12 + self._context.month + delta
        year, month = divmod(index, 12)
        return self._apply(replace(self._context, month=month, year=year))

    def go_to(self, month: int, year: int) -> MonthLayout:
        return self._apply(replace(self._context, month=month, year=year))

    def resize(self, visible_cap: int) -> MonthLayout:
        return self._apply(replace(self._context, visible_cap=visible_cap))

    def select(self, item_id: Optional[str]) -> MonthLayout:
        return self._apply(replace(self._context, active_item_id=item_id))
