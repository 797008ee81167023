"""
"+N more" markers.

The marker count comes from the per-day assignment counts of the week
placement. The item list behind a marker is looked up separately, by date,
over the whole item collection: it therefore also lists items that never
got a slot, or that the placement skipped altogether.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Sequence

from popcal.model import CalendarCell, OverflowEntry, TimeBoundedItem, WeekPlacement
from popcal.placement import resolve_dates


def overflow_count(assigned: int, visible_cap: int) -> int:
    return max(0, assigned - visible_cap)


def items_on_date(items: Iterable[TimeBoundedItem], day: date) -> List[TimeBoundedItem]:
    """
    Every item whose start..end days (inclusive) contain `day`, in source order.
    """
    found: List[TimeBoundedItem] = []
    for item in items:
        dates = resolve_dates(item)
        if dates is None:
            continue
        if dates.start <= day <= dates.end:
            found.append(item)
    return found


def resolve_overflow(
    placement: WeekPlacement,
    cells: Sequence[CalendarCell],
    items: Sequence[TimeBoundedItem],
    visible_cap: int,
) -> List[OverflowEntry]:
    """
    Overflow entries for one week, left to right.

    `cells` is the full 42-cell grid the placement was computed on.
    """
    entries: List[OverflowEntry] = []
    base = placement.week * len(placement.column_counts)

    for column, assigned in enumerate(placement.column_counts):
        hidden = overflow_count(assigned, visible_cap)
        if hidden <= 0:
            continue

        cell = cells[base + column]
        if cell.date is None:
            continue

        entries.append(
            OverflowEntry(
                week=placement.week,
                column=column,
                date=cell.date,
                hidden_count=hidden,
                items=tuple(items_on_date(items, cell.date)),
            )
        )

    return entries
