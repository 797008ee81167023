"""
Month grid construction.

The grid is always 6 weeks x 7 days, Sunday first. Cell 0 is the Sunday on
or before the 1st of the month; cells outside the month are blank. Months
that need only 4 or 5 rows still get 6 so the layout height never changes.

Months are 0-based (0 = January, 11 = December) throughout the layout core.
"""

from __future__ import annotations

import calendar
from datetime import date
from typing import List, Optional, Tuple

from popcal.config import CELLS_PER_GRID, DAYS_PER_WEEK
from popcal.model import CalendarCell


def _check_month(month: int) -> None:
    if not 0 <= month <= 11:
        raise ValueError(f"month must be in 0..11, got {month!r}")


def month_bounds(month: int, year: int) -> Tuple[date, date]:
    """
    First and last day of a (0-based) month.
    """
    _check_month(month)
    days = calendar.monthrange(year, month + 1)[1]
    return date(year, month + 1, 1), date(year, month + 1, days)


def first_weekday(month: int, year: int) -> int:
    """
    Column of the 1st of the month, 0 = Sunday.
    """
    first, _ = month_bounds(month, year)
    # date.weekday(): Monday = 0
    return (first.weekday() + 1) % 7


def cell_index(d: date, month: int, year: int) -> Optional[int]:
    """
    Grid cell of an in-month date, None for dates outside the month.
    """
    first, last = month_bounds(month, year)
    if not first <= d <= last:
        return None
    return first_weekday(month, year) + d.day - 1


def build_month_grid(month: int, year: int) -> List[CalendarCell]:
    first, last = month_bounds(month, year)
    offset = first_weekday(month, year)

    cells: List[CalendarCell] = []
    for index in range(CELLS_PER_GRID):
        day = index - offset + 1
        in_month = 1 <= day <= last.day
        cells.append(
            CalendarCell(
                index=index,
                week=index // DAYS_PER_WEEK,
                weekday=index % DAYS_PER_WEEK,
                in_month=in_month,
                date=date(year, month + 1, day) if in_month else None,
            )
        )
    return cells


def week_cells(cells: List[CalendarCell], week: int) -> List[CalendarCell]:
    return list(cells[week * DAYS_PER_WEEK : (week + 1) * DAYS_PER_WEEK])
