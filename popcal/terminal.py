"""
Rich rendering of layout results for the terminal front-ends.

The layout core only decides columns, slots, labels and corners; this module
turns those decisions into rich tables. Nothing here computes placement.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from popcal.config import DEFAULT_LINK_TEXT, DAYS_PER_WEEK
from popcal.dates import format_long_date, format_month_year
from popcal.formatter import format_item_dates
from popcal.model import CornerStyle, MonthLayout, PlacedBar, TimeBoundedItem, WeekPlacement

console = Console()

WEEKDAY_HEADERS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
CELL_WIDTH = 14

_LEFT_CAP = {CornerStyle.BOTH: "(", CornerStyle.LEFT: "(", CornerStyle.RIGHT: "", CornerStyle.SQUARE: ""}
_RIGHT_CAP = {CornerStyle.BOTH: ")", CornerStyle.LEFT: "", CornerStyle.RIGHT: ")", CornerStyle.SQUARE: ""}


def _bar_at(bars: Iterable[PlacedBar], slot: int, column: int) -> Optional[PlacedBar]:
    for bar in bars:
        if bar.slot_index == slot and bar.start_column <= column <= bar.end_column:
            return bar
    return None


def _bar_segment(bar: PlacedBar, column: int, active: bool) -> Text:
    if bar.show_label and column == bar.start_column:
        body = bar.item.name
    else:
        body = "─" * (CELL_WIDTH - 2)

    left = _LEFT_CAP[bar.corner_style] if column == bar.start_column else ""
    right = _RIGHT_CAP[bar.corner_style] if column == bar.end_column else ""
    width = CELL_WIDTH - len(left) - len(right)
    if len(body) > width:
        body = body[: width - 1] + "…"

    style = "reverse bold" if active else ("cyan" if bar.is_multi_day else "green")
    return Text(f"{left}{body}{right}", style=style)


def _cell_text(layout: MonthLayout, placement: WeekPlacement, column: int) -> Text:
    cell = layout.cells[placement.week * DAYS_PER_WEEK + column]
    if not cell.in_month:
        return Text("")

    out = Text(str(cell.date.day), style="bold")
    visible = placement.visible_bars
    slots = [b.slot_index for b in visible if b.slot_index is not None]
    for slot in range(max(slots) + 1 if slots else 0):
        out.append("\n")
        bar = _bar_at(visible, slot, column)
        if bar is not None:
            out.append_text(_bar_segment(bar, column, layout.is_active(bar)))

    entry = layout.overflow_for(placement.week, column)
    if entry is not None:
        out.append("\n")
        out.append(entry.label, style="yellow")
    return out


def month_table(layout: MonthLayout) -> Table:
    table = Table(
        title=format_month_year(layout.month, layout.year),
        box=box.SQUARE,
        show_lines=True,
    )
    for name in WEEKDAY_HEADERS:
        table.add_column(name, width=CELL_WIDTH, no_wrap=True, overflow="ellipsis")

    for placement in layout.weeks:
        table.add_row(*[_cell_text(layout, placement, col) for col in range(DAYS_PER_WEEK)])
    return table


def items_table(items: List[TimeBoundedItem], title: str) -> Table:
    table = Table(title=title, box=box.SIMPLE)
    table.add_column("ID", style="bold cyan")
    table.add_column("Name")
    table.add_column("When", style="magenta")
    table.add_column("Where", style="green")
    for item in items:
        table.add_row(
            escape(item.id),
            escape(item.name),
            escape(format_item_dates(item)),
            escape(item.location or "TBD"),
        )
    return table


def day_table(day, items: List[TimeBoundedItem]) -> Table:
    return items_table(items, title=format_long_date(day))


def print_item_detail(item: TimeBoundedItem) -> None:
    console.print(f"[bold]{escape(item.name)}[/]")
    console.print(f"[magenta]{escape(format_item_dates(item))}[/]")
    console.print(f"Location: {escape(item.location or 'TBD')}")
    if item.recurring:
        console.print("[yellow]Recurring[/]")
    console.print()
    console.print(escape(item.long_description or item.short_description or "No description available."))
    if item.external_link:
        console.print()
        console.print(escape(f"{item.link_text or DEFAULT_LINK_TEXT}: {item.external_link}"))
