"""
CLI (Command Line Interface).

This module provides quick terminal commands, e.g.:

    popcal month --year 2025 --month 5
    popcal day 2025-05-11
    popcal list
    popcal show pizza-pop-up
    popcal export pizza-pop-up pizza.ics
    popcal interactive

Every command loads the item collection from one source:
--csv FILE, --json FILE, --url URL (sheet CSV) or --cms-url URL.
Without flags the POPCAL_SOURCE_URL / POPCAL_CMS_URL settings are used.

Note:
- The interactive month navigator lives in popcal/interactive.py
- Commands return an exit code and finish via SystemExit
"""

from __future__ import annotations

import argparse
import json
import logging
from datetime import date
from pathlib import Path
from typing import List, Optional

import requests
from rich.logging import RichHandler
from rich.markup import escape

from popcal import config
from popcal.dates import now_in_display_zone
from popcal.export_ics import export_item_to_ics, ics_filename
from popcal.layout import RenderContext, render_month, visible_cap_for_width
from popcal.model import TimeBoundedItem
from popcal.overflow import items_on_date
from popcal.source import calendar_items, find_item, listing_items, load_items, upcoming_items
from popcal.terminal import console, day_table, items_table, month_table, print_item_detail

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load(args: argparse.Namespace) -> Optional[List[TimeBoundedItem]]:
    """
    Load items from the configured source.

    CLI behavior: report source errors as a message and return None instead
    of a traceback.
    """
    try:
        return load_items(
            csv_path=args.csv,
            json_path=args.json,
            url=args.url,
            cms_url=args.cms_url,
        )
    except requests.RequestException as e:
        console.print(f"[red]Could not fetch items:[/] {escape(str(e))}")
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        console.print(f"[red]Could not read items:[/] {escape(str(e))}")
    return None


def _parse_day(text: str) -> Optional[date]:
    try:
        return date.fromisoformat((text or "").strip())
    except ValueError:
        return None


def _visible_cap(args: argparse.Namespace) -> int:
    if args.cap is not None:
        return args.cap
    if args.width is not None:
        return visible_cap_for_width(args.width)
    return config.WIDE_VISIBLE_CAP


def _cmd_month(args: argparse.Namespace) -> int:
    """
    Print the month grid with bars and "+N more" markers.
    """
    today = now_in_display_zone()
    month = (args.month if args.month is not None else today.month) - 1
    year = args.year if args.year is not None else today.year
    if not 0 <= month <= 11:
        console.print("Month must be between 1 and 12.")
        return 1

    cap = _visible_cap(args)
    if cap < 1:
        console.print("Visible cap must be at least 1.")
        return 1

    items = _load(args)
    if items is None:
        return 2

    layout = render_month(RenderContext(month, year, tuple(calendar_items(items)), cap))
    console.print(month_table(layout))

    placed = {b.item.id for w in layout.weeks for b in w.bars}
    console.print(f"{len(placed)} items this month, {len(layout.overflow)} days with more")
    return 0


def _cmd_day(args: argparse.Namespace) -> int:
    """
    Print every item on one date (the "+N more" view).
    """
    day = _parse_day(args.date)
    if day is None:
        console.print("Please provide a date as YYYY-MM-DD.")
        return 1

    items = _load(args)
    if items is None:
        return 2

    found = items_on_date(calendar_items(items), day)
    if not found:
        console.print("Nothing on this day.")
        return 0
    console.print(day_table(day, found))
    return 0


def _cmd_list(args: argparse.Namespace) -> int:
    items = _load(args)
    if items is None:
        return 2

    shown = listing_items(items)
    if not args.all:
        shown = upcoming_items(shown)
    if not shown:
        console.print("No results.")
        return 0
    console.print(items_table(shown, title="Pop-ups"))
    return 0


def _cmd_show(args: argparse.Namespace) -> int:
    item_id = (args.item_id or "").strip()
    if not item_id:
        console.print("Please provide an item id.")
        return 1

    items = _load(args)
    if items is None:
        return 2

    item = find_item(items, item_id)
    if item is None or not item.display:
        console.print(f"Not found: {escape(item_id)}")
        return 1
    print_item_detail(item)
    return 0


def _cmd_export(args: argparse.Namespace) -> int:
    """
    Export one item into an iCalendar (.ics) file.
    """
    day = None
    if args.day:
        day = _parse_day(args.day)
        if day is None:
            console.print("Please provide --day as YYYY-MM-DD.")
            return 1

    items = _load(args)
    if items is None:
        return 2

    item = find_item(items, args.item_id)
    if item is None:
        console.print(f"Not found: {escape(args.item_id)}")
        return 1

    out = (args.out or "").strip() or ics_filename(item, day)
    try:
        path = export_item_to_ics(item, out, day=day)
    except ValueError as e:
        console.print(f"Cannot export: {escape(str(e))}")
        return 1
    console.print(f"Exported {escape(item.id)} to: {escape(str(path))}")
    return 0


def _add_source_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--csv", type=Path, default=None, help="Local sheet export (.csv)")
    p.add_argument("--json", type=Path, default=None, help="Local document dump (.json)")
    p.add_argument("--url", type=str, default=config.SOURCE_URL, help="Published sheet CSV URL")
    p.add_argument("--cms-url", type=str, default=config.CMS_URL, help="Document store query URL")


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="popcal", description="Pop-up month calendar")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_month = sub.add_parser("month", help="Show the month grid")
    p_month.add_argument("--year", type=int, default=None)
    p_month.add_argument("--month", type=int, default=None, help="1-12")
    cap = p_month.add_mutually_exclusive_group()
    cap.add_argument("--cap", type=int, default=None, help="Bars shown per day")
    cap.add_argument("--width", type=int, default=None, help="Viewport width in px")
    _add_source_args(p_month)

    p_day = sub.add_parser("day", help="Show everything on one date")
    p_day.add_argument("date", type=str, help="YYYY-MM-DD")
    _add_source_args(p_day)

    p_list = sub.add_parser("list", help="List pop-ups with their dates")
    p_list.add_argument("--all", action="store_true", help="Include past items")
    _add_source_args(p_list)

    p_show = sub.add_parser("show", help="Show one item")
    p_show.add_argument("item_id", type=str)
    _add_source_args(p_show)

    p_export = sub.add_parser("export", help="Export one item to .ics")
    p_export.add_argument("item_id", type=str)
    p_export.add_argument("out", type=str, nargs="?", default="", help="Output file path")
    p_export.add_argument("--day", type=str, default="", help="Single day of a multi-day item")
    _add_source_args(p_export)

    p_inter = sub.add_parser("interactive", help="Interactive month navigator")
    p_inter.add_argument("--width", type=int, default=None, help="Viewport width in px")
    _add_source_args(p_inter)

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    if args.command == "month":
        raise SystemExit(_cmd_month(args))
    if args.command == "day":
        raise SystemExit(_cmd_day(args))
    if args.command == "list":
        raise SystemExit(_cmd_list(args))
    if args.command == "show":
        raise SystemExit(_cmd_show(args))
    if args.command == "export":
        raise SystemExit(_cmd_export(args))

    if args.command == "interactive":
        from popcal.interactive import run_interactive

        raise SystemExit(run_interactive(args))

    raise SystemExit(2)
