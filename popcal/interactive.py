from __future__ import annotations

import argparse
from datetime import date
from typing import Optional

import requests
from rich.markup import escape

from popcal import config
from popcal.dates import now_in_display_zone
from popcal.export_ics import export_item_to_ics, ics_filename
from popcal.layout import RenderContext, RenderSession, visible_cap_for_width
from popcal.overflow import items_on_date
from popcal.source import calendar_items, find_item, load_items
from popcal.terminal import console, day_table, month_table, print_item_detail


def _println(msg: str = "") -> None:
    console.print(msg)


def _prompt(msg: str) -> str:
    return console.input(msg, markup=False)


def _load_calendar_items(args: argparse.Namespace) -> list:
    return calendar_items(
        load_items(csv_path=args.csv, json_path=args.json, url=args.url, cms_url=args.cms_url)
    )


def run_interactive(args: argparse.Namespace) -> int:
    """
    Month navigator: every action replaces the render context and redraws.
    """
    today = now_in_display_zone()
    cap = visible_cap_for_width(args.width) if args.width else config.WIDE_VISIBLE_CAP
    session = RenderSession(RenderContext(month=today.month - 1, year=today.year, visible_cap=cap))

    if not _flow_reload(session, args):
        return 2

    while True:
        console.print(month_table(session.layout))
        ctx = session.context
        _println(f"Bars per day: {ctx.visible_cap} | Items: {len(ctx.items)} | Selected: {escape(ctx.active_item_id or '-')}")

        choice = _prompt(
            "\n[n] Next month  [p] Previous month  [t] Today\n"
            "[w] Viewport width  [d] Day view  [s] Select item\n"
            "[e] Export .ics  [r] Reload data  [0] Exit\n"
            "Select: "
        ).strip().lower()

        if choice == "0":
            _println("Bye.")
            return 0

        if choice == "n":
            session.navigate(1)
        elif choice == "p":
            session.navigate(-1)
        elif choice == "t":
            now = now_in_display_zone()
            session.go_to(now.month - 1, now.year)
        elif choice == "w":
            _flow_resize(session)
        elif choice == "d":
            _flow_day(session)
        elif choice == "s":
            _flow_select(session)
        elif choice == "e":
            _flow_export(session)
        elif choice == "r":
            _flow_reload(session, args)
        else:
            _println("Invalid choice.")


def _flow_reload(session: RenderSession, args: argparse.Namespace) -> bool:
    ticket = session.begin_load()
    try:
        items = _load_calendar_items(args)
    except (requests.RequestException, OSError, ValueError) as e:
        _println(f"[red]Failed to load calendar items:[/] {escape(str(e))}")
        return False
    if session.complete_load(ticket, items) is None:
        _println("A newer load already finished; keeping it.")
    else:
        _println(f"Loaded {len(items)} items.")
    return True


def _flow_resize(session: RenderSession) -> None:
    raw = _prompt("Viewport width in px (e.g. 800 or 1280): ").strip()
    if not raw.isdigit():
        _println("Not a number.")
        return
    session.resize(visible_cap_for_width(int(raw)))


def _pick_day(session: RenderSession) -> Optional[date]:
    raw = _prompt("Day of month: ").strip()
    if not raw.isdigit():
        _println("Not a number.")
        return None
    ctx = session.context
    for cell in session.layout.cells:
        if cell.in_month and cell.date.day == int(raw):
            return cell.date
    _println(f"No such day in {ctx.month + 1}/{ctx.year}.")
    return None


def _flow_day(session: RenderSession) -> None:
    day = _pick_day(session)
    if day is None:
        return
    found = items_on_date(session.context.items, day)
    if not found:
        _println("Nothing on this day.")
        return
    console.print(day_table(day, found))

    pick = _prompt("Item id to open [blank = back]: ").strip()
    if pick:
        item = find_item(found, pick)
        if item is None:
            _println(f"Not found: {escape(pick)}")
            return
        session.select(item.id)
        print_item_detail(item)


def _flow_select(session: RenderSession) -> None:
    pick = _prompt("Item id [blank = clear selection]: ").strip()
    if not pick:
        session.select(None)
        return
    item = find_item(session.context.items, pick)
    if item is None:
        _println(f"Not found: {escape(pick)}")
        return
    session.select(item.id)
    segments = session.layout.bars_for_item(item.id)
    _println(f"{escape(item.name)}: {len(segments)} visible segment(s) this month")
    print_item_detail(item)


def _flow_export(session: RenderSession) -> None:
    pick = _prompt("Item id [blank = selected]: ").strip() or (session.context.active_item_id or "")
    item = find_item(session.context.items, pick)
    if item is None:
        _println(f"Not found: {escape(pick or '(nothing selected)')}")
        return

    out = _prompt(f"Output path [{ics_filename(item)}]: ").strip() or ics_filename(item)
    try:
        path = export_item_to_ics(item, out)
    except (ValueError, OSError) as e:
        _println(f"Export failed: {escape(str(e))}")
        return
    _println(f"Exported to: {escape(str(path))}")
