"""
Data source boundary (sheet CSV / document store -> TimeBoundedItem).

All defaulting happens here, once:
- missing booleans fall back to their defaults (recurring -> False,
  visibility flags -> True)
- ids are slugs of the item name, made unique within one load
- HTML in descriptions is reduced to plain text

Bad rows never raise: a row without a name still becomes an item, and dates
are kept as raw strings for the layout core to interpret.
Network errors (requests.RequestException) are left to the caller.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

import requests
from bs4 import BeautifulSoup

from popcal.config import CMS_QUERY, HTTP_TIMEOUT
from popcal.dates import is_expired
from popcal.model import TimeBoundedItem

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"[^a-z0-9]+")

# Older sheets used different column names for the same flags
_COLUMN_ALIASES = {
    "display": "master_display",
    "events_page": "popups_page",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def slugify(name: str) -> str:
    """
    "Pizza Pop-Up!" -> "pizza-pop-up"
    """
    return _SLUG_RE.sub("-", (name or "").lower()).strip("-")


def parse_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    text = "" if value is None else str(value).strip().upper()
    if not text:
        return default
    if text in {"TRUE", "YES", "Y", "1"}:
        return True
    if text in {"FALSE", "NO", "N", "0"}:
        return False
    return default


def plain_text(value: Any) -> str:
    """
    Strip markup from a description, keeping line breaks.
    """
    text = "" if value is None else str(value).strip()
    if "<" not in text:
        return text
    soup = BeautifulSoup(text, "html.parser")
    return soup.get_text("\n", strip=True)


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _unique_id(base: str, seen: Dict[str, int]) -> str:
    base = base or "item"
    count = seen.get(base, 0) + 1
    seen[base] = count
    return base if count == 1 else f"{base}-{count}"


# ---------------------------------------------------------------------------
# Sheet (CSV)
# ---------------------------------------------------------------------------


def parse_csv(text: str) -> List[Dict[str, str]]:
    """
    Parse sheet CSV into row dicts. Quoted cells may span several lines.
    """
    reader = csv.reader(io.StringIO((text or "").strip()))
    try:
        header = next(reader)
    except StopIteration:
        return []

    keys = [_COLUMN_ALIASES.get(h.strip(), h.strip()) for h in header]
    rows: List[Dict[str, str]] = []
    for values in reader:
        if not any(v.strip() for v in values):
            continue
        row = {key: "" for key in keys}
        for key, value in zip(keys, values):
            # First non-empty value wins when an alias duplicates a column
            if not row.get(key):
                row[key] = value.strip()
        rows.append(row)
    return rows


def item_from_row(row: Mapping[str, Any], item_id: str) -> TimeBoundedItem:
    return TimeBoundedItem(
        id=item_id,
        name=_text(row.get("name")),
        start=_text(row.get("start_datetime")),
        end=_text(row.get("end_datetime")),
        all_day=parse_bool(row.get("all_day"), False),
        recurring=parse_bool(row.get("recurring"), False),
        location=_text(row.get("location")),
        short_description=plain_text(row.get("short_desc")),
        long_description=plain_text(row.get("long_desc")),
        image_ref=_text(row.get("img")),
        external_link=_text(row.get("link")),
        link_text=_text(row.get("link_text")),
        display=parse_bool(row.get("master_display"), True),
        calendar=parse_bool(row.get("calendar"), True),
        listing=parse_bool(row.get("popups_page"), True),
    )


def items_from_rows(rows: Iterable[Mapping[str, Any]]) -> List[TimeBoundedItem]:
    seen: Dict[str, int] = {}
    items: List[TimeBoundedItem] = []
    for row in rows:
        item_id = _unique_id(slugify(_text(row.get("name"))), seen)
        items.append(item_from_row(row, item_id))
    return items


def items_from_csv(text: str) -> List[TimeBoundedItem]:
    return items_from_rows(parse_csv(text))


# ---------------------------------------------------------------------------
# Document store (JSON)
# ---------------------------------------------------------------------------


def _slug_of(doc: Mapping[str, Any]) -> str:
    slug = doc.get("slug")
    if isinstance(slug, Mapping):
        slug = slug.get("current")
    return slugify(_text(slug)) or slugify(_text(doc.get("name")))


def item_from_document(doc: Mapping[str, Any], item_id: str) -> TimeBoundedItem:
    """
    All-day documents carry start_date / end_date, timed ones
    start_datetime / end_datetime.
    """
    all_day = parse_bool(doc.get("all_day"), False)
    if all_day:
        start = _text(doc.get("start_date")) or _text(doc.get("start_datetime"))
        end = _text(doc.get("end_date")) or _text(doc.get("end_datetime"))
    else:
        start = _text(doc.get("start_datetime")) or _text(doc.get("start_date"))
        end = _text(doc.get("end_datetime")) or _text(doc.get("end_date"))

    return TimeBoundedItem(
        id=item_id,
        name=_text(doc.get("name")),
        start=start,
        end=end,
        all_day=all_day,
        recurring=parse_bool(doc.get("recurring"), False),
        location=_text(doc.get("location")),
        short_description=plain_text(doc.get("short_description")),
        long_description=plain_text(doc.get("long_description")),
        image_ref=_text(doc.get("image_url") or doc.get("img")),
        external_link=_text(doc.get("link")),
        link_text=_text(doc.get("link_text")),
        display=parse_bool(doc.get("master_display"), True),
        calendar=parse_bool(doc.get("calendar"), True),
        listing=parse_bool(doc.get("popups_page"), True),
    )


def items_from_documents(docs: Iterable[Mapping[str, Any]]) -> List[TimeBoundedItem]:
    seen: Dict[str, int] = {}
    items: List[TimeBoundedItem] = []
    for doc in docs:
        if not isinstance(doc, Mapping):
            logger.warning("Skipping non-object document: %r", doc)
            continue
        items.append(item_from_document(doc, _unique_id(_slug_of(doc), seen)))
    return items


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


def calendar_items(items: Iterable[TimeBoundedItem]) -> List[TimeBoundedItem]:
    return [i for i in items if i.display and i.calendar]


def listing_items(items: Iterable[TimeBoundedItem]) -> List[TimeBoundedItem]:
    return [i for i in items if i.display and i.listing]


def upcoming_items(items: Iterable[TimeBoundedItem], now=None) -> List[TimeBoundedItem]:
    return [i for i in items if not is_expired(i.end, now)]


def find_item(items: Iterable[TimeBoundedItem], item_id: str) -> Optional[TimeBoundedItem]:
    wanted = (item_id or "").strip().lower()
    for item in items:
        if item.id == wanted:
            return item
    return None


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------


def fetch_text(url: str, session: Any = None, timeout: float = HTTP_TIMEOUT) -> str:
    """
    GET a published sheet as text.
    """
    http = session if session is not None else requests
    resp = http.get(url, timeout=timeout)
    resp.raise_for_status()
    return resp.text


def fetch_documents(
    url: str,
    query: str = CMS_QUERY,
    session: Any = None,
    timeout: float = HTTP_TIMEOUT,
) -> List[Dict[str, Any]]:
    """
    Run a query against the document store; returns its "result" list.
    """
    http = session if session is not None else requests
    resp = http.get(
        url,
        params={"query": query, "perspective": "published"},
        headers={"Accept": "application/json"},
        timeout=timeout,
    )
    resp.raise_for_status()
    result = resp.json().get("result", [])
    return list(result) if isinstance(result, list) else []


def load_items(
    csv_path: Optional[Path] = None,
    json_path: Optional[Path] = None,
    url: str = "",
    cms_url: str = "",
    session: Any = None,
) -> List[TimeBoundedItem]:
    """
    Load the full item collection from the first configured source:
    local CSV, local JSON, sheet URL, document store URL.
    """
    if csv_path is not None:
        return items_from_csv(Path(csv_path).read_text(encoding="utf-8"))
    if json_path is not None:
        data = json.loads(Path(json_path).read_text(encoding="utf-8"))
        if isinstance(data, Mapping):
            data = data.get("result", [])
        return items_from_documents(data if isinstance(data, list) else [])
    if url:
        logger.info("Fetching sheet from %s", url)
        return items_from_csv(fetch_text(url, session=session))
    if cms_url:
        logger.info("Querying documents from %s", cms_url)
        return items_from_documents(fetch_documents(cms_url, session=session))
    return []
