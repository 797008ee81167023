"""
Configuration constants and environment setup.

Values that depend on the deployment (data source URLs, display timezone,
HTTP timeout) can be overridden through environment variables or a local
.env file. Everything else is a fixed constant of the calendar layout.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r (not a number), using %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r (must be positive), using %s", name, raw, default)
        return default
    return value


# ---------------------------------------------------------------------------
# Data sources
# ---------------------------------------------------------------------------

# Published spreadsheet in CSV format (one row per item)
SOURCE_URL = os.environ.get("POPCAL_SOURCE_URL", "")

# Document-store query endpoint returning {"result": [...]}
CMS_URL = os.environ.get("POPCAL_CMS_URL", "")
CMS_QUERY = '*[_type == "pop-ups"] | order(start_datetime asc)'

HTTP_TIMEOUT = _float_env("POPCAL_HTTP_TIMEOUT", 30.0)

# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

# All dates are rendered in this civil timezone, whatever the machine's zone
DISPLAY_TZ = os.environ.get("POPCAL_DISPLAY_TZ", "America/New_York")

ONGOING = "Ongoing"
TBD_TEXT = "Date and time to be announced"
DEFAULT_LINK_TEXT = "Learn More"

# ---------------------------------------------------------------------------
# Month grid
# ---------------------------------------------------------------------------

WEEKS_PER_GRID = 6
DAYS_PER_WEEK = 7
CELLS_PER_GRID = WEEKS_PER_GRID * DAYS_PER_WEEK

# Upper bound on vertical bar rows per week
MAX_SLOTS = 20

NARROW_VIEWPORT_PX = 900
NARROW_VISIBLE_CAP = 2
WIDE_VISIBLE_CAP = 4

# ---------------------------------------------------------------------------
# ICS export
# ---------------------------------------------------------------------------

ICS_PRODID = "-//NYC Slice of Life//EN"
ICS_UID_DOMAIN = "nycsliceoflife.com"
