import tempfile
import unittest
from datetime import date, datetime, timezone
from pathlib import Path

from popcal.export_ics import build_ics, export_item_to_ics, ics_filename, is_multi_day
from popcal.model import TimeBoundedItem

NOW = datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)


def _lines(text: str) -> list:
    return text.split("\r\n")


class TestBuildICS(unittest.TestCase):
    def test_timed_item(self) -> None:
        item = TimeBoundedItem(
            id="pizza-pop-up",
            name="Pizza Pop-Up",
            start="2025-05-11 10:00:00",
            end="2025-05-11 17:00:00",
            location="Brooklyn, NY",
            external_link="https://example.com/pizza",
        )
        text = build_ics(item, now=NOW)
        lines = _lines(text)

        self.assertEqual(lines[0], "BEGIN:VCALENDAR")
        self.assertIn("DTSTART;TZID=America/New_York:20250511T100000", lines)
        self.assertIn("DTEND;TZID=America/New_York:20250511T170000", lines)
        self.assertIn("UID:Pizza_Pop-Up_20250511T100000@nycsliceoflife.com", lines)
        self.assertIn("LOCATION:Brooklyn\\, NY", lines)
        self.assertIn("URL:https://example.com/pizza", lines)
        self.assertIn("DTSTAMP:20250501T120000Z", lines)
        self.assertTrue(text.endswith("END:VCALENDAR\r\n"))

    def test_utc_source_is_written_in_display_zone(self) -> None:
        item = TimeBoundedItem(id="t", name="Tacos", start="2025-05-15T22:00:00Z")
        lines = _lines(build_ics(item, now=NOW))
        self.assertIn("DTSTART;TZID=America/New_York:20250515T180000", lines)
        self.assertFalse(any(line.startswith("DTEND") for line in lines))

    def test_all_day_end_is_exclusive(self) -> None:
        item = TimeBoundedItem(id="b", name="Bagel Week", start="2025-05-12", end="2025-05-16", all_day=True)
        lines = _lines(build_ics(item, now=NOW))
        self.assertIn("DTSTART;VALUE=DATE:20250512", lines)
        self.assertIn("DTEND;VALUE=DATE:20250517", lines)

    def test_single_all_day(self) -> None:
        item = TimeBoundedItem(id="b", name="Bagels", start="2025-05-31", all_day=True)
        lines = _lines(build_ics(item, now=NOW))
        self.assertIn("DTEND;VALUE=DATE:20250601", lines)

    def test_escaping(self) -> None:
        item = TimeBoundedItem(
            id="x",
            name="Wine; Cheese, Bread",
            start="2025-05-11",
            long_description="Line one\nLine two \\ done",
        )
        lines = _lines(build_ics(item, now=NOW))
        self.assertIn("SUMMARY:Wine\\; Cheese\\, Bread", lines)
        self.assertIn("DESCRIPTION:Line one\\nLine two \\\\ done", lines)

    def test_long_lines_are_folded(self) -> None:
        description = "Slices and pies from every borough, served hot. " * 6 + "Café ☕"
        item = TimeBoundedItem(id="x", name="Pizza", start="2025-05-11", long_description=description)
        text = build_ics(item, now=NOW)
        for line in _lines(text):
            self.assertLessEqual(len(line.encode("utf-8")), 75)
        unfolded = text.replace("\r\n ", "")
        self.assertIn("Café ☕", unfolded)
        self.assertIn("DESCRIPTION:Slices and pies from every borough\\, served hot.", unfolded)

    def test_no_start_raises(self) -> None:
        with self.assertRaises(ValueError):
            build_ics(TimeBoundedItem(id="x", name="X", start="TBD"))


class TestExportFile(unittest.TestCase):
    def test_export_creates_file(self) -> None:
        item = TimeBoundedItem(id="p", name="Pizza Pop-Up", start="2025-05-11 10:00", end="2025-05-11 17:00")
        with tempfile.TemporaryDirectory() as d:
            out = Path(d) / "nested" / "out.ics"
            path = export_item_to_ics(item, out, now=NOW)
            self.assertEqual(path, out)
            raw = out.read_bytes().decode("utf-8")
            self.assertIn("BEGIN:VEVENT\r\n", raw)
            self.assertIn("SUMMARY:Pizza Pop-Up\r\n", raw)

    def test_export_single_day_of_multi_day_item(self) -> None:
        item = TimeBoundedItem(id="f", name="Bagel Fest", start="2025-05-12 10:00", end="2025-05-16 17:00")
        self.assertTrue(is_multi_day(item))
        day = date(2025, 5, 14)
        with tempfile.TemporaryDirectory() as d:
            out = Path(d) / ics_filename(item, day)
            self.assertEqual(out.name, "Bagel_Fest_2025-05-14.ics")
            export_item_to_ics(item, out, day=day, now=NOW)
            lines = _lines(out.read_bytes().decode("utf-8"))
            self.assertIn("DTSTART;TZID=America/New_York:20250514T100000", lines)
            self.assertIn("DTEND;TZID=America/New_York:20250514T170000", lines)

    def test_day_ignored_for_all_day_item(self) -> None:
        item = TimeBoundedItem(id="b", name="Bagel Week", start="2025-05-12", end="2025-05-16", all_day=True)
        self.assertFalse(is_multi_day(item))
        with tempfile.TemporaryDirectory() as d:
            out = export_item_to_ics(item, Path(d) / "x.ics", day=date(2025, 5, 14), now=NOW)
            self.assertIn("DTSTART;VALUE=DATE:20250512", out.read_bytes().decode("utf-8"))


if __name__ == "__main__":
    unittest.main()
