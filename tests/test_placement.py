"""
Unit tests for week-local bar placement.

All scenarios use May 2025: the 1st is a Thursday, so the grid offset is 4
and May 11 (a Sunday) is cell 14, the first column of week 2.
"""

import unittest

from popcal.model import CornerStyle, TimeBoundedItem
from popcal.placement import place_week, resolve_dates, resolve_span

MAY = 4
YEAR = 2025


def _item(name: str, start: str, end: str = "", **kwargs) -> TimeBoundedItem:
    return TimeBoundedItem(id=name.lower(), name=name, start=start, end=end, **kwargs)


def _bar(placement, item_id):
    for bar in placement.bars:
        if bar.item.id == item_id:
            return bar
    return None


def _sample_items() -> list:
    """
    A busy month: overlapping multi-day bars and stacks of single days.
    """
    items = [
        _item("Fair", "2025-04-28", "2025-05-06"),
        _item("Market", "2025-05-02 10:00", "2025-05-14 18:00"),
        _item("Expo", "2025-05-09", "2025-05-20"),
        _item("Fest", "2025-05-13", "2025-05-15"),
        _item("Pride", "2025-05-24", "2025-06-03"),
        _item("Late", "2025-05-30", "2025-06-02"),
    ]
    for day in (1, 3, 5, 6, 7, 12, 13, 13, 13, 14, 14, 14, 14, 15, 22, 27, 31, 31, 31):
        items.append(_item(f"Day{len(items)}", f"2025-05-{day:02d} 12:00", f"2025-05-{day:02d} 13:00"))
    return items


class TestResolve(unittest.TestCase):
    def test_no_start_is_skipped(self) -> None:
        self.assertIsNone(resolve_dates(_item("X", "", "2025-05-11")))
        self.assertIsNone(resolve_span(_item("X", "soon"), MAY, YEAR))

    def test_end_before_start_collapses(self) -> None:
        dates = resolve_dates(_item("X", "2025-05-11", "2025-05-01"))
        self.assertEqual(dates.start, dates.end)
        self.assertTrue(dates.end_coerced)

    def test_ongoing_end_covers_start_day(self) -> None:
        span = resolve_span(_item("X", "2025-05-11", "Ongoing"), MAY, YEAR)
        self.assertEqual(span.start_cell, 14)
        self.assertEqual(span.end_cell, 14)

    def test_partial_start_is_not_placed(self) -> None:
        self.assertIsNone(resolve_span(_item("X", "May 2025"), MAY, YEAR))
        self.assertIsNone(resolve_span(_item("X", "10:00", "17:00"), MAY, YEAR))

    def test_outside_month_is_dropped(self) -> None:
        self.assertIsNone(resolve_span(_item("X", "2025-04-01", "2025-04-30"), MAY, YEAR))
        self.assertIsNone(resolve_span(_item("X", "2025-06-01"), MAY, YEAR))

    def test_clamped_to_month(self) -> None:
        span = resolve_span(_item("X", "2025-04-20", "2025-06-10"), MAY, YEAR)
        self.assertEqual(span.start_cell, 4)
        self.assertEqual(span.end_cell, 34)


class TestSingleItems(unittest.TestCase):
    def test_single_day_bar(self) -> None:
        placement = place_week(2, [_item("Pizza", "2025-05-11 10:00:00", "2025-05-11 17:00:00")], MAY, YEAR, 4)
        self.assertEqual(len(placement.bars), 1)
        bar = placement.bars[0]
        self.assertEqual((bar.start_column, bar.end_column, bar.slot_index), (0, 0, 0))
        self.assertFalse(bar.is_multi_day)
        self.assertTrue(bar.show_label)
        self.assertTrue(bar.visible)
        self.assertEqual(bar.corner_style, CornerStyle.BOTH)
        self.assertEqual(placement.column_counts, (1, 0, 0, 0, 0, 0, 0))

    def test_item_in_other_week_is_not_placed(self) -> None:
        placement = place_week(0, [_item("Pizza", "2025-05-11")], MAY, YEAR, 4)
        self.assertEqual(placement.bars, ())

    def test_multi_day_segments_across_weeks(self) -> None:
        # May 9 (Fri) .. May 20 (Tue): cells 12..23
        item = _item("Expo", "2025-05-09", "2025-05-20")
        first = _bar(place_week(1, [item], MAY, YEAR, 4), "expo")
        middle = _bar(place_week(2, [item], MAY, YEAR, 4), "expo")
        last = _bar(place_week(3, [item], MAY, YEAR, 4), "expo")

        self.assertEqual((first.start_column, first.end_column), (5, 6))
        self.assertEqual((middle.start_column, middle.end_column), (0, 6))
        self.assertEqual((last.start_column, last.end_column), (0, 2))

        self.assertEqual(first.corner_style, CornerStyle.LEFT)
        self.assertEqual(middle.corner_style, CornerStyle.SQUARE)
        self.assertEqual(last.corner_style, CornerStyle.RIGHT)

        self.assertTrue(all(b.is_multi_day for b in (first, middle, last)))
        # one label per segment, at its left edge
        self.assertTrue(all(b.show_label for b in (first, middle, last)))

    def test_span_across_month_end_is_clamped(self) -> None:
        item = _item("Late", "2025-05-30", "2025-06-02")
        weeks = [place_week(w, [item], MAY, YEAR, 4) for w in range(6)]
        touched = [p.week for p in weeks if p.bars]
        self.assertEqual(touched, [4])
        bar = weeks[4].bars[0]
        self.assertEqual((bar.start_column, bar.end_column), (5, 6))
        self.assertEqual(bar.corner_style, CornerStyle.BOTH)

        june = place_week(0, [item], 5, YEAR, 4)
        self.assertEqual((june.bars[0].start_column, june.bars[0].end_column), (0, 1))


class TestOrderingAndSlots(unittest.TestCase):
    def test_multi_day_sorted_first(self) -> None:
        items = [
            _item("Single", "2025-05-12"),
            _item("Multi", "2025-05-11", "2025-05-13"),
        ]
        placement = place_week(2, items, MAY, YEAR, 4)
        self.assertEqual([b.item.id for b in placement.bars], ["multi", "single"])
        self.assertEqual(_bar(placement, "multi").slot_index, 0)
        self.assertEqual(_bar(placement, "single").slot_index, 1)

    def test_non_overlapping_bars_share_a_slot(self) -> None:
        items = [
            _item("A", "2025-05-11", "2025-05-12"),
            _item("B", "2025-05-14", "2025-05-16"),
        ]
        placement = place_week(2, items, MAY, YEAR, 4)
        self.assertEqual(_bar(placement, "a").slot_index, 0)
        self.assertEqual(_bar(placement, "b").slot_index, 0)

    def test_stacked_day_hides_beyond_cap(self) -> None:
        items = [_item(f"I{n}", "2025-05-14 12:00") for n in range(6)]
        placement = place_week(2, items, MAY, YEAR, 4)
        self.assertEqual([b.slot_index for b in placement.bars], [0, 1, 2, 3, 4, 5])
        self.assertEqual([b.visible for b in placement.bars], [True] * 4 + [False] * 2)
        self.assertEqual(placement.column_counts[3], 6)
        self.assertEqual(len(placement.hidden_bars), 2)

    def test_all_or_nothing_visibility(self) -> None:
        items = [
            _item("C", "2025-05-11", "2025-05-13"),  # cols 0-2
            _item("E", "2025-05-13", "2025-05-15"),  # cols 2-4
            _item("F", "2025-05-12", "2025-05-16"),  # cols 1-5
        ]
        placement = place_week(2, items, MAY, YEAR, 2)
        self.assertEqual([b.item.id for b in placement.bars], ["c", "f", "e"])
        self.assertTrue(_bar(placement, "c").visible)
        self.assertTrue(_bar(placement, "f").visible)
        # third on Tuesday, although only second on Wednesday and Thursday
        e = _bar(placement, "e")
        self.assertEqual(e.slot_index, 2)
        self.assertFalse(e.visible)
        self.assertEqual(placement.column_counts, (1, 2, 3, 2, 2, 1, 0))

    def test_slot_ceiling(self) -> None:
        items = [_item(f"I{n}", "2025-05-14") for n in range(22)]
        placement = place_week(2, items, MAY, YEAR, 100)
        self.assertEqual(placement.bars[19].slot_index, 19)
        self.assertIsNone(placement.bars[20].slot_index)
        self.assertIsNone(placement.bars[21].slot_index)
        self.assertFalse(placement.bars[21].visible)
        self.assertEqual(placement.column_counts[3], 22)

    def test_bad_items_do_not_raise(self) -> None:
        items = [
            _item("NoDates", ""),
            _item("Garbage", "soon", "later"),
            _item("Backwards", "2025-05-14", "2025-05-01"),
        ]
        placement = place_week(2, items, MAY, YEAR, 4)
        self.assertEqual([b.item.id for b in placement.bars], ["backwards"])
        self.assertFalse(placement.bars[0].is_multi_day)

    def test_invalid_arguments(self) -> None:
        with self.assertRaises(ValueError):
            place_week(6, [], MAY, YEAR, 4)
        with self.assertRaises(ValueError):
            place_week(0, [], MAY, YEAR, 0)
        with self.assertRaises(ValueError):
            place_week(0, [], 12, YEAR, 4)


class TestPlacementProperties(unittest.TestCase):
    def test_no_two_bars_share_a_cell(self) -> None:
        items = _sample_items()
        for week in range(6):
            placement = place_week(week, items, MAY, YEAR, 4)
            taken = set()
            for bar in placement.bars:
                self.assertIsNotNone(bar.slot_index)
                for col in bar.columns:
                    key = (col, bar.slot_index)
                    self.assertNotIn(key, taken)
                    taken.add(key)

    def test_multi_day_bars_come_first(self) -> None:
        items = _sample_items()
        for week in range(6):
            flags = [b.is_multi_day for b in place_week(week, items, MAY, YEAR, 4).bars]
            self.assertEqual(flags, sorted(flags, reverse=True))

    def test_lower_cap_never_reveals_bars(self) -> None:
        items = _sample_items()
        for week in range(6):
            visible = {
                cap: {(b.item.id, b.start_column) for b in place_week(week, items, MAY, YEAR, cap).visible_bars}
                for cap in (1, 2, 3, 4, 6)
            }
            for low, high in ((1, 2), (2, 3), (3, 4), (4, 6)):
                self.assertTrue(visible[low] <= visible[high])

    def test_visible_iff_within_cap_on_every_day(self) -> None:
        items = _sample_items()
        for week in range(6):
            placement = place_week(week, items, MAY, YEAR, 2)
            seen = [0] * 7
            for bar in placement.bars:
                positions = []
                for col in bar.columns:
                    positions.append(seen[col])
                    seen[col] += 1
                self.assertEqual(bar.visible, all(p < 2 for p in positions))

    def test_multi_day_label_at_first_cell_and_week_starts_only(self) -> None:
        items = _sample_items()
        for week in range(6):
            for bar in place_week(week, items, MAY, YEAR, 4).bars:
                if not bar.is_multi_day or not bar.show_label:
                    continue
                span = resolve_span(bar.item, MAY, YEAR)
                starts_here = week * 7 + bar.start_column == span.start_cell
                self.assertTrue(starts_here or bar.start_column == 0)


if __name__ == "__main__":
    unittest.main()
