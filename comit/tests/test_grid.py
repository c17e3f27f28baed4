"""Tests for the time grid model."""

from datetime import datetime, timedelta, timezone

import pytest

from comit.errors import ValidationError
from comit.scheduling import EventWindow, TimeCell, TimeGrid, dates_of, time_slots_of_day, valid_cells


class TestCellKeys:
    def test_key_is_unpadded(self):
        assert TimeCell("2025-01-06", 9, 0).key == "2025-01-06-9-0"
        assert TimeCell("2025-01-06", 13, 45).key == "2025-01-06-13-45"

    def test_from_key_round_trip(self):
        cell = TimeCell.from_key("2025-01-06-9-15")
        assert cell == TimeCell("2025-01-06", 9, 15)
        assert cell.key == "2025-01-06-9-15"

    @pytest.mark.parametrize("bad", ["2025-01-06-9", "nope", "2025-13-01-9-0", "2025-01-06-9-10", "2025-01-06-24-0"])
    def test_from_key_rejects_malformed(self, bad):
        with pytest.raises(ValidationError):
            TimeCell.from_key(bad)

    def test_shift_rolls_minutes_into_hours(self):
        assert TimeCell("2025-01-06", 9, 45).shifted(1) == TimeCell("2025-01-06", 10, 0)
        assert TimeCell("2025-01-06", 9, 30).shifted(6) == TimeCell("2025-01-06", 11, 0)


class TestEventWindow:
    def test_cells_cover_half_open_range(self):
        cells = [c.key for c in EventWindow("2025-01-06", 9, 10).cells()]
        assert cells == ["2025-01-06-9-0", "2025-01-06-9-15", "2025-01-06-9-30", "2025-01-06-9-45"]

    @pytest.mark.parametrize("start,end", [(10, 10), (17, 9), (-1, 5), (0, 25)])
    def test_rejects_bad_hours(self, start, end):
        with pytest.raises(ValidationError):
            EventWindow("2025-01-06", start, end)

    def test_rejects_bad_date(self):
        with pytest.raises(ValidationError):
            EventWindow("06/01/2025", 9, 17)

    def test_from_timestamps_uses_local_wall_clock(self):
        local = datetime(2025, 1, 6, 0, 0).astimezone()
        start = local.astimezone(timezone.utc)
        end = (local + timedelta(hours=3)).astimezone(timezone.utc)
        window = EventWindow.from_timestamps(start, end)
        assert window == EventWindow("2025-01-06", 0, 3)

    def test_from_timestamps_end_at_midnight(self):
        window = EventWindow.from_timestamps(datetime(2025, 1, 6, 20), datetime(2025, 1, 7, 0))
        assert window == EventWindow("2025-01-06", 20, 24)


class TestGrid:
    def test_valid_cells_union(self):
        windows = [EventWindow("2025-01-06", 9, 10), EventWindow("2025-01-07", 9, 9 + 1)]
        cells = valid_cells(windows)
        assert len(cells) == 8
        assert "2025-01-07-9-45" in cells
        assert "2025-01-06-10-0" not in cells

    def test_dates_sorted_and_unique(self):
        windows = [
            EventWindow("2025-01-08", 9, 10),
            EventWindow("2025-01-06", 9, 10),
            EventWindow("2025-01-06", 13, 14),
        ]
        assert dates_of(windows) == ["2025-01-06", "2025-01-08"]

    def test_time_slots_span_union_of_ranges(self):
        windows = [EventWindow("2025-01-06", 9, 10), EventWindow("2025-01-07", 11, 12)]
        slots = time_slots_of_day(windows)
        assert slots[0] == (9, 0)
        assert slots[-1] == (11, 45)
        assert len(slots) == 12
        grid = TimeGrid.from_windows(windows)
        # 10:00 is laid out for both days but valid on neither
        assert not grid.is_valid("2025-01-06-10-0")
        assert not grid.is_valid("2025-01-07-10-0")

    def test_empty(self):
        grid = TimeGrid.from_windows([])
        assert grid.dates == ()
        assert grid.slots == ()
        assert grid.valid == frozenset()

    def test_rows_layout(self):
        grid = TimeGrid.from_windows([EventWindow("2025-01-06", 9, 10), EventWindow("2025-01-07", 9, 10)])
        rows = list(grid.rows())
        assert len(rows) == 4
        assert rows[0] == ["2025-01-06-9-0", "2025-01-07-9-0"]
