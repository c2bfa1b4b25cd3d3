"""
Unit tests for the weekly time grid.
Covers window widening, row generation and the (day, row) lookup, including
the silent cases where a class never appears on the grid.
"""
import pytest

from classalign.models.schedule_types import ClassEntry, ClockTime
from classalign.services.time_grid import (
    DEFAULT_WINDOW_END,
    DEFAULT_WINDOW_START,
    build_time_grid,
    build_time_slots,
    display_window,
    find_class_for_slot,
)


def _entry(id, day, time, subject="Math"):
    return ClassEntry(id=id, user_id="user-1", subject=subject, day=day, time=time)


def _minutes(label):
    return ClockTime.parse(label).minutes


class TestDisplayWindow:
    """Tests for the calendar window bounds."""

    def test_empty_list_uses_default_window(self):
        assert display_window([]) == (DEFAULT_WINDOW_START, DEFAULT_WINDOW_END)
        assert DEFAULT_WINDOW_START.minutes == 420
        assert DEFAULT_WINDOW_END.minutes == 1080

    def test_early_start_and_late_end_widen_window(self):
        classes = [
            _entry("1", "Monday", "06:00 - 07:00"),
            _entry("2", "Tuesday", "17:00 - 20:00"),
        ]
        start, end = display_window(classes)
        assert start.minutes == 360
        assert end.minutes == 1200

    def test_classes_inside_default_window_do_not_narrow_it(self):
        start, end = display_window([_entry("1", "Monday", "09:00 - 10:00")])
        assert (start.minutes, end.minutes) == (420, 1080)

    def test_single_digit_hour_start_does_not_widen(self):
        start, _ = display_window([_entry("1", "Monday", "6:00 - 07:00")])
        assert start.minutes == 420

    def test_end_part_checked_independently_of_start(self):
        # Start fails the strict pattern but the end still widens the window.
        _, end = display_window([_entry("1", "Monday", "9:00 - 19:00")])
        assert end.minutes == 1140

    def test_malformed_times_are_ignored(self):
        classes = [
            _entry("1", "Monday", "early morning"),
            _entry("2", "Monday", ""),
            _entry("3", "Monday", "25:00 - 26:00"),
        ]
        assert display_window(classes) == (DEFAULT_WINDOW_START, DEFAULT_WINDOW_END)

    def test_accepts_plain_dict_records(self):
        start, _ = display_window([{"day": "Monday", "time": "05:00 - 06:00"}])
        assert start.minutes == 300


class TestTimeSlots:
    """Tests for row label generation."""

    def test_default_rows(self):
        slots = build_time_slots([])
        assert slots[0] == "7:00 AM"
        assert slots[-1] == "6:00 PM"
        assert len(slots) == 12

    @pytest.mark.parametrize("times", [
        ["09:00 - 10:00"],
        ["06:00 - 08:00", "10:00 - 21:00"],
        ["05:00 - 06:00", "12:00 - 13:00", "08:00 - 09:00"],
    ])
    def test_first_and_last_rows_match_window(self, times):
        classes = [_entry(str(i), "Monday", t) for i, t in enumerate(times)]
        starts = [_minutes(t.split(" - ")[0]) for t in times]
        ends = [_minutes(t.split(" - ")[1]) for t in times]

        slots = build_time_slots(classes)

        assert _minutes(slots[0]) == min(min(starts), 420)
        assert _minutes(slots[-1]) == max(max(ends), 1080)

    def test_rows_are_hourly_without_gaps_or_duplicates(self):
        slots = build_time_slots([_entry("1", "Friday", "05:00 - 22:00")])
        minutes = [_minutes(label) for label in slots]
        assert len(set(minutes)) == len(minutes)
        assert all(b - a == 60 for a, b in zip(minutes, minutes[1:]))

    def test_half_hour_start_offsets_every_row(self):
        slots = build_time_slots([_entry("1", "Monday", "06:30 - 07:30")])
        assert slots[0] == "6:30 AM"
        assert slots[1] == "7:30 AM"
        # 6:00 PM is not reachable from a 6:30 AM start in whole hours.
        assert slots[-1] == "5:30 PM"

    def test_label_round_trip_at_one_pm(self):
        label = ClockTime(780).label()
        assert label == "1:00 PM"
        assert ClockTime.parse(label).minutes == 780


class TestFindClassForSlot:
    """Tests for the (day, row) lookup."""

    def test_matches_day_and_start_time(self):
        math = _entry("1", "Monday", "09:00 - 10:30")
        assert find_class_for_slot([math], "Monday", "9:00 AM") is math

    def test_other_day_does_not_match(self):
        math = _entry("1", "Monday", "09:00 - 10:30")
        assert find_class_for_slot([math], "Tuesday", "9:00 AM") is None

    def test_no_tolerance_window(self):
        math = _entry("1", "Monday", "09:15 - 10:30")
        assert find_class_for_slot([math], "Monday", "9:00 AM") is None

    def test_single_digit_hour_still_matches_row(self):
        math = _entry("1", "Monday", "9:00 - 10:30")
        assert find_class_for_slot([math], "Monday", "9:00 AM") is math

    def test_first_of_duplicates_wins(self):
        first = _entry("1", "Monday", "09:00 - 10:00", subject="Math")
        second = _entry("2", "Monday", "09:00 - 11:00", subject="Physics")
        assert find_class_for_slot([first, second], "Monday", "9:00 AM") is first

    def test_unparseable_label_returns_none(self):
        math = _entry("1", "Monday", "09:00 - 10:30")
        assert find_class_for_slot([math], "Monday", "not a time") is None


class TestBuildTimeGrid:
    """Tests for the assembled grid."""

    def test_places_classes_in_cells(self):
        math = _entry("1", "Monday", "09:00 - 10:30")
        art = _entry("2", "Wednesday", "13:00 - 14:00", subject="Art")

        grid = build_time_grid([math, art])

        assert grid.lookup("Monday", "9:00 AM") is math
        assert grid.lookup("Wednesday", "1:00 PM") is art
        assert grid.lookup("Tuesday", "9:00 AM") is None
        assert grid.unplaced == []
        assert grid.hidden == []

    def test_grid_agrees_with_slot_lookup(self):
        classes = [
            _entry("1", "Monday", "09:00 - 10:00"),
            _entry("2", "Monday", "9:00 AM - 10:00 AM"),
            _entry("3", "Thursday", "16:00 - 17:00"),
            _entry("4", "Friday", "07:00"),
        ]
        grid = build_time_grid(classes)
        for day in grid.days:
            for label in grid.time_slots:
                assert grid.lookup(day, label) is find_class_for_slot(classes, day, label)

    def test_duplicate_cell_reports_hidden_class(self):
        first = _entry("1", "Monday", "09:00 - 10:00")
        second = _entry("2", "Monday", "09:00 - 11:00")

        grid = build_time_grid([first, second])

        assert grid.lookup("Monday", "9:00 AM") is first
        assert grid.hidden == [second]

    def test_single_digit_start_outside_window_is_unplaced(self):
        early = _entry("1", "Monday", "6:00 - 07:00")

        grid = build_time_grid([early])

        assert grid.time_slots[0] == "7:00 AM"
        assert grid.unplaced == [early]

    def test_malformed_time_and_weekend_day_are_unplaced(self):
        vague = _entry("1", "Monday", "sometime")
        weekend = _entry("2", "Saturday", "09:00 - 10:00")

        grid = build_time_grid([vague, weekend])

        assert grid.cells == {}
        assert grid.unplaced == [vague, weekend]

    def test_rows_list_one_entry_per_day(self):
        math = _entry("1", "Tuesday", "08:00 - 09:00")
        grid = build_time_grid([math])

        rows = dict(grid.rows())
        assert rows["8:00 AM"] == [None, math, None, None, None]

    def test_to_dict_uses_api_keys(self):
        math = _entry("1", "Monday", "09:00 - 10:30")
        data = build_time_grid([math]).to_dict()

        assert data["days"][0] == "Monday"
        assert data["timeSlots"][0] == "7:00 AM"
        assert data["cells"] == [{"day": "Monday", "time": "9:00 AM", "class": math.to_dict()}]
        assert data["unplaced"] == []
        assert data["hidden"] == []
