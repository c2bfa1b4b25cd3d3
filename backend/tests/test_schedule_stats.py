from datetime import date

from classalign.models.schedule_types import ClassEntry
from classalign.services.schedule_stats import compute_schedule_stats, find_conflicts, todays_classes


def _entry(id, subject, day, time):
    return ClassEntry(id=id, user_id="user-1", subject=subject, day=day, time=time)


class TestFindConflicts:

    def test_same_day_overlap(self):
        classes = [
            _entry("1", "Math", "Monday", "09:00 - 10:30"),
            _entry("2", "Physics", "Monday", "10:00 - 11:00"),
        ]
        conflicts = find_conflicts(classes)

        assert conflicts == [{
            "classId1": "1",
            "classId2": "2",
            "day": "Monday",
            "timeRange": "10:00 AM - 10:30 AM",
            "message": "Math conflicts with Physics on Monday",
        }]

    def test_different_days_never_conflict(self):
        classes = [
            _entry("1", "Math", "Monday", "09:00 - 10:30"),
            _entry("2", "Physics", "Tuesday", "09:00 - 10:30"),
        ]
        assert find_conflicts(classes) == []

    def test_adjacent_and_open_ended_classes_ignored(self):
        classes = [
            _entry("1", "Math", "Monday", "09:00 - 10:00"),
            _entry("2", "Physics", "Monday", "10:00 - 11:00"),
            _entry("3", "Art", "Monday", "09:30"),
            _entry("4", "Music", "Monday", "whenever"),
        ]
        assert find_conflicts(classes) == []


def test_todays_classes_by_weekday():
    classes = [
        _entry("1", "Math", "Monday", "09:00 - 10:00"),
        _entry("2", "Art", "Wednesday", "09:00 - 10:00"),
    ]
    # 2024-01-03 was a Wednesday, 2024-01-06 a Saturday.
    assert [c.id for c in todays_classes(classes, date(2024, 1, 3))] == ["2"]
    assert todays_classes(classes, date(2024, 1, 6)) == []


def test_compute_schedule_stats():
    classes = [
        _entry("1", "Math", "Monday", "09:00 - 10:30"),
        _entry("2", "Physics", "Monday", "10:00 - 11:00"),
        _entry("3", "Art", "Tuesday", "13:00 - 14:30"),
        _entry("4", "Seminar", "Friday", "sometime"),
    ]

    stats = compute_schedule_stats(classes, today=date(2024, 1, 1))

    assert stats.total_classes == 4
    assert stats.hours_scheduled == 4.0
    # Default 07:00-18:00 window over five days is 55 hours.
    assert stats.free_hours == 51.0
    assert stats.classes_per_day == 0.8
    assert stats.busiest_day == "Monday"
    assert len(stats.conflicts) == 1
    assert [c.id for c in stats.todays_classes] == ["1", "2"]


def test_busiest_day_tie_goes_to_earlier_day():
    classes = [
        _entry("1", "Art", "Thursday", "09:00 - 10:00"),
        _entry("2", "Math", "Tuesday", "09:00 - 10:00"),
    ]
    assert compute_schedule_stats(classes).busiest_day == "Tuesday"


def test_empty_schedule_stats():
    stats = compute_schedule_stats([], today=date(2024, 1, 1))
    assert stats.total_classes == 0
    assert stats.busiest_day is None
    assert stats.free_hours == 55.0
    assert stats.conflicts == []
