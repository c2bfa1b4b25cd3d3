"""
Schedule Stats - Weekly numbers for the dashboard cards.
Everything is computed from the user's actual class list.
"""
from collections import Counter
from datetime import date
from typing import Dict, List, Optional

from classalign.models.schedule_types import WEEKDAYS, ClassEntry, ScheduleStats
from classalign.services.time_grid import display_window


def find_conflicts(classes: List[ClassEntry]) -> List[Dict[str, str]]:
    """
    Pairs of classes on the same day whose time ranges overlap.
    Classes without a readable start and end are ignored.
    """
    conflicts = []
    ranged = [(cls, cls.time_range) for cls in classes]
    ranged = [(cls, rng) for cls, rng in ranged if rng is not None and rng.duration_minutes]

    for i, (cls1, rng1) in enumerate(ranged):
        for cls2, rng2 in ranged[i + 1:]:
            if cls1.day != cls2.day or not rng1.overlaps(rng2):
                continue
            start = max(rng1.start, rng2.start)
            end = min(rng1.end, rng2.end)
            conflicts.append({
                "classId1": cls1.id,
                "classId2": cls2.id,
                "day": cls1.day,
                "timeRange": f"{start.label()} - {end.label()}",
                "message": f"{cls1.subject} conflicts with {cls2.subject} on {cls1.day}",
            })

    return conflicts


def todays_classes(classes: List[ClassEntry], today: Optional[date] = None) -> List[ClassEntry]:
    """Classes scheduled on today's weekday (none at the weekend)."""
    weekday = (today or date.today()).strftime("%A")
    return [cls for cls in classes if cls.day == weekday]


def _busiest_day(classes: List[ClassEntry]) -> Optional[str]:
    counts = Counter(cls.day for cls in classes if cls.day in WEEKDAYS)
    if not counts:
        return None
    # Ties go to the earlier weekday.
    return max(WEEKDAYS, key=lambda day: (counts.get(day, 0), -WEEKDAYS.index(day)))


def compute_schedule_stats(classes: List[ClassEntry], today: Optional[date] = None) -> ScheduleStats:
    scheduled_minutes = 0
    for cls in classes:
        rng = cls.time_range
        if rng is not None:
            scheduled_minutes += rng.duration_minutes

    start, end = display_window(classes)
    window_minutes = (end.minutes - start.minutes) * len(WEEKDAYS)
    free_minutes = max(window_minutes - scheduled_minutes, 0)

    return ScheduleStats(
        total_classes=len(classes),
        hours_scheduled=round(scheduled_minutes / 60, 1),
        free_hours=round(free_minutes / 60, 1),
        classes_per_day=round(len(classes) / len(WEEKDAYS), 1),
        busiest_day=_busiest_day(classes),
        conflicts=find_conflicts(classes),
        todays_classes=todays_classes(classes, today),
    )
