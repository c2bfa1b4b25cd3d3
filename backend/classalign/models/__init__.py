"""
Models package for the ClassAlign backend.
Contains data models and type definitions.
"""
from classalign.models.schedule_types import (
    ClassEntry,
    ClockTime,
    Intent,
    IntentAction,
    ScheduleStats,
    TimeRange,
    Weekday,
    WEEKDAYS,
    normalize_day,
)

__all__ = [
    "ClassEntry",
    "ClockTime",
    "Intent",
    "IntentAction",
    "ScheduleStats",
    "TimeRange",
    "Weekday",
    "WEEKDAYS",
    "normalize_day",
]
