"""
Time Grid - Builds the weekly calendar layout from a user's class list.

Row labels span the busiest display window (07:00-18:00 unless a class starts
earlier or ends later), one row per hour. A class lands in the cell whose row
time equals its start time exactly; there is no tolerance window and no
overlap detection. Classes that fit no cell are not shown.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from classalign.models.schedule_types import WEEKDAYS, ClockTime

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_START = ClockTime(7 * 60)
DEFAULT_WINDOW_END = ClockTime(18 * 60)
SLOT_MINUTES = 60

# Only zero-padded 24-hour components may widen the window.
_STRICT_HHMM = re.compile(r"^\d{2}:\d{2}$")


def _field(record: Any, name: str) -> Optional[str]:
    """Read `name` from a ClassEntry-like object or a plain dict row."""
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _start_text(record: Any) -> str:
    return (_field(record, "time") or "").split(" - ")[0]


def display_window(records: Iterable[Any]) -> Tuple[ClockTime, ClockTime]:
    """
    Compute the (start, end) of the calendar window.

    The start part and the end part of each `time` are checked on their own:
    a strict 'HH:MM' start can only lower the start bound and a strict 'HH:MM'
    end can only raise the end bound.
    """
    lower = DEFAULT_WINDOW_START.minutes
    upper = DEFAULT_WINDOW_END.minutes

    for record in records:
        raw = _field(record, "time")
        if not raw:
            continue
        parts = [p.strip() for p in raw.split("-")]
        start = parts[0]
        end = parts[1] if len(parts) > 1 else ""

        if start and _STRICT_HHMM.match(start):
            parsed = ClockTime.parse(start)
            if parsed is not None:
                lower = min(lower, parsed.minutes)
        if end and _STRICT_HHMM.match(end):
            parsed = ClockTime.parse(end)
            if parsed is not None:
                upper = max(upper, parsed.minutes)

    return ClockTime(lower), ClockTime(upper)


def build_time_slots(records: Iterable[Any]) -> List[str]:
    """Row labels ('7:00 AM', '8:00 AM', ...) from window start to end, inclusive."""
    start, end = display_window(records)
    return [ClockTime(m).label() for m in range(start.minutes, end.minutes + 1, SLOT_MINUTES)]


def find_class_for_slot(records: Sequence[Any], day: str, time_label: str) -> Optional[Any]:
    """
    Return the first record on `day` whose start time equals `time_label`.
    Both sides go through ClockTime.parse, so '09:00' matches '9:00 AM'.
    """
    slot_time = ClockTime.parse(time_label)
    if slot_time is None:
        return None
    for record in records:
        if _field(record, "day") != day:
            continue
        if ClockTime.parse(_start_text(record)) == slot_time:
            return record
    return None


@dataclass
class TimeGrid:
    """The rendered weekly grid plus the classes that could not be shown."""
    days: List[str]
    time_slots: List[str]
    cells: Dict[Tuple[str, str], Any] = field(default_factory=dict)
    unplaced: List[Any] = field(default_factory=list)  # no matching row/day
    hidden: List[Any] = field(default_factory=list)    # shadowed by an earlier class in the same cell

    def lookup(self, day: str, time_label: str) -> Optional[Any]:
        return self.cells.get((day, time_label))

    def rows(self) -> List[Tuple[str, List[Optional[Any]]]]:
        """(label, [record-or-None per day]) in display order; used by the HTML renderer."""
        return [
            (label, [self.lookup(day, label) for day in self.days])
            for label in self.time_slots
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "days": self.days,
            "timeSlots": self.time_slots,
            "cells": [
                {"day": day, "time": label, "class": _serialize(record)}
                for (day, label), record in self.cells.items()
            ],
            "unplaced": [_serialize(r) for r in self.unplaced],
            "hidden": [_serialize(r) for r in self.hidden],
        }


def _serialize(record: Any) -> Dict[str, Any]:
    if hasattr(record, "to_dict"):
        return record.to_dict()
    return dict(record)


def build_time_grid(records: Sequence[Any], days: Optional[List[str]] = None) -> TimeGrid:
    """
    Lay out `records` on the weekly grid.

    Cell assignment follows list order, so the result agrees with
    find_class_for_slot: the first class at a (day, start) wins.
    """
    grid_days = list(days or WEEKDAYS)
    slots = build_time_slots(records)
    slot_by_minutes = {ClockTime.parse(label).minutes: label for label in slots}
    grid = TimeGrid(days=grid_days, time_slots=slots)

    for record in records:
        day = _field(record, "day")
        start = ClockTime.parse(_start_text(record))
        label = slot_by_minutes.get(start.minutes) if start is not None else None

        if day not in grid_days or label is None:
            grid.unplaced.append(record)
            logger.debug(f"Class not placed on grid: day={day!r} time={_field(record, 'time')!r}")
            continue

        key = (day, label)
        if key in grid.cells:
            grid.hidden.append(record)
            logger.debug(f"Class hidden behind another class at {day} {label}")
            continue
        grid.cells[key] = record

    return grid
