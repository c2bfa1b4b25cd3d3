"""
Type definitions for the weekly class schedule.
Provides the class entry record, weekday set, the canonical clock-time value
and the structured intent produced from natural-language commands.
"""
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Weekday(str, Enum):
    """Days shown on the weekly calendar."""
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"


WEEKDAYS: List[str] = [day.value for day in Weekday]

_DAY_ALIASES = {
    "mon": Weekday.MONDAY,
    "tue": Weekday.TUESDAY,
    "tues": Weekday.TUESDAY,
    "wed": Weekday.WEDNESDAY,
    "thu": Weekday.THURSDAY,
    "thur": Weekday.THURSDAY,
    "thurs": Weekday.THURSDAY,
    "fri": Weekday.FRIDAY,
}


def normalize_day(raw: Optional[str]) -> Optional[str]:
    """
    Map user text like 'monday', 'Mon' or 'MONDAY' to the canonical weekday name.
    Returns None for anything outside Monday..Friday.
    """
    if not raw:
        return None
    key = raw.strip().lower().rstrip(".")
    for day in Weekday:
        if day.value.lower() == key:
            return day.value
    alias = _DAY_ALIASES.get(key)
    return alias.value if alias else None


class IntentAction(str, Enum):
    """Schedule mutations a natural-language command can request."""
    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"
    DELETE_ALL = "delete_all"


_TWELVE_HOUR_RE = re.compile(r"^(\d{1,2})(?::(\d{2}))?\s*([ap])\.?\s*m\.?$", re.IGNORECASE)
_TWENTY_FOUR_HOUR_RE = re.compile(r"^(\d{1,2})(?::(\d{2}))?$")


@dataclass(frozen=True, order=True)
class ClockTime:
    """A wall-clock time stored as minutes since midnight (e.g., 540 = 9:00 AM)."""
    minutes: int

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["ClockTime"]:
        """
        Parse either 24-hour ('09:00', '9:00', '14') or 12-hour text
        ('9:00 AM', '12:30 pm', '9am'). Returns None when the text is not a time.
        """
        if raw is None:
            return None
        text = raw.strip()
        if not text:
            return None

        match = _TWELVE_HOUR_RE.match(text)
        if match:
            hours = int(match.group(1))
            mins = int(match.group(2) or 0)
            if not 1 <= hours <= 12 or mins > 59:
                return None
            is_pm = match.group(3).lower() == "p"
            if is_pm and hours != 12:
                hours += 12
            if not is_pm and hours == 12:
                hours = 0
            return cls(hours * 60 + mins)

        match = _TWENTY_FOUR_HOUR_RE.match(text)
        if match:
            hours = int(match.group(1))
            mins = int(match.group(2) or 0)
            if hours > 23 or mins > 59:
                return None
            return cls(hours * 60 + mins)

        return None

    def label(self) -> str:
        """Format as a 12-hour label like '1:00 PM'."""
        hours = (self.minutes // 60) % 24
        mins = self.minutes % 60
        period = "AM" if hours < 12 else "PM"
        if hours == 0:
            hours = 12
        elif hours > 12:
            hours -= 12
        return f"{hours}:{mins:02d} {period}"

    def to_24h(self) -> str:
        return f"{(self.minutes // 60) % 24:02d}:{self.minutes % 60:02d}"


@dataclass(frozen=True)
class TimeRange:
    """A parsed class time: a start and, when given, an end."""
    start: ClockTime
    end: Optional[ClockTime] = None

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["TimeRange"]:
        """Parse 'HH:MM - HH:MM' or a single start time. Returns None if the start is unreadable."""
        if not raw:
            return None
        parts = [p.strip() for p in raw.split("-")]
        start = ClockTime.parse(parts[0])
        if start is None:
            return None
        end = ClockTime.parse(parts[1]) if len(parts) > 1 else None
        return cls(start=start, end=end)

    @property
    def duration_minutes(self) -> int:
        """Length of the range; zero when there is no usable end."""
        if self.end is None or self.end.minutes <= self.start.minutes:
            return 0
        return self.end.minutes - self.start.minutes

    def overlaps(self, other: "TimeRange") -> bool:
        """Ranges without a usable end occupy no time and never overlap."""
        if not self.duration_minutes or not other.duration_minutes:
            return False
        return self.start.minutes < other.end.minutes and self.end.minutes > other.start.minutes


@dataclass
class ClassEntry:
    """
    One scheduled class owned by a single user.
    Mirrors a row of the Supabase `classes` table.
    """
    id: str
    user_id: str
    subject: str
    day: str                          # "Monday" .. "Friday"
    time: str                         # "09:00 - 10:30" or "09:00", as entered
    room: Optional[str] = None
    professor: Optional[str] = None
    color: Optional[str] = None       # CSS color, e.g. "#a3a3a3"
    created_at: Optional[str] = None

    @property
    def start_text(self) -> str:
        """The displayed start time, i.e. the text before ' - '."""
        return (self.time or "").split(" - ")[0]

    @property
    def time_range(self) -> Optional[TimeRange]:
        return TimeRange.parse(self.time)

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> "ClassEntry":
        return cls(
            id=str(row.get("id", "")),
            user_id=str(row.get("user_id", "")),
            subject=row.get("subject") or "",
            day=row.get("day") or "",
            time=row.get("time") or "",
            room=row.get("room"),
            professor=row.get("professor"),
            color=row.get("color"),
            created_at=row.get("created_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "subject": self.subject,
            "day": self.day,
            "time": self.time,
            "room": self.room,
            "professor": self.professor,
            "color": self.color,
            "created_at": self.created_at,
        }


@dataclass
class Intent:
    """
    A structured schedule command extracted from free text.
    `action` is None when the text could not be understood; `error` says why.
    """
    action: Optional[IntentAction]
    subject: Optional[str] = None
    day: Optional[str] = None
    time: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.action is None

    @classmethod
    def failed(cls, reason: str) -> "Intent":
        return cls(action=None, error=reason)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.value if self.action else None,
            "subject": self.subject,
            "day": self.day,
            "time": self.time,
            "error": self.error,
        }


@dataclass
class ScheduleStats:
    """Weekly statistics shown on the dashboard."""
    total_classes: int
    hours_scheduled: float
    free_hours: float
    classes_per_day: float
    busiest_day: Optional[str]
    conflicts: List[Dict[str, str]] = field(default_factory=list)
    todays_classes: List[ClassEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalClasses": self.total_classes,
            "hoursScheduled": self.hours_scheduled,
            "freeHours": self.free_hours,
            "classesPerDay": self.classes_per_day,
            "busiestDay": self.busiest_day,
            "conflicts": self.conflicts,
            "todaysClasses": [c.to_dict() for c in self.todays_classes],
        }
