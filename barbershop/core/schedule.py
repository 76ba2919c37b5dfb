# barbershop/core/schedule.py

import re
from datetime import date
from typing import Dict, Mapping, Optional

from pydantic import BaseModel

from barbershop.errors import InvalidScheduleFormat

# Index matches the calendar day-of-week numbering where Sunday = 0
DAY_NAMES = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")

_HHMM = re.compile(r"^(\d{2}):(\d{2})(?::(\d{2}))?$")


class DaySchedule(BaseModel):
    enabled: bool = False
    start: str = "09:00"
    end: str = "19:00"


WorkSchedule = Dict[str, DaySchedule]


DEFAULT_WORK_SCHEDULE = {
    "monday": {"enabled": True, "start": "09:00", "end": "19:00"},
    "tuesday": {"enabled": True, "start": "09:00", "end": "19:00"},
    "wednesday": {"enabled": True, "start": "09:00", "end": "19:00"},
    "thursday": {"enabled": True, "start": "09:00", "end": "19:00"},
    "friday": {"enabled": True, "start": "09:00", "end": "19:00"},
    "saturday": {"enabled": True, "start": "09:00", "end": "17:00"},
    "sunday": {"enabled": False, "start": "09:00", "end": "14:00"},
}


def parse_hhmm(value: str) -> int:
    """Return minutes since midnight for an ``HH:MM`` (or ``HH:MM:SS``) string.

    Seconds are truncated. ``24:00`` is accepted so a window can close at midnight.
    """
    if not isinstance(value, str):
        raise InvalidScheduleFormat(f"Expected an HH:MM string, got {value!r}")
    match = _HHMM.match(value.strip())
    if match is None:
        raise InvalidScheduleFormat(f"Invalid time {value!r}, expected HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if minutes > 59 or hours > 24 or (hours == 24 and minutes != 0):
        raise InvalidScheduleFormat(f"Invalid time {value!r}, expected HH:MM")
    return hours * 60 + minutes


def format_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def truncate_hhmm(value: str) -> str:
    """Normalise a stored time (possibly with seconds) to ``HH:MM``."""
    return format_hhmm(parse_hhmm(value))


def day_name_for(target: date) -> str:
    # date.weekday() is Monday = 0; shift so Sunday = 0
    return DAY_NAMES[(target.weekday() + 1) % 7]


def coerce_work_schedule(raw: Optional[Mapping]) -> WorkSchedule:
    """Build a WorkSchedule from stored JSON, ignoring unknown day keys."""
    schedule = {}
    for name, value in (raw or {}).items():
        if name not in DAY_NAMES:
            continue
        schedule[name] = value if isinstance(value, DaySchedule) else DaySchedule(**value)
    return schedule


def day_schedule_for(schedule: Optional[Mapping], target: date) -> Optional[DaySchedule]:
    """Return the enabled DaySchedule for ``target``, or None when the barber is off."""
    day = coerce_work_schedule(schedule).get(day_name_for(target))
    if day is None or not day.enabled:
        return None
    return day


def validate_work_schedule(schedule: Mapping) -> WorkSchedule:
    unknown = [name for name in schedule if name not in DAY_NAMES]
    if unknown:
        raise InvalidScheduleFormat(f"Unknown day names: {', '.join(sorted(unknown))}")

    validated = coerce_work_schedule(schedule)
    for name, day in validated.items():
        if not day.enabled:
            continue
        if parse_hhmm(day.start) >= parse_hhmm(day.end):
            raise InvalidScheduleFormat(f"{name}: start must be before end")
    return validated
