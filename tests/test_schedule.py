from datetime import date

import pytest

from barbershop.core.schedule import (
    DAY_NAMES, DEFAULT_WORK_SCHEDULE, DaySchedule,
    day_name_for, day_schedule_for, format_hhmm, parse_hhmm, truncate_hhmm, validate_work_schedule,
)
from barbershop.errors import InvalidScheduleFormat


def test_day_table_starts_on_sunday():
    assert DAY_NAMES[0] == "sunday"
    assert DAY_NAMES[6] == "saturday"


def test_day_name_for_calendar_dates():
    assert day_name_for(date(2024, 6, 2)) == "sunday"
    assert day_name_for(date(2024, 6, 3)) == "monday"
    assert day_name_for(date(2024, 6, 8)) == "saturday"


def test_parse_and_format_hhmm():
    assert parse_hhmm("09:30") == 570
    assert parse_hhmm("00:00") == 0
    assert parse_hhmm("24:00") == 1440
    assert format_hhmm(570) == "09:30"
    assert truncate_hhmm("10:15:00") == "10:15"


@pytest.mark.parametrize("value", ["9:30", "ab:cd", "25:00", "10:60", "24:30", "", None, "10:00 am"])
def test_parse_hhmm_rejects_malformed_values(value):
    with pytest.raises(InvalidScheduleFormat):
        parse_hhmm(value)


def test_day_schedule_for_enabled_day():
    day = day_schedule_for(DEFAULT_WORK_SCHEDULE, date(2024, 6, 8))  # saturday
    assert day == DaySchedule(enabled=True, start="09:00", end="17:00")


def test_day_schedule_for_disabled_or_missing_day():
    assert day_schedule_for(DEFAULT_WORK_SCHEDULE, date(2024, 6, 2)) is None  # sunday is off
    assert day_schedule_for({"monday": {"enabled": True, "start": "09:00", "end": "12:00"}},
                            date(2024, 6, 4)) is None
    assert day_schedule_for(None, date(2024, 6, 3)) is None


def test_validate_work_schedule_rejects_inverted_window():
    with pytest.raises(InvalidScheduleFormat):
        validate_work_schedule({"monday": {"enabled": True, "start": "18:00", "end": "09:00"}})


def test_validate_work_schedule_ignores_disabled_window():
    schedule = validate_work_schedule({"sunday": {"enabled": False, "start": "18:00", "end": "09:00"}})
    assert schedule["sunday"].enabled is False


def test_validate_work_schedule_rejects_unknown_day():
    with pytest.raises(InvalidScheduleFormat):
        validate_work_schedule({"funday": {"enabled": True, "start": "09:00", "end": "10:00"}})
