# barbershop/core/slots.py

from datetime import date, datetime, time
from typing import Iterable, List, Optional

from barbershop.core.schedule import DaySchedule, format_hhmm, parse_hhmm, truncate_hhmm

SLOT_STEP_MINUTES = 30


def end_time_for(start_time: str, duration: int) -> str:
    return format_hhmm(parse_hhmm(start_time) + duration)


def generate_slots(
    day_schedule: Optional[DaySchedule],
    service_duration: int,
    booked_start_times: Iterable[str],
    target_date: date,
    now: datetime,
    step: int = SLOT_STEP_MINUTES,
) -> List[str]:
    """Bookable start times for one barber, one date and one service.

    Candidates sit on a fixed ``step`` grid from the opening time regardless of
    the service duration, and must finish by closing time. Booked starts are
    compared as ``HH:MM``. Dates before ``now`` have no slots, and on ``now``'s
    date only starts strictly after ``now`` survive. ``now`` is naive local
    wall-clock time.
    """
    if service_duration <= 0:
        raise ValueError("service_duration must be a positive number of minutes")
    if step <= 0:
        raise ValueError("step must be a positive number of minutes")
    if day_schedule is None or not day_schedule.enabled:
        return []
    if target_date < now.date():
        return []

    start_minutes = parse_hhmm(day_schedule.start)
    end_minutes = parse_hhmm(day_schedule.end)
    booked = {truncate_hhmm(t) for t in booked_start_times}
    same_day = target_date == now.date()

    slots = []
    for minutes in range(start_minutes, end_minutes - service_duration + 1, step):
        candidate = format_hhmm(minutes)
        if candidate in booked:
            continue

        if same_day:
            slot_start = datetime.combine(target_date, time(*divmod(minutes, 60)))
            if slot_start <= now:
                continue

        slots.append(candidate)

    return slots
