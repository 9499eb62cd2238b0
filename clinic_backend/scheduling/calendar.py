"""Rolling slot calendar for a practitioner.

The calendar is a projection of the availability record at the moment it is
generated. It is safe to cache or render, but booking always re-checks the
record itself.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from clinic_backend.core import config
from clinic_backend.scheduling.slot_keys import format_date_key, format_slot_label


@dataclass(frozen=True)
class CalendarSlot:
    starts_at: datetime

    @property
    def slot_label(self) -> str:
        return format_slot_label(self.starts_at.time())


@dataclass(frozen=True)
class CalendarDay:
    day: date
    slots: list[CalendarSlot] = field(default_factory=list)

    @property
    def date_key(self) -> str:
        return format_date_key(self.day)


def first_slot_start(
    now: datetime,
    opening: time,
    slot_minutes: int = config.SLOT_DURATION_MINUTES,
) -> datetime | None:
    """Return where today's slots begin, or ``None`` if the rounding runs past midnight.

    Past opening hour the next full hour is used, keeping the half-hour when
    the current minute is beyond 30. This matches the calendar patients have
    always been shown, including the jump it makes around the opening hour.
    The result never precedes opening time and always lands on the
    ``opening + k * slot_minutes`` grid that booking accepts.
    """
    start_hour = now.hour + 1 if now.hour > opening.hour else opening.hour
    start_minute = 30 if now.minute > 30 else 0
    if start_hour > 23:
        return None

    start = now.replace(hour=start_hour, minute=start_minute, second=0, microsecond=0)
    day_opening = datetime.combine(now.date(), opening)
    if start <= day_opening:
        return day_opening

    step = timedelta(minutes=slot_minutes)
    remainder = (start - day_opening) % step
    if remainder:
        start += step - remainder
    return start


def generate_slot_calendar(
    now: datetime,
    booked: Mapping[date, set[time]],
    opening: time = config.DEFAULT_WORKING_HOURS_START,
    closing: time = config.DEFAULT_WORKING_HOURS_END,
    slot_minutes: int = config.SLOT_DURATION_MINUTES,
    days: int = config.SLOT_WINDOW_DAYS,
) -> list[CalendarDay]:
    calendar: list[CalendarDay] = []
    today = now.date()
    step = timedelta(minutes=slot_minutes)

    for offset in range(days):
        current_day = today + timedelta(days=offset)
        # A slot starting exactly at closing time is still offered.
        day_end = datetime.combine(current_day, closing)

        if offset == 0:
            current = first_slot_start(now, opening, slot_minutes)
        else:
            current = datetime.combine(current_day, opening)

        occupied = booked.get(current_day, set())
        slots: list[CalendarSlot] = []

        while current is not None and current <= day_end:
            if current.time() not in occupied:
                slots.append(CalendarSlot(starts_at=current))
            current += step

        calendar.append(CalendarDay(day=current_day, slots=slots))

    return calendar
