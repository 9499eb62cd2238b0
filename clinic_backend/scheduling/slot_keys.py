"""Boundary encodings for calendar days and slot times.

Internally a slot is a ``(date, time)`` pair. Only the API speaks in
``dateKey`` strings (``"5_3_2025"``: day, 1-based month, year, no padding) and
``slotLabel`` strings. Labels are written as 24-hour ``HH:MM``; the older
12-hour form (``"10:30 AM"``) is still accepted on input.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time

from clinic_backend.services.errors import ValidationError

_TWELVE_HOUR_LABEL = re.compile(r'^(\d{1,2}):(\d{2})\s*([AaPp][Mm])$')
_TWENTY_FOUR_HOUR_LABEL = re.compile(r'^(\d{1,2}):(\d{2})$')


def format_date_key(day: date) -> str:
    return f'{day.day}_{day.month}_{day.year}'


def parse_date_key(date_key: str) -> date:
    parts = (date_key or '').strip().split('_')
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        raise ValidationError(f'Invalid date key: {date_key!r}.')

    day, month, year = (int(part) for part in parts)
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise ValidationError(f'Invalid date key: {date_key!r}.') from exc


def format_slot_label(slot_time: time) -> str:
    return slot_time.strftime('%H:%M')


def parse_slot_label(slot_label: str) -> time:
    normalized = (slot_label or '').strip()

    match = _TWELVE_HOUR_LABEL.match(normalized)
    if match:
        hour, minute, meridiem = int(match.group(1)), int(match.group(2)), match.group(3).upper()
        if not 1 <= hour <= 12:
            raise ValidationError(f'Invalid slot label: {slot_label!r}.')
        hour = hour % 12 + (12 if meridiem == 'PM' else 0)
    else:
        match = _TWENTY_FOUR_HOUR_LABEL.match(normalized)
        if not match:
            raise ValidationError(f'Invalid slot label: {slot_label!r}.')
        hour, minute = int(match.group(1)), int(match.group(2))

    try:
        return time(hour, minute)
    except ValueError as exc:
        raise ValidationError(f'Invalid slot label: {slot_label!r}.') from exc


@dataclass(frozen=True)
class SlotKey:
    day: date
    start: time

    @classmethod
    def parse(cls, date_key: str, slot_label: str) -> 'SlotKey':
        return cls(day=parse_date_key(date_key), start=parse_slot_label(slot_label))

    @property
    def date_key(self) -> str:
        return format_date_key(self.day)

    @property
    def slot_label(self) -> str:
        return format_slot_label(self.start)

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.day, self.start)

    def __str__(self) -> str:
        return f'{self.date_key} {self.slot_label}'
