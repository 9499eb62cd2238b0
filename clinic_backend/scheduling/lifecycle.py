"""Appointment state machine.

An appointment starts ``BOOKED`` and ends either ``CANCELLED`` or
``COMPLETED``. ``paid`` is an independent flag that can only be raised while
the appointment is still booked. Flags are never lowered again.

Transitions are conditional updates on the appointment row so two callers
racing on the same appointment cannot both apply one. Nothing here commits;
the services commit once the whole operation has been applied.
"""

import enum
from datetime import date, datetime, timedelta

from sqlalchemy.orm import Session

from clinic_backend.models.appointment import Appointment
from clinic_backend.models.practitioner import Practitioner
from clinic_backend.scheduling.availability import AvailabilityRecord
from clinic_backend.scheduling.slot_keys import SlotKey
from clinic_backend.services.errors import InvalidStateError, ValidationError


class AppointmentState(str, enum.Enum):
    BOOKED = 'booked'
    CANCELLED = 'cancelled'
    COMPLETED = 'completed'


def state_of(appointment: Appointment) -> AppointmentState:
    if appointment.cancelled:
        return AppointmentState.CANCELLED
    if appointment.completed:
        return AppointmentState.COMPLETED
    return AppointmentState.BOOKED


def slot_of(appointment: Appointment) -> SlotKey:
    return SlotKey(day=appointment.slot_date, start=appointment.slot_time)


def validate_bookable_slot(practitioner: Practitioner, slot: SlotKey, today: date) -> None:
    if not practitioner.available:
        raise ValidationError('This practitioner is not accepting appointments.')

    if slot.day < today:
        raise ValidationError('Appointments cannot be booked on a past date.')

    opening = datetime.combine(slot.day, practitioner.opening_time)
    closing = datetime.combine(slot.day, practitioner.closing_time)
    if slot.starts_at < opening or slot.starts_at > closing:
        raise ValidationError('This slot is outside the practitioner\'s working hours.')

    offset = slot.starts_at - opening
    if offset % timedelta(minutes=practitioner.slot_minutes):
        raise ValidationError(f'Slots start every {practitioner.slot_minutes} minutes from opening time.')


def create(db: Session, patient_id: str, practitioner: Practitioner, slot: SlotKey, today: date) -> Appointment:
    validate_bookable_slot(practitioner, slot, today)

    appointment = Appointment(
        patient_id=patient_id,
        practitioner_id=practitioner.id,
        slot_date=slot.day,
        slot_time=slot.start,
        amount=practitioner.fee,
        cancelled=False,
        completed=False,
        paid=False,
    )
    db.add(appointment)
    db.flush()

    AvailabilityRecord(db, practitioner.id).reserve(slot, appointment.id)
    return appointment


def _apply_if_booked(db: Session, appointment: Appointment, values: dict, *conditions) -> bool:
    updated = db.query(Appointment).filter(
        Appointment.id == appointment.id,
        Appointment.cancelled.is_(False),
        Appointment.completed.is_(False),
        *conditions,
    ).update(values, synchronize_session=False)
    db.refresh(appointment)
    return updated == 1


def cancel(db: Session, appointment: Appointment) -> bool:
    """Cancel and release the slot. Returns ``False`` if it was already cancelled."""
    if _apply_if_booked(db, appointment, {'cancelled': True}):
        AvailabilityRecord(db, appointment.practitioner_id).release(slot_of(appointment))
        return True

    if appointment.cancelled:
        return False
    raise InvalidStateError('Completed appointments cannot be cancelled.')


def complete(db: Session, appointment: Appointment) -> bool:
    if _apply_if_booked(db, appointment, {'completed': True}):
        return True

    if appointment.completed:
        return False
    raise InvalidStateError('Cancelled appointments cannot be completed.')


def mark_paid(db: Session, appointment: Appointment, order_ref: str) -> bool:
    if _apply_if_booked(db, appointment, {'paid': True, 'payment_order_id': order_ref}, Appointment.paid.is_(False)):
        return True

    if appointment.paid:
        return False
    if appointment.cancelled:
        raise InvalidStateError('Cancelled appointments cannot be paid for.')
    raise InvalidStateError('Completed appointments cannot be paid for.')
