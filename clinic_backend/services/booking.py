import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from clinic_backend.auth.actors import Actor, ActorRole
from clinic_backend.core import config
from clinic_backend.models.appointment import Appointment
from clinic_backend.models.practitioner import Practitioner
from clinic_backend.scheduling import lifecycle
from clinic_backend.scheduling.availability import AvailabilityRecord
from clinic_backend.scheduling.calendar import CalendarDay, generate_slot_calendar
from clinic_backend.scheduling.slot_keys import SlotKey
from clinic_backend.services.errors import AuthorizationError, ConflictError, NotFoundError

logger = logging.getLogger(__name__)


def get_practitioner(db: Session, practitioner_id: int) -> Practitioner:
    practitioner = db.query(Practitioner).filter(Practitioner.id == practitioner_id).first()
    if practitioner is None:
        raise NotFoundError('Practitioner not found.')
    return practitioner


def list_available_slots(db: Session, practitioner_id: int, now: datetime | None = None) -> list[CalendarDay]:
    """Build the rolling slot calendar, leaving out slots already booked."""
    now = now or datetime.now()
    practitioner = get_practitioner(db, practitioner_id)

    window_end = now.date() + timedelta(days=config.SLOT_WINDOW_DAYS - 1)
    booked = AvailabilityRecord(db, practitioner.id).booked_by_day(now.date(), window_end)

    return generate_slot_calendar(
        now=now,
        booked=booked,
        opening=practitioner.opening_time,
        closing=practitioner.closing_time,
        slot_minutes=practitioner.slot_minutes,
        days=config.SLOT_WINDOW_DAYS,
    )


def book(
    db: Session,
    actor: Actor,
    practitioner_id: int,
    date_key: str,
    slot_label: str,
    now: datetime | None = None,
) -> Appointment:
    """Reserve a slot for the acting patient and create the appointment.

    The slot calendar a patient picked from may be stale, so the availability
    record is the only thing trusted here. A lost race raises
    :class:`ConflictError`; the caller should re-fetch the calendar and retry
    with another slot.
    """
    if actor.role is not ActorRole.PATIENT:
        raise AuthorizationError('Only patients can book appointments.')

    now = now or datetime.now()
    slot = SlotKey.parse(date_key, slot_label)
    practitioner = get_practitioner(db, practitioner_id)
    lifecycle.validate_bookable_slot(practitioner, slot, today=now.date())

    if AvailabilityRecord(db, practitioner.id).is_booked(slot):
        raise ConflictError('This slot has already been booked. Refresh the slot list and pick another.')

    appointment = lifecycle.create(db, actor.subject, practitioner, slot, today=now.date())
    db.commit()
    db.refresh(appointment)

    logger.info(
        'Patient %s booked appointment %s with practitioner %s at %s',
        actor.subject,
        appointment.id,
        practitioner.id,
        slot,
    )
    return appointment


def list_patient_appointments(db: Session, patient_id: str) -> list[Appointment]:
    return db.query(Appointment).filter(
        Appointment.patient_id == patient_id,
    ).order_by(Appointment.created_at.desc(), Appointment.id.desc()).all()
