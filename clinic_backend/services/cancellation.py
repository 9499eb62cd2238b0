import logging

from sqlalchemy.orm import Session

from clinic_backend.auth.actors import Actor, ActorRole
from clinic_backend.models.appointment import Appointment
from clinic_backend.scheduling import lifecycle
from clinic_backend.services.errors import AuthorizationError, NotFoundError

logger = logging.getLogger(__name__)


def get_appointment(db: Session, appointment_id: int) -> Appointment:
    appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if appointment is None:
        raise NotFoundError('Appointment not found.')
    return appointment


def ensure_can_cancel(appointment: Appointment, actor: Actor) -> None:
    if actor.role is ActorRole.OPERATOR:
        return
    if actor.role is ActorRole.PATIENT and appointment.patient_id == actor.subject:
        return
    if actor.role is ActorRole.PRACTITIONER and appointment.practitioner_id == actor.practitioner_id:
        return
    raise AuthorizationError('Only the booking patient, the practitioner or an operator can cancel this appointment.')


def cancel(db: Session, appointment_id: int, actor: Actor) -> Appointment:
    """Cancel an appointment and give its slot back.

    Cancelling an appointment that is already cancelled changes nothing, so
    retries are safe.
    """
    appointment = get_appointment(db, appointment_id)
    ensure_can_cancel(appointment, actor)

    if lifecycle.cancel(db, appointment):
        db.commit()
        db.refresh(appointment)
        logger.info('Appointment %s cancelled by %s %s', appointment.id, actor.role.value, actor.subject)
    else:
        logger.info('Appointment %s was already cancelled', appointment.id)

    return appointment


def complete(db: Session, appointment_id: int, actor: Actor) -> Appointment:
    appointment = get_appointment(db, appointment_id)
    if actor.role is not ActorRole.PRACTITIONER or appointment.practitioner_id != actor.practitioner_id:
        raise AuthorizationError('Only the practitioner who owns this appointment can complete it.')

    if lifecycle.complete(db, appointment):
        db.commit()
        db.refresh(appointment)
        logger.info('Appointment %s completed by practitioner %s', appointment.id, actor.subject)

    return appointment
