from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_backend.auth.actors import Actor, ActorRole
from clinic_backend.auth.dependencies import require_role
from clinic_backend.models.appointment import Appointment
from clinic_backend.routes.common import database_unavailable, ensure_database_ready, get_db
from clinic_backend.schemas import AppointmentResponse, PractitionerDashboardResponse, dashboard_payload
from clinic_backend.services import cancellation, dashboards

router = APIRouter(tags=['practitioner'])

current_practitioner = require_role(ActorRole.PRACTITIONER)


@router.get('/appointments', response_model=list[AppointmentResponse])
def list_practitioner_appointments(
    actor: Actor = Depends(current_practitioner),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointments = db.query(Appointment).filter(
            Appointment.practitioner_id == actor.practitioner_id,
        ).order_by(Appointment.slot_date.asc(), Appointment.slot_time.asc()).all()

        return [AppointmentResponse.from_appointment(appointment) for appointment in appointments]
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('/appointments/{appointment_id}/complete', response_model=AppointmentResponse)
def complete_appointment(
    appointment_id: int,
    actor: Actor = Depends(current_practitioner),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = cancellation.complete(db, appointment_id, actor)
        return AppointmentResponse.from_appointment(appointment)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.post('/appointments/{appointment_id}/cancel', response_model=AppointmentResponse)
def cancel_practitioner_appointment(
    appointment_id: int,
    actor: Actor = Depends(current_practitioner),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = cancellation.cancel(db, appointment_id, actor)
        return AppointmentResponse.from_appointment(appointment)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.get('/dashboard', response_model=PractitionerDashboardResponse)
def practitioner_dashboard(
    actor: Actor = Depends(current_practitioner),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return dashboard_payload(dashboards.practitioner_dashboard(db, actor.practitioner_id))
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc
