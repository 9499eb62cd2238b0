import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_backend.auth.actors import Actor, ActorRole
from clinic_backend.auth.dependencies import require_role
from clinic_backend.core import config
from clinic_backend.models.appointment import Appointment
from clinic_backend.models.practitioner import Practitioner
from clinic_backend.routes.common import database_unavailable, ensure_database_ready, get_db
from clinic_backend.schemas import (
    AppointmentResponse,
    CreatePractitionerRequest,
    OperatorDashboardResponse,
    PractitionerResponse,
    dashboard_payload,
)
from clinic_backend.services import booking, cancellation, dashboards

router = APIRouter(tags=['operator'])

current_operator = require_role(ActorRole.OPERATOR)

logger = logging.getLogger(__name__)


@router.post('/practitioners', response_model=PractitionerResponse, status_code=status.HTTP_201_CREATED)
def create_practitioner(
    data: CreatePractitionerRequest,
    actor: Actor = Depends(current_operator),
    db: Session = Depends(get_db),
):
    opening = data.working_hours_start or config.DEFAULT_WORKING_HOURS_START
    closing = data.working_hours_end or config.DEFAULT_WORKING_HOURS_END
    if opening >= closing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Working hours must start before they end.',
        )

    ensure_database_ready()

    try:
        practitioner = Practitioner(
            name=data.name,
            email=data.email,
            speciality=data.speciality,
            fee=data.fee,
            available=True,
            working_hours_start=opening,
            working_hours_end=closing,
            slot_duration_minutes=config.SLOT_DURATION_MINUTES,
        )
        db.add(practitioner)
        db.commit()
        db.refresh(practitioner)

        logger.info('Operator %s registered practitioner %s', actor.subject, practitioner.id)
        return practitioner
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail='A practitioner with this email already exists.',
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.get('/practitioners', response_model=list[PractitionerResponse])
def list_all_practitioners(actor: Actor = Depends(current_operator), db: Session = Depends(get_db)):
    del actor
    ensure_database_ready()

    try:
        return db.query(Practitioner).order_by(Practitioner.created_at.desc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('/practitioners/{practitioner_id}/availability', response_model=PractitionerResponse)
def toggle_practitioner_availability(
    practitioner_id: int,
    actor: Actor = Depends(current_operator),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        practitioner = booking.get_practitioner(db, practitioner_id)
        practitioner.available = not practitioner.available
        db.commit()
        db.refresh(practitioner)

        logger.info(
            'Operator %s set practitioner %s available=%s',
            actor.subject,
            practitioner.id,
            practitioner.available,
        )
        return practitioner
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.get('/appointments', response_model=list[AppointmentResponse])
def list_all_appointments(actor: Actor = Depends(current_operator), db: Session = Depends(get_db)):
    del actor
    ensure_database_ready()

    try:
        appointments = db.query(Appointment).order_by(Appointment.created_at.desc(), Appointment.id.desc()).all()
        return [AppointmentResponse.from_appointment(appointment) for appointment in appointments]
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('/appointments/{appointment_id}/cancel', response_model=AppointmentResponse)
def cancel_any_appointment(
    appointment_id: int,
    actor: Actor = Depends(current_operator),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = cancellation.cancel(db, appointment_id, actor)
        return AppointmentResponse.from_appointment(appointment)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.get('/dashboard', response_model=OperatorDashboardResponse)
def operator_dashboard(actor: Actor = Depends(current_operator), db: Session = Depends(get_db)):
    del actor
    ensure_database_ready()

    try:
        return dashboard_payload(dashboards.operator_dashboard(db))
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc
