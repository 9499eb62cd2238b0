from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_backend.auth.actors import Actor, ActorRole
from clinic_backend.auth.dependencies import require_role
from clinic_backend.routes.common import database_unavailable, ensure_database_ready, get_db, get_payment_client
from clinic_backend.schemas import (
    AppointmentResponse,
    ConfirmPaymentRequest,
    ConfirmPaymentResponse,
    CreateAppointmentRequest,
    PaymentOrderResponse,
)
from clinic_backend.services import booking, cancellation
from clinic_backend.services.payments import PaymentGate, PaymentProcessorClient

router = APIRouter(tags=['patient'])

current_patient = require_role(ActorRole.PATIENT)


@router.post('/appointments', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    actor: Actor = Depends(current_patient),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = booking.book(db, actor, data.practitioner_id, data.date_key, data.slot_label)
        return AppointmentResponse.from_appointment(appointment)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.get('/appointments', response_model=list[AppointmentResponse])
def list_my_appointments(actor: Actor = Depends(current_patient), db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        appointments = booking.list_patient_appointments(db, actor.subject)
        return [AppointmentResponse.from_appointment(appointment) for appointment in appointments]
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.post('/appointments/{appointment_id}/cancel', response_model=AppointmentResponse)
def cancel_my_appointment(
    appointment_id: int,
    actor: Actor = Depends(current_patient),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        appointment = cancellation.cancel(db, appointment_id, actor)
        return AppointmentResponse.from_appointment(appointment)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.post('/appointments/{appointment_id}/payment-order', response_model=PaymentOrderResponse)
def create_payment_order(
    appointment_id: int,
    actor: Actor = Depends(current_patient),
    db: Session = Depends(get_db),
    client: PaymentProcessorClient = Depends(get_payment_client),
):
    ensure_database_ready()

    try:
        order = PaymentGate(db, client).create_order(appointment_id, actor)
        return PaymentOrderResponse(order_ref=order.order_ref, amount=order.amount, currency=order.currency)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.post('/payments/verify', response_model=ConfirmPaymentResponse)
def confirm_payment(
    data: ConfirmPaymentRequest,
    actor: Actor = Depends(current_patient),
    db: Session = Depends(get_db),
    client: PaymentProcessorClient = Depends(get_payment_client),
):
    ensure_database_ready()

    try:
        paid = PaymentGate(db, client).verify_and_mark(data.order_ref, data.payment_id, data.signature, actor)
        return ConfirmPaymentResponse(paid=paid)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc
