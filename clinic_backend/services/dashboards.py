from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from clinic_backend.models.appointment import Appointment
from clinic_backend.models.practitioner import Practitioner

LATEST_APPOINTMENTS_LIMIT = 5


def _latest(query) -> list[Appointment]:
    return query.order_by(Appointment.created_at.desc(), Appointment.id.desc()).limit(LATEST_APPOINTMENTS_LIMIT).all()


def practitioner_dashboard(db: Session, practitioner_id: int) -> dict:
    appointments = db.query(Appointment).filter(Appointment.practitioner_id == practitioner_id)

    earnings = appointments.filter(
        Appointment.cancelled.is_(False),
        or_(Appointment.completed.is_(True), Appointment.paid.is_(True)),
    ).with_entities(func.coalesce(func.sum(Appointment.amount), 0)).scalar()

    patients = appointments.with_entities(func.count(func.distinct(Appointment.patient_id))).scalar()

    return {
        'earnings': earnings,
        'appointments': appointments.count(),
        'patients': patients,
        'latest_appointments': _latest(appointments),
    }


def operator_dashboard(db: Session) -> dict:
    appointments = db.query(Appointment)

    return {
        'practitioners': db.query(Practitioner).count(),
        'appointments': appointments.count(),
        'patients': appointments.with_entities(func.count(func.distinct(Appointment.patient_id))).scalar(),
        'latest_appointments': _latest(appointments),
    }
