from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_backend.models.practitioner import Practitioner
from clinic_backend.routes.common import database_unavailable, ensure_database_ready, get_db
from clinic_backend.schemas import PractitionerResponse, SlotDayResponse
from clinic_backend.services import booking

router = APIRouter(tags=['availability'])


@router.get('/practitioners', response_model=list[PractitionerResponse])
def list_practitioners(db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return db.query(Practitioner).order_by(Practitioner.name.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/practitioners/{practitioner_id}/slots', response_model=list[SlotDayResponse])
def list_available_slots(practitioner_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        calendar = booking.list_available_slots(db, practitioner_id)
        return [SlotDayResponse.from_calendar_day(day) for day in calendar]
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc
