from datetime import date, datetime, time

from pydantic import BaseModel, field_validator

from clinic_backend.scheduling.calendar import CalendarDay
from clinic_backend.scheduling.lifecycle import state_of
from clinic_backend.scheduling.slot_keys import format_date_key, format_slot_label

MAX_NAME_LENGTH = 120


class PractitionerResponse(BaseModel):
    id: int
    name: str
    email: str
    speciality: str
    fee: int
    available: bool
    working_hours_start: time
    working_hours_end: time
    slot_duration_minutes: int

    class Config:
        from_attributes = True


class CreatePractitionerRequest(BaseModel):
    name: str
    email: str
    speciality: str
    fee: int
    working_hours_start: time | None = None
    working_hours_end: time | None = None

    @field_validator('name', 'speciality')
    @classmethod
    def validate_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Field is required.')
        if len(normalized) > MAX_NAME_LENGTH:
            raise ValueError(f'Must be {MAX_NAME_LENGTH} characters or fewer.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        local, _, domain = normalized.partition('@')
        if not local or '.' not in domain:
            raise ValueError('Enter a valid email.')
        return normalized

    @field_validator('fee')
    @classmethod
    def validate_fee(cls, value: int) -> int:
        if value <= 0:
            raise ValueError('Fee must be positive.')
        return value


class SlotResponse(BaseModel):
    time: str
    absolute_time: datetime


class SlotDayResponse(BaseModel):
    date: date
    date_key: str
    slots: list[SlotResponse]

    @classmethod
    def from_calendar_day(cls, day: CalendarDay) -> 'SlotDayResponse':
        return cls(
            date=day.day,
            date_key=day.date_key,
            slots=[SlotResponse(time=slot.slot_label, absolute_time=slot.starts_at) for slot in day.slots],
        )


class CreateAppointmentRequest(BaseModel):
    practitioner_id: int
    date_key: str
    slot_label: str

    @field_validator('date_key', 'slot_label')
    @classmethod
    def validate_required(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Field is required.')
        return normalized


class AppointmentResponse(BaseModel):
    id: int
    patient_id: str
    practitioner_id: int
    practitioner_name: str | None = None
    date_key: str
    slot_label: str
    start_time: datetime
    amount: int
    status: str
    cancelled: bool
    completed: bool
    paid: bool
    created_at: datetime

    @classmethod
    def from_appointment(cls, appointment) -> 'AppointmentResponse':
        return cls(
            id=appointment.id,
            patient_id=appointment.patient_id,
            practitioner_id=appointment.practitioner_id,
            practitioner_name=appointment.practitioner.name if appointment.practitioner else None,
            date_key=format_date_key(appointment.slot_date),
            slot_label=format_slot_label(appointment.slot_time),
            start_time=appointment.start_time,
            amount=appointment.amount,
            status=state_of(appointment).value,
            cancelled=appointment.cancelled,
            completed=appointment.completed,
            paid=appointment.paid,
            created_at=appointment.created_at,
        )


class PaymentOrderResponse(BaseModel):
    order_ref: str
    amount: int
    currency: str


class ConfirmPaymentRequest(BaseModel):
    order_ref: str
    payment_id: str
    signature: str


class ConfirmPaymentResponse(BaseModel):
    paid: bool


class PractitionerDashboardResponse(BaseModel):
    earnings: int
    appointments: int
    patients: int
    latest_appointments: list[AppointmentResponse]


class OperatorDashboardResponse(BaseModel):
    practitioners: int
    appointments: int
    patients: int
    latest_appointments: list[AppointmentResponse]


def dashboard_payload(data: dict) -> dict:
    return {
        **data,
        'latest_appointments': [AppointmentResponse.from_appointment(item) for item in data['latest_appointments']],
    }
