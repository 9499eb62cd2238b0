"""Appointment model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String, Time
from sqlalchemy.orm import relationship

from clinic_backend.database import Base
from clinic_backend.models.practitioner import Practitioner


class Appointment(Base):
    """A patient's reservation of one practitioner slot.

    Rows are never deleted. ``cancelled``, ``completed`` and ``paid`` only ever
    go from false to true, see :mod:`clinic_backend.scheduling.lifecycle`.
    """
    __tablename__ = "appointments"
    __table_args__ = (
        Index("idx_appointments_patient", "patient_id", "created_at"),
        Index("idx_appointments_practitioner_slot", "practitioner_id", "slot_date", "slot_time"),
    )

    id = Column(Integer, primary_key=True)
    patient_id = Column(String, nullable=False)
    practitioner_id = Column(Integer, ForeignKey("practitioners.id"), nullable=False)
    slot_date = Column(Date, nullable=False)
    slot_time = Column(Time, nullable=False)
    amount = Column(Integer, nullable=False)
    cancelled = Column(Boolean, nullable=False, default=False)
    completed = Column(Boolean, nullable=False, default=False)
    paid = Column(Boolean, nullable=False, default=False)
    payment_order_id = Column(String, nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    practitioner = relationship(Practitioner, lazy="joined")

    @property
    def start_time(self) -> datetime:
        return datetime.combine(self.slot_date, self.slot_time)
