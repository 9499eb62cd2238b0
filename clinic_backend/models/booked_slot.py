"""Booked slot model definitions."""

from sqlalchemy import Column, Date, ForeignKey, Integer, Time, UniqueConstraint

from clinic_backend.database import Base


class BookedSlot(Base):
    """One occupied entry of a practitioner's availability record.

    The unique constraint is what makes two concurrent reservations of the
    same slot impossible; a row exists only while its appointment is live.
    """
    __tablename__ = "booked_slots"
    __table_args__ = (
        UniqueConstraint("practitioner_id", "slot_date", "slot_time", name="uq_booked_slot"),
    )

    id = Column(Integer, primary_key=True)
    practitioner_id = Column(Integer, ForeignKey("practitioners.id"), nullable=False, index=True)
    slot_date = Column(Date, nullable=False)
    slot_time = Column(Time, nullable=False)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False, unique=True)
