"""Practitioner model definitions."""

from datetime import datetime, time

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Time

from clinic_backend.core import config
from clinic_backend.database import Base


class Practitioner(Base):
    """Represents a bookable practitioner and their working hours."""
    __tablename__ = "practitioners"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    speciality = Column(String, nullable=False)
    fee = Column(Integer, nullable=False)
    available = Column(Boolean, nullable=False, default=True)
    working_hours_start = Column(Time, nullable=False, default=lambda: config.DEFAULT_WORKING_HOURS_START)
    working_hours_end = Column(Time, nullable=False, default=lambda: config.DEFAULT_WORKING_HOURS_END)
    slot_duration_minutes = Column(Integer, nullable=False, default=lambda: config.SLOT_DURATION_MINUTES)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    @property
    def opening_time(self) -> time:
        return self.working_hours_start or config.DEFAULT_WORKING_HOURS_START

    @property
    def closing_time(self) -> time:
        return self.working_hours_end or config.DEFAULT_WORKING_HOURS_END

    @property
    def slot_minutes(self) -> int:
        return self.slot_duration_minutes or config.SLOT_DURATION_MINUTES
