import logging
from collections import defaultdict
from datetime import date, time

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clinic_backend.models.booked_slot import BookedSlot
from clinic_backend.scheduling.slot_keys import SlotKey
from clinic_backend.services.errors import ConflictError

logger = logging.getLogger(__name__)


class AvailabilityRecord:
    """Occupied slots of a single practitioner.

    Every mutation is a single statement the database can arbitrate on its
    own: ``reserve`` is an insert guarded by the unique constraint on
    ``(practitioner_id, slot_date, slot_time)`` and ``release`` is a filtered
    delete. Neither reads the record first. Both run inside the caller's
    transaction so the appointment change commits together with them. A
    failed reservation rolls that transaction back before raising.
    """

    def __init__(self, db: Session, practitioner_id: int):
        self.db = db
        self.practitioner_id = practitioner_id

    def _slot_filter(self, slot: SlotKey):
        return self.db.query(BookedSlot).filter(
            BookedSlot.practitioner_id == self.practitioner_id,
            BookedSlot.slot_date == slot.day,
            BookedSlot.slot_time == slot.start,
        )

    def is_booked(self, slot: SlotKey) -> bool:
        return self.db.query(self._slot_filter(slot).exists()).scalar()

    def reserve(self, slot: SlotKey, appointment_id: int) -> None:
        self.db.add(
            BookedSlot(
                practitioner_id=self.practitioner_id,
                slot_date=slot.day,
                slot_time=slot.start,
                appointment_id=appointment_id,
            )
        )
        try:
            self.db.flush()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning('Slot %s already reserved for practitioner %s', slot, self.practitioner_id)
            raise ConflictError('This slot has already been booked. Refresh the slot list and pick another.') from exc

    def release(self, slot: SlotKey) -> None:
        self._slot_filter(slot).delete(synchronize_session=False)

    def booked_times(self, day: date) -> set[time]:
        rows = self.db.query(BookedSlot.slot_time).filter(
            BookedSlot.practitioner_id == self.practitioner_id,
            BookedSlot.slot_date == day,
        ).all()
        return {slot_time for (slot_time,) in rows}

    def booked_by_day(self, start: date, end: date) -> dict[date, set[time]]:
        rows = self.db.query(BookedSlot.slot_date, BookedSlot.slot_time).filter(
            BookedSlot.practitioner_id == self.practitioner_id,
            BookedSlot.slot_date >= start,
            BookedSlot.slot_date <= end,
        ).all()

        booked: dict[date, set[time]] = defaultdict(set)
        for slot_date, slot_time in rows:
            booked[slot_date].add(slot_time)
        return dict(booked)
