"""Slot reservation model definitions."""

from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, Integer, String, UniqueConstraint, CheckConstraint
from wellbeing_api.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SlotReservation(Base):
    """Per-slot claim record; ``seats_taken == 0`` means the slot is free."""
    __tablename__ = "slot_reservations"

    id = Column(Integer, primary_key=True)
    mentor_id = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    time_slot = Column(String(11), nullable=False)
    session_type = Column(String(16), nullable=False)  # individual/group/blocked
    seats_taken = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint("mentor_id", "date", "time_slot", name="uq_slot_reservation_slot"),
        CheckConstraint("seats_taken >= 0", name="check_slot_reservation_seats"),
    )
