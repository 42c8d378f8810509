"""Booking model definitions."""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, Index, String, text
from wellbeing_api.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_booking_id() -> str:
    return uuid4().hex


LIVE_STATUSES_CLAUSE = "approval_status IN ('pending', 'confirmed')"


class Booking(Base):
    """A student's request for a session with a professional."""
    __tablename__ = "bookings"

    id = Column(String(32), primary_key=True, default=_new_booking_id)
    student_id = Column(String, nullable=False)
    mentor_id = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    time_slot = Column(String(11), nullable=False)
    session_type = Column(String(16), nullable=False)
    approval_status = Column(String(16), nullable=False, default="pending")  # pending/confirmed/rejected/completed
    notes = Column(String, nullable=False, default="")
    mentor_notes = Column(String, nullable=False, default="")
    student_name = Column(String, nullable=False)
    student_email = Column(String, nullable=False)
    student_phone = Column(String, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("idx_bookings_mentor_date", "mentor_id", "date", "time_slot"),
        Index("idx_bookings_student_date", "student_id", "date"),
        Index("idx_bookings_status_date", "approval_status", "date"),
        # A student holds at most one live request per slot.
        Index(
            "uq_bookings_live_student_slot",
            "student_id",
            "mentor_id",
            "date",
            "time_slot",
            unique=True,
            postgresql_where=text(LIVE_STATUSES_CLAUSE),
            sqlite_where=text(LIVE_STATUSES_CLAUSE),
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, mentor={self.mentor_id}, date={self.date}, "
            f"slot={self.time_slot}, status={self.approval_status})>"
        )
