import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wellbeing_api.core import config
from wellbeing_api.core.errors import ConflictError, NotFoundError, ValidationError
from wellbeing_api.database import store_errors
from wellbeing_api.models.booking import Booking
from wellbeing_api.models.user import User
from wellbeing_api.scheduling import reservations
from wellbeing_api.scheduling.catalog import (
    APPROVAL_STATUSES,
    BLOCKED,
    GROUP,
    LIVE_STATUSES,
    PENDING,
    normalize_notes,
    normalize_session_type,
    normalize_time_slot,
    parse_date,
    require_party,
    validate_booking_window,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StudentInfo:
    """Contact snapshot captured when the booking is made."""
    name: str
    email: str
    phone: str = ''


def _normalize_student_info(student_info: StudentInfo) -> StudentInfo:
    if student_info is None:
        raise ValidationError('Student contact information is required.')

    name = (student_info.name or '').strip()
    email = (student_info.email or '').strip().lower()
    if not name:
        raise ValidationError('Student name is required.')
    if not email:
        raise ValidationError('Student email is required.')

    return StudentInfo(name=name, email=email, phone=(student_info.phone or '').strip())


def _slot_conflict(db: Session, mentor_id: str, slot_date: date, time_slot: str, session_type: str) -> ConflictError:
    reservation = reservations.get_reservation(db, mentor_id, slot_date, time_slot)
    conflicting_booking_id = reservations.find_live_booking_id(db, mentor_id, slot_date, time_slot)

    if reservation is not None and reservation.session_type == BLOCKED:
        detail = 'This time slot has been blocked by the professional.'
    elif reservation is not None and reservation.session_type == GROUP and session_type == GROUP:
        detail = 'This group session is full. Please choose a different time.'
    elif reservation is not None and reservation.session_type == GROUP:
        detail = 'This time slot is already booked for a group session. Please choose a different time.'
    else:
        detail = 'This time slot is already booked for another student. Please choose a different time.'

    return ConflictError(detail, conflicting_booking_id=conflicting_booking_id)


def _require_known_professional(db: Session, mentor_id: str) -> None:
    # An empty directory means people are managed elsewhere; trust the id.
    if db.execute(select(User.id).limit(1)).first() is None:
        return

    professional = db.execute(
        select(User.id).where(User.id == mentor_id, User.role.in_(config.PROFESSIONAL_ROLES))
    ).first()
    if professional is None:
        raise ValidationError(f'Unknown professional {mentor_id!r}.')


def _live_request_id(db: Session, student_id: str, mentor_id: str, slot_date: date, time_slot: str) -> str | None:
    return db.execute(
        select(Booking.id).where(
            Booking.student_id == student_id,
            Booking.mentor_id == mentor_id,
            Booking.date == slot_date,
            Booking.time_slot == time_slot,
            Booking.approval_status.in_(LIVE_STATUSES),
        )
    ).scalars().first()


def create_booking(
    db: Session,
    *,
    student_id: str,
    mentor_id: str,
    booking_date: date | str,
    time_slot: str,
    session_type: str,
    student_info: StudentInfo,
    notes: str | None = None,
    today: date | None = None,
) -> Booking:
    """Write a new ``pending`` booking after atomically claiming its slot.

    Raises ``ValidationError`` for malformed requests and ``ConflictError``
    when the slot cannot be claimed; nothing is written in either case.
    """
    student_id = require_party(student_id, 'Student')
    mentor_id = require_party(mentor_id, 'Professional')
    slot_date = parse_date(booking_date)
    time_slot = normalize_time_slot(time_slot)
    session_type = normalize_session_type(session_type)
    info = _normalize_student_info(student_info)
    notes = normalize_notes(notes)
    validate_booking_window(slot_date, today or date.today())

    with store_errors(db, 'creating a booking'):
        _require_known_professional(db, mentor_id)

        duplicate_id = _live_request_id(db, student_id, mentor_id, slot_date, time_slot)
        if duplicate_id is not None:
            raise ConflictError(
                'You already have a booking request for this time slot.',
                conflicting_booking_id=duplicate_id,
            )

        capacity = config.GROUP_SESSION_CAPACITY if session_type == GROUP else 1
        if not reservations.claim_slot(db, mentor_id, slot_date, time_slot, session_type, capacity):
            db.rollback()
            conflict = _slot_conflict(db, mentor_id, slot_date, time_slot, session_type)
            logger.info(
                'Rejected %s booking for %s on %s %s: %s',
                session_type,
                mentor_id,
                slot_date,
                time_slot,
                conflict.detail,
            )
            raise conflict

        booking = Booking(
            student_id=student_id,
            mentor_id=mentor_id,
            date=slot_date,
            time_slot=time_slot,
            session_type=session_type,
            approval_status=PENDING,
            notes=notes,
            mentor_notes='',
            student_name=info.name,
            student_email=info.email,
            student_phone=info.phone,
        )
        db.add(booking)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise ConflictError(
                'You already have a booking request for this time slot.',
                conflicting_booking_id=_live_request_id(db, student_id, mentor_id, slot_date, time_slot),
            ) from exc
        db.refresh(booking)

    logger.info('Created booking %s for %s with %s on %s %s.', booking.id, student_id, mentor_id, slot_date, time_slot)
    return booking


def get_booking(db: Session, booking_id: str) -> Booking:
    with store_errors(db, 'loading a booking'):
        booking = db.get(Booking, booking_id)
    if booking is None:
        raise NotFoundError('Booking not found.', booking_id=booking_id)
    return booking


def normalize_approval_status(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip().lower()
    if not normalized:
        return None
    if normalized not in APPROVAL_STATUSES:
        raise ValidationError(f'Invalid approval status {value!r}.')
    return normalized


def list_mentor_bookings(db: Session, mentor_id: str, approval_status: str | None = None) -> list[Booking]:
    mentor_id = require_party(mentor_id, 'Professional')
    approval_status = normalize_approval_status(approval_status)

    query = select(Booking).where(Booking.mentor_id == mentor_id)
    if approval_status:
        query = query.where(Booking.approval_status == approval_status)

    with store_errors(db, 'listing professional bookings'):
        return list(db.execute(query.order_by(Booking.created_at.desc(), Booking.id)).scalars())


def list_student_bookings(db: Session, student_id: str) -> list[Booking]:
    student_id = require_party(student_id, 'Student')

    with store_errors(db, 'listing student bookings'):
        return list(
            db.execute(
                select(Booking)
                .where(Booking.student_id == student_id)
                .order_by(Booking.date.desc(), Booking.created_at.desc(), Booking.id)
            ).scalars()
        )


def summarize_mentor_bookings(db: Session, mentor_id: str) -> dict[str, int]:
    mentor_id = require_party(mentor_id, 'Professional')

    with store_errors(db, 'summarizing professional bookings'):
        rows = db.execute(
            select(Booking.approval_status, func.count(Booking.id))
            .where(Booking.mentor_id == mentor_id)
            .group_by(Booking.approval_status)
        ).all()

    counts = {status: 0 for status in APPROVAL_STATUSES}
    for approval_status, count in rows:
        counts[approval_status] = count
    counts['total'] = sum(counts.values())
    return counts
