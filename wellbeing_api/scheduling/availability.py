import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from wellbeing_api.core import config
from wellbeing_api.core.errors import ConflictError, NotFoundError
from wellbeing_api.database import store_errors
from wellbeing_api.models.booking import Booking
from wellbeing_api.models.slot_reservation import SlotReservation
from wellbeing_api.models.user import User
from wellbeing_api.scheduling import reservations
from wellbeing_api.scheduling.catalog import (
    BLOCKED,
    CONFIRMED,
    PENDING,
    TIME_SLOTS,
    normalize_session_type,
    normalize_time_slot,
    parse_date,
    require_party,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AvailableSlot:
    mentor_id: str
    time_slot: str
    date: date
    session_type: str


@dataclass(frozen=True)
class BlockedSlot:
    mentor_id: str
    date: date
    time_slot: str


def list_professional_ids(db: Session) -> list[str]:
    with store_errors(db, 'listing professionals'):
        return list(
            db.execute(
                select(User.id).where(User.role.in_(config.PROFESSIONAL_ROLES)).order_by(User.id.asc())
            ).scalars()
        )


def _hiding_statuses() -> tuple[str, ...]:
    if config.PENDING_RESERVES_SLOT:
        return (CONFIRMED, PENDING)
    return (CONFIRMED,)


def get_taken_slots(db: Session, slot_date: date, mentor_ids: list[str]) -> set[tuple[str, str]]:
    """Return ``(mentor_id, time_slot)`` pairs removed from the calendar on ``slot_date``."""
    if not mentor_ids:
        return set()

    with store_errors(db, 'loading booked slots'):
        booked = db.execute(
            select(Booking.mentor_id, Booking.time_slot).where(
                Booking.date == slot_date,
                Booking.mentor_id.in_(mentor_ids),
                Booking.approval_status.in_(_hiding_statuses()),
            )
        ).all()
        blocked = db.execute(
            select(SlotReservation.mentor_id, SlotReservation.time_slot).where(
                SlotReservation.date == slot_date,
                SlotReservation.mentor_id.in_(mentor_ids),
                SlotReservation.session_type == BLOCKED,
                SlotReservation.seats_taken > 0,
            )
        ).all()

    return {(mentor_id, time_slot) for mentor_id, time_slot in booked} | {
        (mentor_id, time_slot) for mentor_id, time_slot in blocked
    }


def get_available_slots(
    db: Session,
    slot_date: date | str,
    session_type: str,
    mentor_id: str | None = None,
) -> list[AvailableSlot]:
    """List open catalog slots on ``slot_date`` for one professional or all of them.

    A slot disappears once it holds a confirmed booking for that exact
    professional, date and time, or when the professional has blocked it.
    Store failures raise ``StoreUnavailableError``; there is no fallback list.
    """
    slot_date = parse_date(slot_date)
    session_type = normalize_session_type(session_type)

    if mentor_id is not None and mentor_id.strip():
        mentor_ids = [mentor_id.strip()]
    else:
        mentor_ids = list_professional_ids(db)

    taken = get_taken_slots(db, slot_date, mentor_ids)

    available = [
        AvailableSlot(mentor_id=current_mentor_id, time_slot=time_slot, date=slot_date, session_type=session_type)
        for current_mentor_id in mentor_ids
        for time_slot in TIME_SLOTS
        if (current_mentor_id, time_slot) not in taken
    ]
    logger.debug(
        'Found %d open slots across %d professionals on %s.', len(available), len(mentor_ids), slot_date
    )
    return available


def block_slot(db: Session, mentor_id: str, slot_date: date | str, time_slot: str) -> BlockedSlot:
    mentor_id = require_party(mentor_id, 'Professional')
    slot_date = parse_date(slot_date)
    time_slot = normalize_time_slot(time_slot)

    with store_errors(db, 'blocking a slot'):
        if not reservations.claim_slot(db, mentor_id, slot_date, time_slot, BLOCKED):
            db.rollback()
            reservation = reservations.get_reservation(db, mentor_id, slot_date, time_slot)
            if reservation is not None and reservation.session_type == BLOCKED:
                raise ConflictError('This time slot is already blocked.')
            raise ConflictError(
                'This time slot is already booked by a student.',
                conflicting_booking_id=reservations.find_live_booking_id(db, mentor_id, slot_date, time_slot),
            )
        db.commit()

    logger.info('Blocked %s on %s for %s.', time_slot, slot_date, mentor_id)
    return BlockedSlot(mentor_id=mentor_id, date=slot_date, time_slot=time_slot)


def unblock_slot(db: Session, mentor_id: str, slot_date: date | str, time_slot: str) -> None:
    mentor_id = require_party(mentor_id, 'Professional')
    slot_date = parse_date(slot_date)
    time_slot = normalize_time_slot(time_slot)

    with store_errors(db, 'unblocking a slot'):
        if not reservations.release_block(db, mentor_id, slot_date, time_slot):
            db.rollback()
            raise NotFoundError('Blocked time not found.')
        db.commit()

    logger.info('Unblocked %s on %s for %s.', time_slot, slot_date, mentor_id)


def list_blocked_slots(db: Session, mentor_id: str, from_date: date | str | None = None) -> list[BlockedSlot]:
    mentor_id = require_party(mentor_id, 'Professional')
    start = parse_date(from_date) if from_date else date.today()

    with store_errors(db, 'listing blocked slots'):
        rows = db.execute(
            select(SlotReservation.date, SlotReservation.time_slot).where(
                SlotReservation.mentor_id == mentor_id,
                SlotReservation.session_type == BLOCKED,
                SlotReservation.seats_taken > 0,
                SlotReservation.date >= start,
            )
        ).all()

    ordered = sorted(rows, key=lambda row: (row[0], TIME_SLOTS.index(row[1])))
    return [BlockedSlot(mentor_id=mentor_id, date=slot_date, time_slot=time_slot) for slot_date, time_slot in ordered]
