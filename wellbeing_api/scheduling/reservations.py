"""Atomic claims on the per-slot reservation record.

A ``(mentor_id, date, time_slot)`` triple owns exactly one row in
``slot_reservations``. Claims never read-then-write: the row is created empty
when missing (the unique constraint keeps it single), and every seat is taken
by one conditional ``UPDATE`` that only matches while the slot is still
claimable. Whichever writer the database serializes second sees zero affected
rows and loses.
"""

import logging
from datetime import date

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from wellbeing_api.models.booking import Booking
from wellbeing_api.models.slot_reservation import SlotReservation
from wellbeing_api.scheduling.catalog import BLOCKED, GROUP, INDIVIDUAL, LIVE_STATUSES

logger = logging.getLogger(__name__)

HOLDER_TYPES = (INDIVIDUAL, GROUP, BLOCKED)


def _slot_key(mentor_id: str, slot_date: date, time_slot: str):
    return and_(
        SlotReservation.mentor_id == mentor_id,
        SlotReservation.date == slot_date,
        SlotReservation.time_slot == time_slot,
    )


def claim_slot(
    db: Session,
    mentor_id: str,
    slot_date: date,
    time_slot: str,
    holder_type: str,
    capacity: int = 1,
) -> bool:
    """Take one seat on the slot for ``holder_type``.

    Individual sessions and blocks need an empty slot. Group sessions share
    the slot with other group sessions up to ``capacity`` seats. Returns
    ``False`` when the slot cannot be claimed.

    A missing reservation row is first inserted empty. If another writer
    created the row first, the insert is rolled back and the claim goes
    through the conditional ``UPDATE`` against their row, so a group seat is
    only refused when the slot is really full.
    """
    if holder_type not in HOLDER_TYPES:
        raise ValueError(f'Unknown reservation holder type: {holder_type}')

    if get_reservation_id(db, mentor_id, slot_date, time_slot) is None:
        db.add(
            SlotReservation(
                mentor_id=mentor_id,
                date=slot_date,
                time_slot=time_slot,
                session_type=holder_type,
                seats_taken=0,
            )
        )
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            logger.info('Reservation row for %s %s %s was created concurrently.', mentor_id, slot_date, time_slot)

    if holder_type == GROUP:
        claimable = or_(
            SlotReservation.seats_taken == 0,
            and_(SlotReservation.session_type == GROUP, SlotReservation.seats_taken < capacity),
        )
    else:
        claimable = SlotReservation.seats_taken == 0

    result = db.execute(
        update(SlotReservation)
        .where(_slot_key(mentor_id, slot_date, time_slot), claimable)
        .values(session_type=holder_type, seats_taken=SlotReservation.seats_taken + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def release_seat(db: Session, mentor_id: str, slot_date: date, time_slot: str) -> bool:
    result = db.execute(
        update(SlotReservation)
        .where(
            _slot_key(mentor_id, slot_date, time_slot),
            SlotReservation.session_type.in_((INDIVIDUAL, GROUP)),
            SlotReservation.seats_taken > 0,
        )
        .values(seats_taken=SlotReservation.seats_taken - 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def release_block(db: Session, mentor_id: str, slot_date: date, time_slot: str) -> bool:
    result = db.execute(
        update(SlotReservation)
        .where(
            _slot_key(mentor_id, slot_date, time_slot),
            SlotReservation.session_type == BLOCKED,
            SlotReservation.seats_taken > 0,
        )
        .values(seats_taken=0)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def get_reservation_id(db: Session, mentor_id: str, slot_date: date, time_slot: str) -> int | None:
    return db.execute(
        select(SlotReservation.id).where(_slot_key(mentor_id, slot_date, time_slot))
    ).scalar_one_or_none()


def get_reservation(db: Session, mentor_id: str, slot_date: date, time_slot: str) -> SlotReservation | None:
    return db.execute(
        select(SlotReservation).where(_slot_key(mentor_id, slot_date, time_slot))
    ).scalar_one_or_none()


def find_live_booking_id(db: Session, mentor_id: str, slot_date: date, time_slot: str) -> str | None:
    return db.execute(
        select(Booking.id)
        .where(
            Booking.mentor_id == mentor_id,
            Booking.date == slot_date,
            Booking.time_slot == time_slot,
            Booking.approval_status.in_(LIVE_STATUSES),
        )
        .order_by(Booking.created_at.asc())
        .limit(1)
    ).scalar_one_or_none()
