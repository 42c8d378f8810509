"""Approval state machine for bookings.

::

    pending --(confirm)--> confirmed --(complete)--> completed
    pending --(reject)-->  rejected

``rejected`` and ``completed`` are terminal. Every transition is applied as a
compare-and-set on ``approval_status`` so two reviewers acting on the same
booking cannot both win.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.orm import Session

from wellbeing_api.core.errors import InvalidTransitionError, NotFoundError, ValidationError
from wellbeing_api.database import store_errors
from wellbeing_api.models.booking import Booking
from wellbeing_api.scheduling import events, reservations
from wellbeing_api.scheduling.catalog import COMPLETED, CONFIRMED, PENDING, REJECTED, normalize_notes

logger = logging.getLogger(__name__)

CONFIRM = 'confirm'
REJECT = 'reject'
COMPLETE = 'complete'

TRANSITIONS = {
    CONFIRM: (PENDING, CONFIRMED),
    REJECT: (PENDING, REJECTED),
    COMPLETE: (CONFIRMED, COMPLETED),
}
ACTIONS_ACCEPTING_NOTES = (CONFIRM, REJECT)

# Status vocabulary used by older clients, mapped onto actions.
LEGACY_STATUS_ACTIONS = {
    'confirmed': CONFIRM,
    'rejected': REJECT,
    'cancelled': REJECT,
    'completed': COMPLETE,
}


def allowed_actions(approval_status: str) -> tuple[str, ...]:
    return tuple(action for action, (source, _) in TRANSITIONS.items() if source == approval_status)


def action_for_status(status: str | None) -> str:
    normalized = (status or '').strip().lower()
    if normalized not in LEGACY_STATUS_ACTIONS:
        raise ValidationError(f'Cannot move a booking to status {status!r}.')
    return LEGACY_STATUS_ACTIONS[normalized]


def _invalid(action: str, booking_id: str, current_status: str) -> InvalidTransitionError:
    return InvalidTransitionError(
        f'Cannot {action} a booking that is {current_status}.',
        booking_id=booking_id,
        current_status=current_status,
        allowed_actions=list(allowed_actions(current_status)),
    )


def transition_booking(
    db: Session,
    booking_id: str,
    action: str,
    mentor_notes: str | None = None,
) -> Booking:
    normalized_action = (action or '').strip().lower()
    if normalized_action not in TRANSITIONS:
        raise ValidationError(f'Unknown booking action {action!r}.')

    notes = normalize_notes(mentor_notes)
    if notes and normalized_action not in ACTIONS_ACCEPTING_NOTES:
        raise ValidationError('Reviewer notes can only be added when confirming or rejecting a booking.')

    expected_status, target_status = TRANSITIONS[normalized_action]

    with store_errors(db, f'applying {normalized_action} to a booking'):
        booking = db.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError('Booking not found.', booking_id=booking_id)
        if booking.approval_status != expected_status:
            raise _invalid(normalized_action, booking_id, booking.approval_status)

        values = {'approval_status': target_status}
        if notes:
            values['mentor_notes'] = notes

        result = db.execute(
            update(Booking)
            .where(Booking.id == booking_id, Booking.approval_status == expected_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            current = db.get(Booking, booking_id)
            if current is None:
                raise NotFoundError('Booking not found.', booking_id=booking_id)
            raise _invalid(normalized_action, booking_id, current.approval_status)

        if target_status == REJECTED:
            reservations.release_seat(db, booking.mentor_id, booking.date, booking.time_slot)

        db.commit()
        db.refresh(booking)

    logger.info('Booking %s moved %s -> %s.', booking_id, expected_status, target_status)
    events.emit(
        events.BookingStatusChanged(
            booking_id=booking.id,
            student_id=booking.student_id,
            mentor_id=booking.mentor_id,
            date=booking.date,
            time_slot=booking.time_slot,
            session_type=booking.session_type,
            previous_status=expected_status,
            new_status=target_status,
            mentor_notes=booking.mentor_notes,
            occurred_at=datetime.now(timezone.utc),
        )
    )
    return booking


def confirm_booking(db: Session, booking_id: str, mentor_notes: str | None = None) -> Booking:
    return transition_booking(db, booking_id, CONFIRM, mentor_notes)


def reject_booking(db: Session, booking_id: str, mentor_notes: str | None = None) -> Booking:
    return transition_booking(db, booking_id, REJECT, mentor_notes)


def complete_booking(db: Session, booking_id: str) -> Booking:
    return transition_booking(db, booking_id, COMPLETE)
