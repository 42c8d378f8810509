"""In-process hook for booking status changes.

External notifiers (email, chat, audit) subscribe a callable and receive a
``BookingStatusChanged`` after each committed transition.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from threading import Lock
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingStatusChanged:
    booking_id: str
    student_id: str
    mentor_id: str
    date: date
    time_slot: str
    session_type: str
    previous_status: str
    new_status: str
    mentor_notes: str
    occurred_at: datetime


Listener = Callable[[BookingStatusChanged], None]

_listeners: list[Listener] = []
_listeners_lock = Lock()


def subscribe(listener: Listener) -> Callable[[], None]:
    with _listeners_lock:
        _listeners.append(listener)

    def unsubscribe() -> None:
        with _listeners_lock:
            if listener in _listeners:
                _listeners.remove(listener)

    return unsubscribe


def emit(event: BookingStatusChanged) -> None:
    with _listeners_lock:
        listeners = list(_listeners)

    for listener in listeners:
        try:
            listener(event)
        except Exception:
            # The transition is already committed; a notifier failure must not mask it.
            logger.exception('Booking status listener %r failed for booking %s.', listener, event.booking_id)


def log_status_change(event: BookingStatusChanged) -> None:
    logger.info(
        'Booking %s for %s on %s %s moved %s -> %s.',
        event.booking_id,
        event.mentor_id,
        event.date,
        event.time_slot,
        event.previous_status,
        event.new_status,
    )
