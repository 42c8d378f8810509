"""Fixed session catalog and request normalization helpers."""

from datetime import date, datetime, timedelta

from wellbeing_api.core import config
from wellbeing_api.core.errors import ValidationError

TIME_SLOTS = (
    '09:00-10:00',
    '10:00-11:00',
    '11:00-12:00',
    '14:00-15:00',
    '15:00-16:00',
    '16:00-17:00',
)

INDIVIDUAL = 'individual'
GROUP = 'group'
SESSION_TYPES = (INDIVIDUAL, GROUP)

# Reservation holder type for slots a professional has taken off the calendar.
BLOCKED = 'blocked'

PENDING = 'pending'
CONFIRMED = 'confirmed'
REJECTED = 'rejected'
COMPLETED = 'completed'
APPROVAL_STATUSES = (PENDING, CONFIRMED, REJECTED, COMPLETED)
LIVE_STATUSES = (PENDING, CONFIRMED)

MAX_NOTES_LENGTH = 600


def normalize_session_type(value: str | None) -> str:
    normalized = (value or '').strip().lower()
    if not normalized:
        raise ValidationError('Session type is required.')
    if normalized not in SESSION_TYPES:
        raise ValidationError(f'Invalid session type {value!r}; expected one of {", ".join(SESSION_TYPES)}.')
    return normalized


def normalize_time_slot(value: str | None) -> str:
    normalized = (value or '').strip()
    if not normalized:
        raise ValidationError('Time slot is required.')
    if normalized not in TIME_SLOTS:
        raise ValidationError(f'Unknown time slot {value!r}.')
    return normalized


def parse_date(value: date | str | None) -> date:
    if value is None or value == '':
        raise ValidationError('Date is required.')
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError) as exc:
        raise ValidationError(f'Invalid date {value!r}; expected YYYY-MM-DD.') from exc


def require_party(value: str | None, label: str) -> str:
    normalized = (value or '').strip()
    if not normalized:
        raise ValidationError(f'{label} is required.')
    return normalized


def normalize_notes(value: str | None) -> str:
    normalized = (value or '').strip()
    if len(normalized) > MAX_NOTES_LENGTH:
        raise ValidationError(f'Notes must be {MAX_NOTES_LENGTH} characters or fewer.')
    return normalized


def validate_booking_window(booking_date: date, today: date) -> None:
    if booking_date < today:
        raise ValidationError('Sessions cannot be booked in the past.')

    last_day = today + timedelta(days=config.BOOKING_WINDOW_DAYS)
    if booking_date > last_day:
        raise ValidationError(f'Sessions can only be booked up to {config.BOOKING_WINDOW_DAYS} days in advance.')
