from datetime import date, datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from wellbeing_api.auth.dependencies import CurrentUser, get_current_user, require_manager, require_student
from wellbeing_api.core.errors import ForbiddenError
from wellbeing_api.database import ensure_database_ready, get_db
from wellbeing_api.models.booking import Booking
from wellbeing_api.scheduling import bookings, transitions
from wellbeing_api.scheduling.catalog import MAX_NOTES_LENGTH

router = APIRouter(tags=['bookings'])


class StudentInfoPayload(BaseModel):
    name: str
    email: str
    phone: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Student name is required.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError('Student email is required.')
        return normalized


class CreateBookingRequest(BaseModel):
    mentor_id: str
    date: date
    time_slot: str
    session_type: str
    student_info: StudentInfoPayload
    notes: str | None = None

    @field_validator('mentor_id', 'time_slot')
    @classmethod
    def strip_required(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Field is required.')
        return normalized

    @field_validator('session_type')
    @classmethod
    def validate_session_type(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_NOTES_LENGTH} characters or fewer.')

        return normalized


class ReviewRequest(BaseModel):
    mentor_notes: str | None = None


class StatusUpdateRequest(BaseModel):
    status: str
    mentor_notes: str | None = None


class StudentInfoResponse(BaseModel):
    name: str
    email: str
    phone: str


class BookingResponse(BaseModel):
    id: str
    student_id: str
    mentor_id: str
    date: date
    time_slot: str
    session_type: str
    approval_status: str
    notes: str
    mentor_notes: str
    student_info: StudentInfoResponse
    allowed_actions: list[str]
    created_at: datetime
    updated_at: datetime


class BookingSummaryResponse(BaseModel):
    mentor_id: str
    pending: int
    confirmed: int
    rejected: int
    completed: int
    total: int


def to_booking_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        student_id=booking.student_id,
        mentor_id=booking.mentor_id,
        date=booking.date,
        time_slot=booking.time_slot,
        session_type=booking.session_type,
        approval_status=booking.approval_status,
        notes=booking.notes or '',
        mentor_notes=booking.mentor_notes or '',
        student_info=StudentInfoResponse(
            name=booking.student_name,
            email=booking.student_email,
            phone=booking.student_phone or '',
        ),
        allowed_actions=list(transitions.allowed_actions(booking.approval_status)),
        created_at=booking.created_at,
        updated_at=booking.updated_at,
    )


@router.post('', response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: CreateBookingRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_student(current_user, 'book sessions')
    ensure_database_ready(db)

    booking = bookings.create_booking(
        db,
        student_id=current_user.id,
        mentor_id=data.mentor_id,
        booking_date=data.date,
        time_slot=data.time_slot,
        session_type=data.session_type,
        student_info=bookings.StudentInfo(
            name=data.student_info.name,
            email=data.student_info.email,
            phone=data.student_info.phone or '',
        ),
        notes=data.notes,
    )
    return to_booking_response(booking)


@router.get('/mine', response_model=list[BookingResponse])
def list_my_bookings(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_student(current_user, 'view their own bookings')
    ensure_database_ready(db)

    return [to_booking_response(booking) for booking in bookings.list_student_bookings(db, current_user.id)]


@router.get('/mentors/{mentor_id}', response_model=list[BookingResponse])
def list_mentor_bookings(
    mentor_id: str,
    approval_status: str | None = Query(default=None),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_manager(current_user, mentor_id, 'view these bookings')
    ensure_database_ready(db)

    return [
        to_booking_response(booking)
        for booking in bookings.list_mentor_bookings(db, mentor_id, approval_status)
    ]


@router.get('/mentors/{mentor_id}/summary', response_model=BookingSummaryResponse)
def summarize_mentor_bookings(
    mentor_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_manager(current_user, mentor_id, 'view these bookings')
    ensure_database_ready(db)

    return BookingSummaryResponse(mentor_id=mentor_id, **bookings.summarize_mentor_bookings(db, mentor_id))


@router.get('/{booking_id}', response_model=BookingResponse)
def get_booking(
    booking_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready(db)

    booking = bookings.get_booking(db, booking_id)
    if booking.student_id != current_user.id and not current_user.can_manage(booking.mentor_id):
        raise ForbiddenError('Only the student or the professional on this booking can view it.')
    return to_booking_response(booking)


def _review(
    booking_id: str,
    action: str,
    mentor_notes: str | None,
    current_user: CurrentUser,
    db: Session,
) -> BookingResponse:
    ensure_database_ready(db)

    booking = bookings.get_booking(db, booking_id)
    require_manager(current_user, booking.mentor_id, 'review this booking')

    updated = transitions.transition_booking(db, booking_id, action, mentor_notes)
    return to_booking_response(updated)


@router.post('/{booking_id}/confirm', response_model=BookingResponse)
def confirm_booking(
    booking_id: str,
    data: ReviewRequest | None = None,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _review(booking_id, transitions.CONFIRM, data.mentor_notes if data else None, current_user, db)


@router.post('/{booking_id}/reject', response_model=BookingResponse)
def reject_booking(
    booking_id: str,
    data: ReviewRequest | None = None,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _review(booking_id, transitions.REJECT, data.mentor_notes if data else None, current_user, db)


@router.post('/{booking_id}/complete', response_model=BookingResponse)
def complete_booking(
    booking_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _review(booking_id, transitions.COMPLETE, None, current_user, db)


@router.patch('/{booking_id}/status', response_model=BookingResponse)
def update_booking_status(
    booking_id: str,
    data: StatusUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    action = transitions.action_for_status(data.status)
    return _review(booking_id, action, data.mentor_notes, current_user, db)
