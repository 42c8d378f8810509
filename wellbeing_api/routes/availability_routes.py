from datetime import date

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from wellbeing_api.auth.dependencies import CurrentUser, get_current_user, require_manager
from wellbeing_api.core import config
from wellbeing_api.database import ensure_database_ready, get_db
from wellbeing_api.scheduling import availability
from wellbeing_api.scheduling.catalog import SESSION_TYPES, TIME_SLOTS

router = APIRouter(tags=['availability'])


class BlockSlotRequest(BaseModel):
    mentor_id: str
    date: date
    time_slot: str

    @field_validator('mentor_id', 'time_slot')
    @classmethod
    def strip_required(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Field is required.')
        return normalized


class AvailableSlotResponse(BaseModel):
    mentor_id: str
    time_slot: str
    date: date
    session_type: str


class BlockedSlotResponse(BaseModel):
    mentor_id: str
    date: date
    time_slot: str


class CatalogResponse(BaseModel):
    time_slots: list[str]
    session_types: list[str]
    group_session_capacity: int
    booking_window_days: int


@router.get('/catalog', response_model=CatalogResponse)
def get_catalog():
    return CatalogResponse(
        time_slots=list(TIME_SLOTS),
        session_types=list(SESSION_TYPES),
        group_session_capacity=config.GROUP_SESSION_CAPACITY,
        booking_window_days=config.BOOKING_WINDOW_DAYS,
    )


@router.get('/slots', response_model=list[AvailableSlotResponse])
def list_available_slots(
    slot_date: date = Query(..., alias='date'),
    session_type: str = Query(...),
    mentor_id: str | None = Query(default=None),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    del current_user
    ensure_database_ready(db)

    return [
        AvailableSlotResponse(
            mentor_id=slot.mentor_id,
            time_slot=slot.time_slot,
            date=slot.date,
            session_type=slot.session_type,
        )
        for slot in availability.get_available_slots(db, slot_date, session_type, mentor_id)
    ]


@router.post('/blocked-slots', response_model=BlockedSlotResponse, status_code=status.HTTP_201_CREATED)
def block_slot(
    data: BlockSlotRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_manager(current_user, data.mentor_id, 'block appointment times')
    ensure_database_ready(db)

    blocked = availability.block_slot(db, data.mentor_id, data.date, data.time_slot)
    return BlockedSlotResponse(mentor_id=blocked.mentor_id, date=blocked.date, time_slot=blocked.time_slot)


@router.delete('/blocked-slots', status_code=status.HTTP_204_NO_CONTENT)
def unblock_slot(
    mentor_id: str = Query(...),
    slot_date: date = Query(..., alias='date'),
    time_slot: str = Query(...),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_manager(current_user, mentor_id, 'unblock appointment times')
    ensure_database_ready(db)

    availability.unblock_slot(db, mentor_id, slot_date, time_slot)


@router.get('/blocked-slots', response_model=list[BlockedSlotResponse])
def list_blocked_slots(
    mentor_id: str = Query(...),
    from_date: date | None = Query(default=None),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_manager(current_user, mentor_id, 'view blocked times')
    ensure_database_ready(db)

    return [
        BlockedSlotResponse(mentor_id=blocked.mentor_id, date=blocked.date, time_slot=blocked.time_slot)
        for blocked in availability.list_blocked_slots(db, mentor_id, from_date)
    ]
