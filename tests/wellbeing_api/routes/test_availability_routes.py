from datetime import date

import pytest
from pydantic import ValidationError as PydanticValidationError

from wellbeing_api.auth.dependencies import CurrentUser
from wellbeing_api.core import config
from wellbeing_api.core.errors import ForbiddenError, NotFoundError
from wellbeing_api.routes import availability_routes
from wellbeing_api.routes.availability_routes import BlockSlotRequest

SESSION_DATE = date(2024, 1, 15)
STUDENT = CurrentUser(id='S1', role='student')
MENTOR = CurrentUser(id='M1', role='mentor')
ADMIN = CurrentUser(id='A1', role='admin')


@pytest.fixture(autouse=True)
def skip_schema_check(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(availability_routes, 'ensure_database_ready', lambda db: None)


def test_catalog_lists_slots_and_session_types(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'GROUP_SESSION_CAPACITY', 8)

    catalog = availability_routes.get_catalog()

    assert catalog.time_slots == [
        '09:00-10:00',
        '10:00-11:00',
        '11:00-12:00',
        '14:00-15:00',
        '15:00-16:00',
        '16:00-17:00',
    ]
    assert catalog.session_types == ['individual', 'group']
    assert catalog.group_session_capacity == 8


def test_block_slot_request_strips_fields() -> None:
    request = BlockSlotRequest(mentor_id=' M1 ', date=SESSION_DATE, time_slot=' 09:00-10:00 ')

    assert request.mentor_id == 'M1'
    assert request.time_slot == '09:00-10:00'


def test_block_slot_request_rejects_blank_mentor() -> None:
    with pytest.raises(PydanticValidationError):
        BlockSlotRequest(mentor_id='  ', date=SESSION_DATE, time_slot='09:00-10:00')


def test_list_available_slots_returns_catalog_for_free_mentor(booking_db) -> None:
    slots = availability_routes.list_available_slots(
        slot_date=SESSION_DATE,
        session_type='individual',
        mentor_id='M1',
        current_user=STUDENT,
        db=booking_db,
    )

    assert len(slots) == 6
    assert slots[0].model_dump() == {
        'mentor_id': 'M1',
        'time_slot': '09:00-10:00',
        'date': SESSION_DATE,
        'session_type': 'individual',
    }


def test_mentor_blocks_and_unblocks_own_slot(booking_db) -> None:
    blocked = availability_routes.block_slot(
        BlockSlotRequest(mentor_id='M1', date=SESSION_DATE, time_slot='09:00-10:00'),
        current_user=MENTOR,
        db=booking_db,
    )
    assert blocked.time_slot == '09:00-10:00'

    listed = availability_routes.list_blocked_slots(
        mentor_id='M1',
        from_date=SESSION_DATE,
        current_user=MENTOR,
        db=booking_db,
    )
    assert [slot.time_slot for slot in listed] == ['09:00-10:00']

    slots = availability_routes.list_available_slots(
        slot_date=SESSION_DATE,
        session_type='group',
        mentor_id='M1',
        current_user=STUDENT,
        db=booking_db,
    )
    assert '09:00-10:00' not in [slot.time_slot for slot in slots]

    availability_routes.unblock_slot(
        mentor_id='M1',
        slot_date=SESSION_DATE,
        time_slot='09:00-10:00',
        current_user=MENTOR,
        db=booking_db,
    )

    with pytest.raises(NotFoundError):
        availability_routes.unblock_slot(
            mentor_id='M1',
            slot_date=SESSION_DATE,
            time_slot='09:00-10:00',
            current_user=ADMIN,
            db=booking_db,
        )


@pytest.mark.parametrize('user', [STUDENT, CurrentUser(id='M2', role='mentor')])
def test_only_owner_or_admin_can_block(booking_db, user: CurrentUser) -> None:
    with pytest.raises(ForbiddenError):
        availability_routes.block_slot(
            BlockSlotRequest(mentor_id='M1', date=SESSION_DATE, time_slot='09:00-10:00'),
            current_user=user,
            db=booking_db,
        )
