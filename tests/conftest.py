import os
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from wellbeing_api.database import Base  # noqa: E402
from wellbeing_api.models.booking import Booking  # noqa: E402
from wellbeing_api.models.slot_reservation import SlotReservation  # noqa: E402
from wellbeing_api.models.user import User  # noqa: E402
from wellbeing_api.scheduling.bookings import StudentInfo  # noqa: E402

TABLES = [User.__table__, Booking.__table__, SlotReservation.__table__]

# 2024-01-15 is a Monday; bookings in tests are made "as of" a few days earlier.
SESSION_DATE = date(2024, 1, 15)
TODAY = date(2024, 1, 10)


@pytest.fixture
def booking_db():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=TABLES)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=TABLES)
        engine.dispose()


@pytest.fixture
def file_session_factory(tmp_path):
    engine = create_engine(
        f'sqlite:///{tmp_path / "bookings.db"}',
        connect_args={'check_same_thread': False, 'timeout': 15},
    )
    Base.metadata.create_all(bind=engine, tables=TABLES)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        engine.dispose()


@pytest.fixture
def make_booking(booking_db):
    from wellbeing_api.scheduling.bookings import create_booking

    def _make_booking(
        student_id: str = 'S1',
        mentor_id: str = 'M1',
        time_slot: str = '10:00-11:00',
        session_type: str = 'individual',
        booking_date: date = SESSION_DATE,
        notes: str | None = None,
    ) -> Booking:
        return create_booking(
            booking_db,
            student_id=student_id,
            mentor_id=mentor_id,
            booking_date=booking_date,
            time_slot=time_slot,
            session_type=session_type,
            student_info=StudentInfo(name=f'Student {student_id}', email=f'{student_id.lower()}@example.edu'),
            notes=notes,
            today=TODAY,
        )

    return _make_booking
