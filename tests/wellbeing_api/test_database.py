import pytest
from sqlalchemy import create_engine, inspect, text

from wellbeing_api import database
from wellbeing_api.models.booking import Booking


@pytest.fixture
def schema_engine(tmp_path, monkeypatch: pytest.MonkeyPatch):
    engine = create_engine(f'sqlite:///{tmp_path / "schema.db"}')
    monkeypatch.setattr(database, 'engine', engine)
    monkeypatch.setattr(database, '_booking_schema_checked', False)
    try:
        yield engine
    finally:
        engine.dispose()


def _booking_indexes(engine) -> set[str]:
    return {index['name'] for index in inspect(engine).get_indexes('bookings')}


def test_missing_booking_indexes_are_created(schema_engine) -> None:
    Booking.__table__.create(bind=schema_engine)
    with schema_engine.begin() as connection:
        connection.execute(text('DROP INDEX idx_bookings_status_date'))
        connection.execute(text('DROP INDEX uq_bookings_live_student_slot'))

    database.ensure_booking_schema()

    assert _booking_indexes(schema_engine) >= {
        'idx_bookings_mentor_date',
        'idx_bookings_student_date',
        'idx_bookings_status_date',
        'uq_bookings_live_student_slot',
    }
    assert database._booking_schema_checked is True


def test_schema_check_runs_once(schema_engine) -> None:
    Booking.__table__.create(bind=schema_engine)
    database.ensure_booking_schema()

    with schema_engine.begin() as connection:
        connection.execute(text('DROP INDEX idx_bookings_status_date'))
    database.ensure_booking_schema()

    assert 'idx_bookings_status_date' not in _booking_indexes(schema_engine)


def test_schema_check_skips_missing_table(schema_engine) -> None:
    database.ensure_booking_schema()

    assert database._booking_schema_checked is True
    assert 'bookings' not in inspect(schema_engine).get_table_names()
