import asyncio
import json
from types import SimpleNamespace

from wellbeing_api import main
from wellbeing_api.core.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)


def _request(path: str = '/bookings'):
    return SimpleNamespace(method='POST', url=SimpleNamespace(path=path))


def _handle(exc):
    response = asyncio.run(main.handle_booking_error(_request(), exc))
    return response.status_code, json.loads(response.body)


def test_conflict_is_a_structured_409() -> None:
    status_code, body = _handle(ConflictError('This time slot is already booked.', conflicting_booking_id='abc'))

    assert status_code == 409
    assert body == {
        'error': 'conflict',
        'detail': 'This time slot is already booked.',
        'conflicting_booking_id': 'abc',
    }


def test_error_codes_map_to_status_codes() -> None:
    assert _handle(InvalidTransitionError('Cannot complete a booking that is pending.'))[0] == 409
    assert _handle(NotFoundError('Booking not found.'))[0] == 404
    assert _handle(ValidationError('Date is required.'))[0] == 400
    assert _handle(StoreUnavailableError()) == (
        503,
        {
            'error': 'store_unavailable',
            'detail': 'Database unavailable. Verify DATABASE_URL and database credentials.',
        },
    )


def test_root_reports_status() -> None:
    assert main.root() == {'status': 'Wellbeing Booking API Running'}


def test_routes_are_mounted() -> None:
    paths = main.app.openapi()['paths']

    assert '/availability/slots' in paths
    assert '/bookings' in paths
    assert '/bookings/{booking_id}/confirm' in paths
    assert '/auth/me' in paths
