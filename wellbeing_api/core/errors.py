"""Booking error taxonomy.

Every error carries a short machine readable ``code`` and the HTTP status the
API boundary answers with. Extra keyword arguments end up in the structured
failure body next to ``error`` and ``detail``.
"""


class BookingError(Exception):
    code = 'booking_error'
    status_code = 400

    def __init__(self, detail: str, **context):
        super().__init__(detail)
        self.detail = detail
        self.context = context

    def to_dict(self) -> dict:
        payload = {'error': self.code, 'detail': self.detail}
        payload.update({key: value for key, value in self.context.items() if value is not None})
        return payload


class ValidationError(BookingError):
    code = 'validation_error'
    status_code = 400


class ConflictError(BookingError):
    code = 'conflict'
    status_code = 409

    def __init__(self, detail: str, conflicting_booking_id: str | None = None, **context):
        super().__init__(detail, conflicting_booking_id=conflicting_booking_id, **context)
        self.conflicting_booking_id = conflicting_booking_id


class InvalidTransitionError(BookingError):
    code = 'invalid_transition'
    status_code = 409


class NotFoundError(BookingError):
    code = 'not_found'
    status_code = 404


class ForbiddenError(BookingError):
    code = 'forbidden'
    status_code = 403


class StoreUnavailableError(BookingError):
    code = 'store_unavailable'
    status_code = 503

    def __init__(self, detail: str = 'Database unavailable. Verify DATABASE_URL and database credentials.', **context):
        super().__init__(detail, **context)
