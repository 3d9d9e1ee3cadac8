"""Booking outcomes that are returned to callers rather than treated as crashes."""


class BookingError(ValueError):
    """Base class for every expected booking rejection."""
    kind = 'booking_error'
    message = 'Booking request rejected.'

    def __init__(self, message=None):
        super().__init__(message or self.message)

    def to_dict(self):
        return {'error': str(self), 'kind': self.kind}


class InvalidInterval(BookingError):
    kind = 'invalid_interval'
    message = 'Start time must be before end time.'


class Overlap(BookingError):
    kind = 'overlap'
    message = 'This time slot overlaps with an existing booking.'

    def __init__(self, conflicting_id=None, message=None):
        super().__init__(message)
        self.conflicting_id = conflicting_id


class NotFound(BookingError):
    kind = 'not_found'
    message = 'Booking not found.'

    def __init__(self, booking_id=None, message=None):
        super().__init__(message)
        self.booking_id = booking_id


class PersistenceFailure(BookingError):
    kind = 'persistence_failure'
    message = 'Could not save your booking. Please try again.'
