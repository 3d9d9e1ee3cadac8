import threading
from contextlib import contextmanager
from datetime import datetime, date

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from bathroom_scheduler.errors import BookingError, NotFound, PersistenceFailure
from bathroom_scheduler.extensions import db
from bathroom_scheduler.models import Booking
from bathroom_scheduler.services.conflicts import check_interval, find_conflict, validate_interval
from bathroom_scheduler.utils.timeutils import to_utc_naive, day_bounds_utc

# Arbitrary constant identifying "the bathroom" for pg_advisory_xact_lock.
BATHROOM_LOCK_KEY = 7261001

class BookingService:
    """
    Owns every write to the bookings table.

    Each mutation is one serialized unit: take the write lock, reread the
    authoritative bookings, run the conflict checker, write, commit. A check
    done earlier against a client-side copy is never trusted.
    """

    _write_lock = threading.Lock()

    @staticmethod
    @contextmanager
    def _write_transaction():
        """Serialize read-check-write units against the shared bathroom."""
        with BookingService._write_lock:
            try:
                # Drop anything this session loaded before we held the lock.
                db.session.expire_all()
                BookingService._lock_across_processes()
                yield
                db.session.commit()
            except BookingError:
                db.session.rollback()
                raise
            except SQLAlchemyError as e:
                db.session.rollback()
                current_app.logger.error(f"Booking transaction failed: {e}")
                raise PersistenceFailure() from e
            except Exception:
                db.session.rollback()
                raise

    @staticmethod
    def _lock_across_processes():
        # The thread lock only covers this process; PostgreSQL deployments
        # with several workers also serialize on a transaction-scoped lock.
        if db.session.get_bind().dialect.name == 'postgresql':
            db.session.execute(text("SELECT pg_advisory_xact_lock(:key)"), {'key': BATHROOM_LOCK_KEY})

    @staticmethod
    def _candidates(start_time: datetime, end_time: datetime):
        """
        Bookings that could possibly conflict with [start_time, end_time).

        Any booking hit by one of the conflict rules starts at or before the
        candidate's end and ends at or after its start, so this is a superset
        of the conflicts and the checker makes the final decision.
        """
        return Booking.query.filter(
            Booking.start_time <= end_time,
            Booking.end_time >= start_time
        ).order_by(Booking.start_time).all()

    @staticmethod
    def _normalize_purpose(purpose):
        if purpose is None or not str(purpose).strip():
            return current_app.config.get('DEFAULT_PURPOSE', 'other')
        return str(purpose).strip().lower()

    @staticmethod
    def create_booking(user_id, start_time: datetime, end_time: datetime, purpose=None) -> Booking:
        """
        Main entry point to book the bathroom.
        """
        start_time = to_utc_naive(start_time)
        end_time = to_utc_naive(end_time)
        validate_interval(start_time, end_time)

        with BookingService._write_transaction():
            existing = BookingService._candidates(start_time, end_time)
            try:
                check_interval(start_time, end_time, existing)
            except BookingError as e:
                current_app.logger.info(
                    f"Rejected booking for {user_id} {start_time}-{end_time}: {e.kind}"
                )
                raise

            booking = Booking(
                user_id=str(user_id),
                start_time=start_time,
                end_time=end_time,
                purpose=BookingService._normalize_purpose(purpose)
            )
            db.session.add(booking)
            db.session.flush()
            current_app.logger.info(f"Created booking {booking.id} for {booking.user_id}")

        return booking

    @staticmethod
    def update_booking(booking_id, start_time: datetime, end_time: datetime, purpose=None) -> Booking:
        """
        Move or relabel an existing booking, re-validated against all other bookings.
        """
        start_time = to_utc_naive(start_time)
        end_time = to_utc_naive(end_time)

        with BookingService._write_transaction():
            booking = db.session.get(Booking, booking_id)
            if booking is None:
                raise NotFound(booking_id=booking_id)

            validate_interval(start_time, end_time)
            existing = BookingService._candidates(start_time, end_time)
            try:
                check_interval(start_time, end_time, existing, exclude_id=booking.id)
            except BookingError as e:
                current_app.logger.info(
                    f"Rejected update of booking {booking_id} to {start_time}-{end_time}: {e.kind}"
                )
                raise

            booking.start_time = start_time
            booking.end_time = end_time
            if purpose is not None:
                booking.purpose = BookingService._normalize_purpose(purpose)

        current_app.logger.info(f"Updated booking {booking_id}")
        return booking

    @staticmethod
    def delete_booking(booking_id) -> None:
        """Remove a booking. Deleting an unknown (or already deleted) id is reported."""
        with BookingService._write_transaction():
            booking = db.session.get(Booking, booking_id)
            if booking is None:
                raise NotFound(booking_id=booking_id)
            db.session.delete(booking)

        current_app.logger.info(f"Deleted booking {booking_id}")

    @staticmethod
    def get_booking(booking_id) -> Booking:
        booking = db.session.get(Booking, booking_id)
        if booking is None:
            raise NotFound(booking_id=booking_id)
        return booking

    @staticmethod
    def get_all_bookings():
        return Booking.query.order_by(Booking.start_time).all()

    @staticmethod
    def get_user_bookings(user_id):
        """Get every booking owned by a household member, earliest first."""
        return Booking.query.filter(
            Booking.user_id == str(user_id)
        ).order_by(Booking.start_time).all()

    @staticmethod
    def get_bookings_for_date(day: date):
        """Get bookings starting on `day` in the configured booking timezone."""
        day_start, day_end = day_bounds_utc(day)
        return Booking.query.filter(
            Booking.start_time >= day_start,
            Booking.start_time < day_end
        ).order_by(Booking.start_time).all()

    @staticmethod
    def precheck(start_time: datetime, end_time: datetime, exclude_id=None):
        """
        Optimistic availability check for instant feedback.

        Returns the conflicting booking or None. Nothing is written and the
        answer may be stale by the time the caller commits.
        """
        start_time = to_utc_naive(start_time)
        end_time = to_utc_naive(end_time)
        validate_interval(start_time, end_time)
        return find_conflict(
            start_time, end_time,
            BookingService._candidates(start_time, end_time),
            exclude_id=exclude_id
        )
